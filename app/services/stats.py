"""
Dashboard statistics

Per-village and per-risk-tier counts plus the dashboard counters.
All functions are pure over the collections they are given.
"""
from datetime import date, datetime, timezone
from typing import Iterable, List, Optional

from app.database.schemas import Appointment, DashboardSummary, Patient, VillageRiskStats
from app.services.risk import HIGH, RISK_TIERS


def utc_today() -> date:
    """
    Today's calendar date in UTC (the reference day for follow-up counters)
    """
    return datetime.now(timezone.utc).date()


def aggregate(patients: Iterable[Patient]) -> VillageRiskStats:
    """
    Count patients per village and per risk tier in one pass

    Patients without a village are left out of `by_village` but still
    counted in `by_risk`.
    """
    by_village = {}
    by_risk = {tier: 0 for tier in RISK_TIERS}
    for patient in patients:
        village = (patient.village or "").strip()
        if village:
            by_village[village] = by_village.get(village, 0) + 1
        by_risk[patient.assess_risk()] += 1
    return VillageRiskStats(by_village=by_village, by_risk=by_risk)


def high_risk_patients(patients: Iterable[Patient]) -> List[Patient]:
    return [patient for patient in patients if patient.assess_risk() == HIGH]


def is_today(appointment: Appointment, today: Optional[date] = None) -> bool:
    return appointment.date == (today or utc_today())


def upcoming_appointments(appointments: Iterable[Appointment], today: Optional[date] = None) -> List[Appointment]:
    """
    Appointments on or after today, soonest first (ties broken by time string)
    """
    today = today or utc_today()
    upcoming = [appointment for appointment in appointments if appointment.date >= today]
    return sorted(upcoming, key=lambda appointment: (appointment.date, appointment.time))


def dashboard_summary(
    patients: Iterable[Patient],
    appointments: Iterable[Appointment],
    active_alerts: int = 0,
    today: Optional[date] = None,
) -> DashboardSummary:
    """
    Counters shown at the top of the dashboard

    Args:
        patients: Current patient collection
        appointments: Current appointment collection
        active_alerts: Number of unacknowledged alerts
        today: Reference day (defaults to today's UTC date)

    Returns:
        DashboardSummary where today_followups counts appointments on today's
        date and upcoming_visits counts appointments strictly after today
    """
    today = today or utc_today()
    patients = list(patients)
    appointments = list(appointments)
    return DashboardSummary(
        total_patients=len(patients),
        high_risk_patients=len(high_risk_patients(patients)),
        today_followups=sum(1 for appointment in appointments if is_today(appointment, today)),
        upcoming_visits=sum(1 for appointment in appointments if appointment.date > today),
        active_alerts=active_alerts,
    )
