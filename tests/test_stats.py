"""
Dashboard statistics tests
"""
from datetime import date, timedelta

from app.database.schemas import Appointment, BloodPressure, Patient
from app.services.stats import aggregate, dashboard_summary, upcoming_appointments

TODAY = date(2026, 3, 15)


def make_patient(pid, village, systolic=120, diastolic=80, sugar=100, risk_level=None):
    return Patient(
        id=pid,
        name=f"Patient {pid}",
        age=40,
        village=village,
        blood_pressure=BloodPressure(systolic=systolic, diastolic=diastolic),
        sugar_level=sugar,
        risk_level=risk_level,
    )


def make_appointment(aid, day, time=""):
    return Appointment(id=aid, patient_id="p1", date=day, time=time)


def test_aggregate_counts_villages_and_tiers():
    patients = [
        make_patient("1", "Rampur", 150, 95, 210),
        make_patient("2", "Rampur", 135, 80, 0),
        make_patient("3", "Lakhanpur"),
        make_patient("4", ""),
    ]
    result = aggregate(patients)
    assert result.by_village == {"Rampur": 2, "Lakhanpur": 1}
    assert result.by_risk == {"LOW": 2, "MEDIUM": 1, "HIGH": 1}


def test_patient_without_village_still_counted_by_risk():
    result = aggregate([make_patient("1", "   ", 150, 95, 210)])
    assert result.by_village == {}
    assert result.by_risk["HIGH"] == 1


def test_aggregate_uses_stored_risk_tier():
    result = aggregate([make_patient("1", "Rampur", 180, 110, 300, risk_level="LOW")])
    assert result.by_risk == {"LOW": 1, "MEDIUM": 0, "HIGH": 0}


def test_aggregate_is_idempotent():
    patients = [make_patient(str(i), f"V{i % 3}", 120 + i * 5) for i in range(10)]
    assert aggregate(patients) == aggregate(patients)


def test_aggregate_empty_collection():
    result = aggregate([])
    assert result.by_village == {}
    assert result.by_risk == {"LOW": 0, "MEDIUM": 0, "HIGH": 0}


def test_dashboard_summary_counts():
    patients = [make_patient("1", "Rampur", 150, 95, 210), make_patient("2", "Rampur")]
    appointments = [
        make_appointment("a1", TODAY),
        make_appointment("a2", TODAY),
        make_appointment("a3", TODAY + timedelta(days=1)),
        make_appointment("a4", TODAY - timedelta(days=1)),
    ]
    summary = dashboard_summary(patients, appointments, active_alerts=3, today=TODAY)
    assert summary.total_patients == 2
    assert summary.high_risk_patients == 1
    assert summary.today_followups == 2
    assert summary.upcoming_visits == 1
    assert summary.active_alerts == 3


def test_upcoming_appointments_sorted_and_filtered():
    appointments = [
        make_appointment("late", TODAY + timedelta(days=2), "09:00"),
        make_appointment("past", TODAY - timedelta(days=1), "09:00"),
        make_appointment("today-pm", TODAY, "15:00"),
        make_appointment("today-am", TODAY, "08:30"),
    ]
    result = upcoming_appointments(appointments, today=TODAY)
    assert [a.id for a in result] == ["today-am", "today-pm", "late"]
