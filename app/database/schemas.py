"""
Data models

- Stored models (Patient, Appointment, Visit, Alert) are frozen: the store
  hands them to other components as immutable snapshots
- Input models validate at the boundary (pydantic field validators)
- Read-only projections for the dashboard and reports live at the bottom
"""
from typing import Optional, Dict, List, Literal
from datetime import datetime, date as CalendarDate
from pydantic import AliasChoices, BaseModel, Field, field_validator, ConfigDict

from app.services.risk import RiskTier, HIGH, classify

AppointmentStatus = Literal["SCHEDULED", "CANCELLED", "COMPLETED"]
NotificationKind = Literal["alert", "patient", "visit"]


class BloodPressure(BaseModel):
    model_config = ConfigDict(frozen=True)
    systolic: int                = Field(0, description="Systolic pressure (mmHg)")
    diastolic: int               = Field(0, description="Diastolic pressure (mmHg)")


class Patient(BaseModel):
    """
    Patient record as held by the store
    """
    model_config = ConfigDict(frozen=True, extra="ignore")
    id: str                          = Field(...,  description="Patient identifier (assigned by the backend)")
    name: str                        = Field(...,  description="Patient name")
    age: int                         = Field(...,  description="Age in years")
    village: str                     = Field("",   description="Village name")
    phone: Optional[str]             = Field(None, description="Phone number")
    blood_pressure: BloodPressure    = Field(default_factory=BloodPressure, description="Last recorded blood pressure")
    sugar_level: int                 = Field(0,    description="Blood sugar (mg/dL)")
    is_pregnant: bool                = Field(False, description="Pregnancy status")
    symptoms: str                    = Field("",   description="Free-text symptoms")
    has_insurance: bool              = Field(False, description="Whether the patient holds a health insurance card")
    risk_level: Optional[RiskTier]   = Field(None, description="Risk tier stamped at write time")
    created_by: Optional[str]        = Field(None, description="ASHA worker or client that created the record")
    created_at: Optional[datetime]   = Field(None, description="Server timestamp of creation")
    updated_at: Optional[datetime]   = Field(None, description="Server timestamp of last update")

    def assess_risk(self) -> RiskTier:
        """
        Stored tier if present, otherwise computed from vitals
        """
        if self.risk_level:
            return self.risk_level
        return classify(
            self.blood_pressure.systolic,
            self.blood_pressure.diastolic,
            self.sugar_level,
            self.is_pregnant,
        )


def _require_name(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    value = value.strip()
    if not value:
        raise ValueError("name must not be empty")
    return value


def _require_non_negative_age(value: Optional[int]) -> Optional[int]:
    if value is not None and value < 0:
        raise ValueError("age must be zero or greater")
    return value


class PatientInput(BaseModel):
    """
    Patient intake form
    """
    name: str                        = Field(...,  description="Patient name")
    age: int                         = Field(...,  description="Age in years")
    village: str                     = Field("",   description="Village name")
    phone: Optional[str]             = Field(None, description="Phone number")
    bp_systolic: int                 = Field(0,    description="Systolic pressure (mmHg)")
    bp_diastolic: int                = Field(0,    description="Diastolic pressure (mmHg)")
    sugar_level: int                 = Field(0,    description="Blood sugar (mg/dL)")
    is_pregnant: bool                = Field(False, description="Pregnancy status")
    symptoms: str                    = Field("",   description="Free-text symptoms")
    has_insurance: bool              = Field(False, description="Whether the patient holds a health insurance card")
    created_by: Optional[str]        = Field(None, description="ASHA worker entering the record")

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        return _require_name(value)

    @field_validator("age")
    @classmethod
    def validate_age(cls, value: int) -> int:
        return _require_non_negative_age(value)


class PatientUpdate(BaseModel):
    """
    Partial patient update (all fields optional)
    """
    name: Optional[str]              = None
    age: Optional[int]               = None
    village: Optional[str]           = None
    phone: Optional[str]             = None
    bp_systolic: Optional[int]       = None
    bp_diastolic: Optional[int]      = None
    sugar_level: Optional[int]       = None
    is_pregnant: Optional[bool]      = None
    symptoms: Optional[str]          = None
    has_insurance: Optional[bool]    = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: Optional[str]) -> Optional[str]:
        return _require_name(value)

    @field_validator("age")
    @classmethod
    def validate_age(cls, value: Optional[int]) -> Optional[int]:
        return _require_non_negative_age(value)


class Appointment(BaseModel):
    """
    Scheduled follow-up

    "Upcoming" is a filter over `date`, never a status change.
    """
    model_config = ConfigDict(frozen=True, extra="ignore")
    id: str                          = Field(...,  description="Appointment identifier")
    patient_id: str                  = Field(...,  description="Referenced patient")
    patient_name: str                = Field("",   description="Patient name at scheduling time")
    date: CalendarDate               = Field(...,  description="Calendar date of the appointment")
    time: str                        = Field("",   description="Time of day (free-form, e.g. '10:30')")
    notes: str                       = Field("",   description="Free-text notes")
    status: AppointmentStatus        = Field("SCHEDULED", description="Only SCHEDULED is produced")
    created_at: Optional[datetime]   = Field(None, description="Server timestamp of creation")
    updated_at: Optional[datetime]   = Field(None, description="Server timestamp of last update")


class AppointmentInput(BaseModel):
    patient_id: str                  = Field(...,  description="Referenced patient")
    patient_name: Optional[str]      = Field(None, description="Overrides the name looked up from the patient")
    date: CalendarDate               = Field(...,  description="Calendar date (YYYY-MM-DD)")
    time: str                        = Field("",   description="Time of day")
    notes: str                       = Field("",   description="Free-text notes")


class AppointmentUpdate(BaseModel):
    date: Optional[CalendarDate]     = None
    time: Optional[str]              = None
    notes: Optional[str]             = None


class ExtractedFields(BaseModel):
    """
    Structured fields pulled out of a dictated transcript

    Any field the parser could not find stays None.
    """
    model_config = ConfigDict(frozen=True)
    name: Optional[str]              = None
    age: Optional[int]               = None
    village: Optional[str]           = None
    bp_systolic: Optional[int]       = None
    bp_diastolic: Optional[int]      = None
    sugar_level: Optional[int]       = None
    symptoms: str                    = ""


class Visit(BaseModel):
    """
    One dictated encounter. Append-only.
    """
    model_config = ConfigDict(frozen=True, extra="ignore")
    id: str                          = Field(...,  description="Visit identifier")
    patient_id: str                  = Field(...,  description="Referenced patient")
    patient_name: str                = Field("",   description="Patient name at capture time")
    asha_worker: str                 = Field("Unknown", description="Worker who recorded the visit")
    asha_phone: str                  = Field("",   description="Worker phone number")
    transcription: str               = Field("",   description="Final transcript")
    extracted_data: ExtractedFields  = Field(default_factory=ExtractedFields, description="Fields parsed from the transcript")
    blood_pressure: BloodPressure    = Field(default_factory=BloodPressure, description="Vitals used for classification")
    sugar_level: int                 = Field(0,    description="Blood sugar (mg/dL)")
    is_pregnant: bool                = Field(False, description="Pregnancy status")
    risk_level: RiskTier             = Field("LOW", description="Risk tier at capture time")
    is_emergency: bool               = Field(False, description="True iff risk_level is HIGH")
    timestamp: Optional[datetime]    = Field(None, validation_alias=AliasChoices("timestamp", "created_at"), description="Server timestamp of capture")


class VisitInput(BaseModel):
    """
    Visit capture payload

    Explicit vitals win over values parsed from the transcript.
    """
    patient_id: str                  = Field(...,  description="Referenced patient")
    patient_name: Optional[str]      = Field(None, description="Overrides the name looked up from the patient")
    asha_worker: Optional[str]       = Field(None, description="Worker recording the visit")
    asha_phone: str                  = Field("",   description="Worker phone number")
    transcription: str               = Field("",   description="Final transcript")
    extracted_data: Optional[ExtractedFields] = Field(None, description="Pre-parsed fields; parsed from transcription when absent")
    bp_systolic: Optional[int]       = None
    bp_diastolic: Optional[int]      = None
    sugar_level: Optional[int]       = None
    is_pregnant: Optional[bool]      = None


class Alert(BaseModel):
    """
    Emergency alert raised for a HIGH-risk visit
    """
    model_config = ConfigDict(frozen=True, extra="ignore")
    id: str                          = Field(...,  description="Alert identifier")
    visit_id: str                    = Field(...,  description="Originating visit")
    patient_id: str                  = Field(...,  description="Referenced patient")
    patient_name: str                = Field("",   description="Patient name at capture time")
    village: str                     = Field("",   description="Patient village")
    asha_worker: str                 = Field("",   description="Worker who recorded the visit")
    severity: RiskTier               = Field(HIGH, description="Severity (risk tier of the visit)")
    risk_factors: List[str]          = Field(default_factory=list, description="Factors that triggered the alert")
    recommended_action: str          = Field("",   description="Suggested next step")
    acknowledged: bool               = Field(False, description="Acknowledgement state")
    acknowledged_by: Optional[str]   = Field(None, description="Who acknowledged the alert")
    acknowledged_at: Optional[datetime] = Field(None, description="When the alert was acknowledged")
    created_at: Optional[datetime]   = Field(None, description="Server timestamp of creation")


class AcknowledgeRequest(BaseModel):
    acknowledged_by: Optional[str]   = Field(None, description="Identity of the acknowledger")


class TranscriptRequest(BaseModel):
    transcript: str                  = Field(..., description="Final transcript from the speech collaborator")


# Read-only projections

class VillageRiskStats(BaseModel):
    by_village: Dict[str, int]       = Field(default_factory=dict, description="Patient count per village")
    by_risk: Dict[RiskTier, int]     = Field(default_factory=lambda: {"LOW": 0, "MEDIUM": 0, "HIGH": 0}, description="Patient count per risk tier")


class DashboardSummary(BaseModel):
    total_patients: int
    high_risk_patients: int
    today_followups: int
    upcoming_visits: int
    active_alerts: int = 0


class AppointmentView(BaseModel):
    """
    Appointment with the patient label resolved for display
    """
    appointment: Appointment
    patient_label: str


class VisitCreated(BaseModel):
    visit: Visit
    alert: Optional[Alert] = None


class PatientReport(BaseModel):
    patient: Patient
    risk_level: RiskTier
    risk_factors: List[str]
    recommended_action: str
    visits: List[Visit]
    upcoming_appointments: List[Appointment]


class Notification(BaseModel):
    """
    User-facing signal produced by the alert notifier
    """
    model_config = ConfigDict(frozen=True)
    kind: NotificationKind
    level: Literal["success", "warning"]
    message: str
    count: int
    play_sound: bool = False
    created_at: datetime
