"""
Request schemas for patient intake forms and account management.

Every nested section of the intake form is optional on the patient, but a
section that is present must be fully shaped.  Wire names are camelCase
(``contactNo``, ``medicalHistory``) except ``ipd_opd_no``.
"""

from typing import Annotated, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

from sleep_registry.config import MAX_TIMESTAMP_MS, MIN_TIMESTAMP_MS

EpochMs = Annotated[int, Field(ge=MIN_TIMESTAMP_MS, le=MAX_TIMESTAMP_MS)]


class Schema(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ── Intake form sections ─────────────────────────────────────────────

class Complaint(Schema):
    symptom: str
    severity: str
    duration: str


class MedicalCondition(Schema):
    status: bool
    duration: Optional[str] = None
    treatment: Optional[str] = None


class MedicalHistory(Schema):
    hypertension: MedicalCondition
    heart_disease: MedicalCondition
    stroke: MedicalCondition
    diabetes: MedicalCondition
    copd: MedicalCondition
    asthma: MedicalCondition
    neurological_disorders: MedicalCondition
    other_conditions: Optional[str] = None


class FamilyHistoryEntry(Schema):
    condition: str
    details: str


class AnthropometricParameters(Schema):
    height: Optional[float] = None
    waist_circumference: Optional[float] = None
    bmi: Optional[float] = None
    neck_circumference: Optional[float] = None
    hip_circumference: Optional[float] = None
    waist_hip_ratio: Optional[float] = None
    pulse: Optional[float] = None
    temperature: Optional[float] = None
    blood_pressure: Optional[str] = None
    sleep_study_type: Optional[str] = None
    body_weight: Optional[float] = None
    oxygen_saturation: Optional[float] = None
    apnea_hypopnea_index: Optional[float] = None
    sleep_efficiency: Optional[float] = None
    sleep_stages: Optional[str] = None
    other_findings: Optional[str] = None


class ClinicalParameters(Schema):
    blood_pressure: Optional[str] = None
    oxygen_saturation: Optional[str] = None
    polysomnography_results: Optional[str] = None
    heart_rate_variability: Optional[str] = None
    electrocardiogram: Optional[str] = None


class AdditionalTest(Schema):
    name: str
    value: str
    normal_range: Optional[str] = None


class LaboratoryInvestigation(Schema):
    hb: Optional[float] = None
    triglycerides: Optional[float] = None
    hdl: Optional[float] = None
    ldl: Optional[float] = None
    fbs: Optional[float] = None
    tsh: Optional[float] = None
    t3: Optional[float] = None
    t4: Optional[float] = None
    additional_tests: Optional[List[AdditionalTest]] = None


class LifestyleFactors(Schema):
    physical_activity: Optional[str] = None
    smoking: Optional[str] = None
    eating_habit: Optional[str] = None
    alcohol_intake: Optional[str] = None


class TraditionalRiskFactors(Schema):
    hyperlipidemia: Optional[bool] = None
    diabetes_mellitus: Optional[bool] = None
    hypertension: Optional[bool] = None
    obesity: Optional[bool] = None
    smoking: Optional[bool] = None
    family_history: Optional[bool] = None


class NonTraditionalRiskFactors(Schema):
    sleep_disorder: Optional[bool] = None
    air_pollution: Optional[bool] = None
    diet_style: Optional[bool] = None
    psychosocial_factor: Optional[bool] = None
    chronic_kidney_disease: Optional[bool] = None
    depression_and_anxiety: Optional[bool] = None


class RiskFactors(Schema):
    traditional_risk_factors: TraditionalRiskFactors
    non_traditional_risk_factors: NonTraditionalRiskFactors


class TreatmentPlan(Schema):
    oral_appliance_therapy: Optional[bool] = None
    cpap_therapy: Optional[bool] = None
    surgery: Optional[bool] = None
    epworth_sleep_scale_score: Optional[str] = None
    sleep_apnea_cardiovascular_risk_score: Optional[str] = None
    date_of_start: Optional[EpochMs] = None
    date_of_stop: Optional[EpochMs] = None


class DailyFunctioning(Schema):
    trouble_with_daily_activities: Optional[str] = None
    concentration_affected: Optional[str] = None
    physically_fatigued: Optional[str] = None


class SocialInteractions(Schema):
    social_gatherings_affected: Optional[str] = None
    felt_isolated: Optional[str] = None
    family_support: Optional[str] = None


class EmotionalFunctioning(Schema):
    frustration: Optional[str] = None
    depression: Optional[str] = None


class Symptoms(Schema):
    unrefreshed_or_headache: Optional[str] = None
    snoring_affected: Optional[str] = None
    chest_discomfort_or_palpitations: Optional[str] = None


class SaqliQuestionnaire(Schema):
    daily_functioning: DailyFunctioning
    social_interactions: SocialInteractions
    emotional_functioning: EmotionalFunctioning
    symptoms: Symptoms


# ── Patient documents ────────────────────────────────────────────────

class PatientFields(Schema):
    """Every form field, all optional. Base for create and update."""
    ipd_opd_no: Optional[str] = Field(default=None, alias="ipd_opd_no")
    name: Optional[str] = None
    date: Optional[EpochMs] = None
    age: Optional[int] = None
    dob: Optional[EpochMs] = None
    gender: Optional[str] = None
    contact_no: Optional[str] = None
    address: Optional[str] = None
    marital_status: Optional[str] = None
    employment_status: Optional[str] = None
    economic_status: Optional[str] = None
    provisional_diagnosis: Optional[str] = None
    final_diagnosis: Optional[str] = None

    complaints: Optional[List[Complaint]] = None
    medical_history: Optional[MedicalHistory] = None
    past_family_history: Optional[List[FamilyHistoryEntry]] = None
    anthropometric_parameters: Optional[AnthropometricParameters] = None
    clinical_parameters: Optional[ClinicalParameters] = None
    laboratory_investigation: Optional[LaboratoryInvestigation] = None
    lifestyle_factors: Optional[LifestyleFactors] = None
    risk_factors: Optional[RiskFactors] = None
    treatment_plan: Optional[TreatmentPlan] = None
    saqli_questionnaire: Optional[SaqliQuestionnaire] = None

    consent_obtained: Optional[bool] = None
    doctor_id: Optional[str] = None

    def record_fields(self) -> dict:
        """Supplied form fields in wire naming, without the assignment."""
        data = self.model_dump(by_alias=True, exclude_unset=True)
        data.pop("doctorId", None)
        return data


class PatientCreate(PatientFields):
    ipd_opd_no: str = Field(alias="ipd_opd_no")
    date: EpochMs


class PatientUpdate(PatientFields):
    """Absent fields are left alone; required fields cannot be cleared."""

    @field_validator("ipd_opd_no", "date")
    @classmethod
    def not_null(cls, value):
        if value is None:
            raise ValueError("cannot be null")
        return value


# ── Accounts ─────────────────────────────────────────────────────────

class AccountCreate(Schema):
    email: EmailStr
    password: str = Field(min_length=1)
    name: str = Field(min_length=1)


class DoctorCreate(AccountCreate):
    pass


class MainHeadCreate(AccountCreate):
    pass


class LoginRequest(Schema):
    email: str
    password: str
