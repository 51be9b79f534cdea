"""
Tests for the intake form schemas.
"""

import pytest
from pydantic import ValidationError

from sleep_registry.schemas import LoginRequest, PatientCreate, PatientUpdate


def test_wire_names_survive_round_trip():
    data = PatientCreate.model_validate({
        "ipd_opd_no": "OPD-9",
        "date": 1700000000000,
        "contactNo": "123",
        "anthropometricParameters": {"neckCircumference": 41.5},
        "doctorId": "usr_abc",
    })
    assert data.doctor_id == "usr_abc"
    assert data.record_fields() == {
        "ipd_opd_no": "OPD-9",
        "date": 1700000000000,
        "contactNo": "123",
        "anthropometricParameters": {"neckCircumference": 41.5},
    }


def test_update_only_dumps_supplied_fields():
    data = PatientUpdate.model_validate({"finalDiagnosis": "OSA"})
    assert data.record_fields() == {"finalDiagnosis": "OSA"}
    assert "doctor_id" not in data.model_fields_set


def test_explicit_null_doctor_is_tracked():
    data = PatientUpdate.model_validate({"doctorId": None})
    assert "doctor_id" in data.model_fields_set
    assert data.doctor_id is None


def test_medical_history_requires_every_condition():
    condition = {"status": False}
    with pytest.raises(ValidationError):
        PatientUpdate.model_validate({"medicalHistory": {"hypertension": condition}})


def test_saqli_sections_are_required_together():
    with pytest.raises(ValidationError):
        PatientUpdate.model_validate({"saqliQuestionnaire": {"symptoms": {}}})


def test_wrong_scalar_type_rejected():
    with pytest.raises(ValidationError):
        PatientUpdate.model_validate({"age": "fifty"})


def test_login_request_requires_both_fields():
    with pytest.raises(ValidationError):
        LoginRequest.model_validate({"email": "a@example.com"})


def test_update_rejects_null_required_fields():
    with pytest.raises(ValidationError):
        PatientUpdate.model_validate({"ipd_opd_no": None})
    with pytest.raises(ValidationError):
        PatientUpdate.model_validate({"date": None})
    assert PatientUpdate.model_validate({"name": None}).record_fields() == {"name": None}


def test_treatment_dates_are_bounded():
    with pytest.raises(ValidationError):
        PatientUpdate.model_validate({"treatmentPlan": {"dateOfStart": 10**15}})
