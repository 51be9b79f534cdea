"""
Tests for patient and doctor mutations, login and logout.
"""

import pytest

from sleep_registry.errors import (
    AuthenticationError, AuthorizationError, ConflictError, NotFoundError, ValidationError,
)
from sleep_registry.models import PatientId, Role, UserId
from sleep_registry.mutations import ACCOUNT_INACTIVE, INVALID_CREDENTIALS, SESSION_TTL_MS

from conftest import NOW, PASSWORD, add_doctor, add_patient

FULL_FORM = {
    "ipd_opd_no": "IPD-77",
    "name": "Ravi Kumar",
    "date": NOW,
    "age": 54,
    "gender": "male",
    "contactNo": "9876543210",
    "provisionalDiagnosis": "Obstructive sleep apnea",
    "complaints": [{"symptom": "Snoring", "severity": "High", "duration": "2 years"}],
    "riskFactors": {
        "traditionalRiskFactors": {"hypertension": True, "smoking": False},
        "nonTraditionalRiskFactors": {"sleepDisorder": True},
    },
    "consentObtained": True,
}


# ── create_patient ───────────────────────────────────────────────────

def test_create_patient_sets_provenance(services, world, clock):
    p = services.patients.create_patient(world.d1, FULL_FORM)

    assert PatientId.matches(p.id)
    assert p.created_by == world.d1.id
    assert p.last_modified_by == world.d1.id
    assert p.created_at == p.updated_at == clock.now
    assert p.doctor_id is None


def test_create_then_read_round_trip(services, world):
    p = services.patients.create_patient(world.m1, FULL_FORM)
    stored = services.queries.get_patient_by_id(world.m1, p.id).to_dict()
    for key, value in FULL_FORM.items():
        assert stored[key] == value


def test_create_requires_identity(services, world):
    with pytest.raises(AuthenticationError):
        services.patients.create_patient(None, FULL_FORM)


def test_create_requires_ipd_and_date(services, world):
    with pytest.raises(ValidationError) as e:
        services.patients.create_patient(world.m1, {"name": "No ids"})
    fields = {tuple(d["loc"]) for d in e.value.details}
    assert ("ipd_opd_no",) in fields
    assert ("date",) in fields


def test_create_rejects_half_shaped_section(services, world):
    form = dict(FULL_FORM, complaints=[{"symptom": "Snoring"}])
    with pytest.raises(ValidationError):
        services.patients.create_patient(world.m1, form)


def test_main_head_assigns_own_doctor(services, world):
    p = services.patients.create_patient(world.m1, dict(FULL_FORM, doctorId=world.d2.id))
    assert p.doctor_id == world.d2.id
    assert "doctorId" not in p.record


def test_main_head_cannot_assign_foreign_doctor(services, world):
    with pytest.raises(AuthorizationError, match="assign this doctor"):
        services.patients.create_patient(world.m1, dict(FULL_FORM, doctorId=world.d3.id))
    assert services.queries.list_patients_for_caller(world.m1) == []


def test_doctor_assigns_only_itself(services, world):
    p = services.patients.create_patient(world.d1, dict(FULL_FORM, doctorId=world.d1.id))
    assert p.doctor_id == world.d1.id
    with pytest.raises(AuthorizationError):
        services.patients.create_patient(world.d1, dict(FULL_FORM, doctorId=world.d2.id))


# ── update_patient ───────────────────────────────────────────────────

def test_partial_update_merges_fields(services, world, clock):
    p = services.patients.create_patient(world.d1, FULL_FORM)
    clock.advance(60_000)

    updated = services.patients.update_patient(world.m1, p.id, {"finalDiagnosis": "OSA, moderate"})
    assert updated.get("finalDiagnosis") == "OSA, moderate"
    assert updated.get("name") == "Ravi Kumar"
    assert updated.created_by == world.d1.id
    assert updated.last_modified_by == world.m1.id
    assert updated.updated_at == NOW + 60_000
    assert updated.created_at == NOW


def test_update_cannot_change_provenance(services, world):
    p = services.patients.create_patient(world.d1, FULL_FORM)
    updated = services.patients.update_patient(
        world.d1, p.id, {"createdBy": world.m2.id, "createdAt": 1, "name": "Ravi K."}
    )
    assert updated.created_by == world.d1.id
    assert updated.created_at == NOW
    assert updated.get("name") == "Ravi K."


def test_update_missing_patient(services, world):
    with pytest.raises(NotFoundError, match="Patient not found"):
        services.patients.update_patient(world.m1, "pat_missing", {"name": "x"})


def test_update_foreign_patient_denied(services, world):
    p = add_patient(services, world.m2)
    with pytest.raises(AuthorizationError, match="Not authorized to update this patient"):
        services.patients.update_patient(world.m1, p.id, {"name": "x"})
    assert services.store.get_patient(p.id).get("name") is None


def test_reassign_within_network(services, world):
    p = add_patient(services, world.m1, doctorId=world.d1.id)
    updated = services.patients.update_patient(world.m1, p.id, {"doctorId": world.d2.id})
    assert updated.doctor_id == world.d2.id


def test_reassign_outside_network_denied(services, world):
    p = add_patient(services, world.m1, doctorId=world.d1.id)
    with pytest.raises(AuthorizationError):
        services.patients.update_patient(world.m1, p.id, {"doctorId": world.d3.id})
    assert services.store.get_patient(p.id).doctor_id == world.d1.id


def test_unassign_with_null(services, world):
    p = add_patient(services, world.m1, doctorId=world.d1.id)
    updated = services.patients.update_patient(world.m1, p.id, {"doctorId": None})
    assert updated.doctor_id is None


def test_update_without_doctor_keeps_assignment(services, world):
    p = add_patient(services, world.m1, doctorId=world.d1.id)
    updated = services.patients.update_patient(world.d1, p.id, {"age": 60})
    assert updated.doctor_id == world.d1.id


# ── delete_patient ───────────────────────────────────────────────────

def test_delete_patient(services, world):
    p = add_patient(services, world.d1)
    services.patients.delete_patient(world.m1, p.id)
    assert services.store.get_patient(p.id) is None


def test_delete_foreign_patient_denied(services, world):
    p = add_patient(services, world.d3)
    with pytest.raises(AuthorizationError, match="Not authorized to delete this patient"):
        services.patients.delete_patient(world.d1, p.id)
    assert services.store.get_patient(p.id) is not None


def test_delete_missing_patient(services, world):
    with pytest.raises(NotFoundError):
        services.patients.delete_patient(world.m1, "pat_missing")


# ── Doctors ──────────────────────────────────────────────────────────

def test_create_doctor(services, world):
    doctor = services.doctors.create_doctor(
        world.m1, {"email": "new@example.com", "password": "pw", "name": "Dr New"}
    )
    assert UserId.matches(doctor.id)
    assert doctor.role is Role.DOCTOR
    assert doctor.created_by == world.m1.id
    assert doctor.is_active is True
    assert doctor.hashed_password != "pw"
    assert services.authz.can_manage_doctor(world.m1, doctor.id)


def test_create_doctor_duplicate_email(services, world):
    with pytest.raises(ConflictError, match="Email already in use"):
        services.doctors.create_doctor(
            world.m2, {"email": "d1@example.com", "password": "pw", "name": "Dup"}
        )


def test_doctor_cannot_create_doctor(services, world):
    with pytest.raises(AuthorizationError, match="Not authorized to create doctors"):
        services.doctors.create_doctor(
            world.d1, {"email": "x@example.com", "password": "pw", "name": "X"}
        )


def test_create_doctor_validates_fields(services, world):
    with pytest.raises(ValidationError):
        services.doctors.create_doctor(world.m1, {"email": "x@example.com"})


def test_toggle_doctor_status_is_idempotent(services, world, clock):
    clock.advance(1000)
    once = services.doctors.toggle_doctor_status(world.m1, world.d1.id, False)
    twice = services.doctors.toggle_doctor_status(world.m1, world.d1.id, False)
    assert once.is_active is False
    assert twice.is_active is False
    assert twice.updated_at == NOW + 1000

    again = services.doctors.toggle_doctor_status(world.m1, world.d1.id, True)
    assert again.is_active is True


def test_toggle_foreign_doctor_denied(services, world):
    with pytest.raises(AuthorizationError):
        services.doctors.toggle_doctor_status(world.m2, world.d1.id, False)
    assert services.store.get_user(world.d1.id).is_active is True


def test_toggle_unknown_doctor(services, world):
    with pytest.raises(NotFoundError, match="Doctor not found"):
        services.doctors.toggle_doctor_status(world.m1, "usr_missing", False)
    with pytest.raises(NotFoundError):
        services.doctors.toggle_doctor_status(world.m1, world.m2.id, False)


def test_toggle_requires_boolean(services, world):
    with pytest.raises(ValidationError):
        services.doctors.toggle_doctor_status(world.m1, world.d1.id, "false")


# ── Accounts and sessions ────────────────────────────────────────────

def test_register_main_head(services):
    m = services.auth.register_main_head(
        {"email": "boss@example.com", "password": "pw", "name": "Boss"}
    )
    assert m.role is Role.MAIN_HEAD
    assert m.created_by is None
    with pytest.raises(ConflictError):
        services.auth.register_main_head(
            {"email": "boss@example.com", "password": "pw", "name": "Again"}
        )


def test_login_success(services, world):
    result = services.auth.login("d1@example.com", PASSWORD)
    assert result["success"] is True
    assert len(result["token"]) == 32
    assert result["expiresAt"] == NOW + SESSION_TTL_MS
    assert result["user"]["id"] == world.d1.id
    assert "hashed_password" not in result["user"]

    session = services.sessions.find_session_by_token(result["token"])
    assert session.user_id == world.d1.id
    assert services.identity.resolve_caller(token=result["token"]).id == world.d1.id


@pytest.mark.parametrize("email, password", [
    ("ghost@example.com", PASSWORD),
    ("d1@example.com", "wrong"),
])
def test_login_failures_share_one_message(services, world, email, password):
    result = services.auth.login(email, password)
    assert result == {"success": False, "message": INVALID_CREDENTIALS}
    assert services.store.list_sessions_for_email(email) == []


def test_login_inactive_account(services, world):
    add_doctor(services, world.m1, "off@example.com", is_active=False)
    result = services.auth.login("off@example.com", PASSWORD)
    assert result == {"success": False, "message": ACCOUNT_INACTIVE}
    assert services.store.list_sessions_for_email("off@example.com") == []


def test_login_then_logout_by_token(services, world):
    token = services.auth.login("m1@example.com", PASSWORD)["token"]
    assert services.auth.logout(token=token) == {"success": True}
    assert services.identity.resolve_caller(token=token) is None


def test_logout_unknown_token_still_succeeds(services):
    assert services.auth.logout(token="not-a-session") == {"success": True}


def test_logout_native_identity_clears_every_session(services, world):
    services.auth.login("m1@example.com", PASSWORD)
    services.auth.login("m1@example.com", PASSWORD)
    services.auth.login("d1@example.com", PASSWORD)

    result = services.auth.logout(native_email="m1@example.com")
    assert result == {"success": True, "removed": 2}
    assert len(services.store.list_sessions_for_email("d1@example.com")) == 1


def test_logout_without_credentials(services):
    assert services.auth.logout() == {"success": False}


def test_get_current_user(services, world):
    assert services.auth.get_current_user(world.m1)["email"] == "m1@example.com"
    assert services.auth.get_current_user(None) is None


def test_update_cannot_clear_required_fields(services, world):
    p = services.patients.create_patient(world.d1, FULL_FORM)
    with pytest.raises(ValidationError) as e:
        services.patients.update_patient(world.d1, p.id, {"ipd_opd_no": None, "date": None})
    fields = {tuple(d["loc"]) for d in e.value.details}
    assert fields == {("ipd_opd_no",), ("date",)}

    stored = services.store.get_patient(p.id)
    assert stored.get("ipd_opd_no") == "IPD-77"
    assert stored.get("date") == NOW


def test_create_rejects_out_of_range_date(services, world):
    with pytest.raises(ValidationError):
        services.patients.create_patient(world.m1, dict(FULL_FORM, date=10**15))
    with pytest.raises(ValidationError):
        services.patients.create_patient(world.m1, dict(FULL_FORM, dob=10**15))


def test_create_doctor_requires_valid_email(services, world):
    with pytest.raises(ValidationError):
        services.doctors.create_doctor(world.m1, {"email": "abc", "password": "pw", "name": "X"})
