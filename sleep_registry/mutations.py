"""
Mutation handlers – patient and doctor writes, login and logout.

Unlike queries, mutations fail loudly: the caller has to know whether the
write happened.
"""

from datetime import timedelta
from typing import Any, Dict, Optional

from pydantic import ValidationError as PydanticValidationError
from werkzeug.security import check_password_hash, generate_password_hash

from sleep_registry.config import SESSION_TTL_DAYS
from sleep_registry.errors import (
    AuthenticationError, AuthorizationError, ConflictError, NotFoundError, ValidationError,
)
from sleep_registry.models import Patient, PatientId, Role, User, UserId
from sleep_registry.schemas import (
    DoctorCreate, LoginRequest, MainHeadCreate, PatientCreate, PatientUpdate,
)
from sleep_registry.sessions import generate_session_token

SESSION_TTL_MS = int(timedelta(days=SESSION_TTL_DAYS).total_seconds() * 1000)

INVALID_CREDENTIALS = "Invalid email or password"
ACCOUNT_INACTIVE = "Account is inactive"


def validate(schema, data):
    """Parse *data* with a pydantic schema, raising our ValidationError."""
    try:
        return schema.model_validate(data or {})
    except PydanticValidationError as e:
        details = [
            {"loc": [str(part) for part in err["loc"]], "msg": err["msg"]}
            for err in e.errors()
        ]
        raise ValidationError("Invalid request data", details=details) from e


def _require(user: Optional[User]) -> User:
    if user is None:
        raise AuthenticationError("Not authenticated")
    return user


def _require_main_head(user: Optional[User], action: str) -> User:
    user = _require(user)
    if user.role is not Role.MAIN_HEAD:
        raise AuthorizationError(f"Not authorized to {action}")
    return user


# ── Patients ─────────────────────────────────────────────────────────

class PatientMutations:

    def __init__(self, store, authorizer, clock):
        self.store = store
        self.authz = authorizer
        self.clock = clock

    def create_patient(self, user: Optional[User], fields: Dict[str, Any]) -> Patient:
        user = _require(user)
        data = validate(PatientCreate, fields)

        doctor_id = None
        if data.doctor_id is not None:
            if not self.authz.can_set_assignment(user, data.doctor_id):
                raise AuthorizationError("Not authorized to assign this doctor")
            doctor_id = UserId(data.doctor_id)

        now = self.clock()
        patient = Patient(
            id=PatientId.new(),
            created_by=user.id,
            last_modified_by=user.id,
            created_at=now,
            updated_at=now,
            doctor_id=doctor_id,
            record=data.record_fields(),
        )
        self.store.insert_patient(patient)
        print(f"[patients] {user.role.value} {user.id} created patient {patient.id}")
        return patient

    def update_patient(self, user: Optional[User], patient_id, fields: Dict[str, Any]) -> Patient:
        user = _require(user)
        existing = self.store.get_patient(patient_id)
        if existing is None:
            raise NotFoundError("Patient not found")
        if not self.authz.can_write_patient(user, existing):
            raise AuthorizationError("Not authorized to update this patient")

        data = validate(PatientUpdate, fields)
        columns = {"updated_at": self.clock(), "last_modified_by": user.id}

        if "doctor_id" in data.model_fields_set and data.doctor_id != existing.doctor_id:
            if data.doctor_id is None:
                columns["doctor_id"] = None
            elif self.authz.can_set_assignment(user, data.doctor_id):
                columns["doctor_id"] = UserId(data.doctor_id)
            else:
                raise AuthorizationError("Not authorized to assign this doctor")

        self.store.patch_patient(existing.id, data.record_fields(), **columns)
        return self.store.get_patient(existing.id)

    def delete_patient(self, user: Optional[User], patient_id) -> None:
        user = _require(user)
        patient = self.store.get_patient(patient_id)
        if patient is None:
            raise NotFoundError("Patient not found")
        if not self.authz.can_delete_patient(user, patient):
            raise AuthorizationError("Not authorized to delete this patient")
        self.store.delete_patient(patient.id)
        print(f"[patients] {user.role.value} {user.id} deleted patient {patient.id}")


# ── Doctors ──────────────────────────────────────────────────────────

class DoctorMutations:

    def __init__(self, store, authorizer, clock):
        self.store = store
        self.authz = authorizer
        self.clock = clock

    def create_doctor(self, main_head: Optional[User], fields: Dict[str, Any]) -> User:
        main_head = _require_main_head(main_head, "create doctors")
        data = validate(DoctorCreate, fields)
        if self.store.get_user_by_email(data.email):
            raise ConflictError("Email already in use")

        now = self.clock()
        doctor = User(
            id=UserId.new(),
            email=data.email,
            hashed_password=generate_password_hash(data.password),
            role=Role.DOCTOR,
            name=data.name,
            created_at=now,
            updated_at=now,
            is_active=True,
            created_by=main_head.id,
        )
        self.store.insert_user(doctor)
        print(f"[doctors] main head {main_head.id} created doctor {doctor.id}")
        return doctor

    def toggle_doctor_status(self, main_head: Optional[User], doctor_id, is_active: bool) -> User:
        main_head = _require_main_head(main_head, "update doctor status")
        if not isinstance(is_active, bool):
            raise ValidationError("isActive must be a boolean")

        doctor = self.store.get_user(doctor_id)
        if doctor is None or doctor.role is not Role.DOCTOR:
            raise NotFoundError("Doctor not found")
        if not self.authz.can_manage_doctor(main_head, doctor.id):
            raise AuthorizationError("Not authorized to update this doctor's status")

        self.store.patch_user(doctor.id, is_active=is_active, updated_at=self.clock())
        return self.store.get_user(doctor.id)


# ── Accounts and sessions ────────────────────────────────────────────

class AuthHandlers:

    def __init__(self, store, session_store, clock):
        self.store = store
        self.sessions = session_store
        self.clock = clock

    def register_main_head(self, fields: Dict[str, Any]) -> User:
        data = validate(MainHeadCreate, fields)
        if self.store.get_user_by_email(data.email):
            raise ConflictError("Email already in use")

        now = self.clock()
        main_head = User(
            id=UserId.new(),
            email=data.email,
            hashed_password=generate_password_hash(data.password),
            role=Role.MAIN_HEAD,
            name=data.name,
            created_at=now,
            updated_at=now,
            is_active=True,
        )
        self.store.insert_user(main_head)
        print(f"[auth] Registered main head {main_head.id}")
        return main_head

    def login(self, email: str, password: str) -> Dict[str, Any]:
        """
        Check credentials and open a session.

        Returns ``{"success": False, "message": ...}`` on failure rather than
        raising; an inactive account gets its own message.
        """
        creds = validate(LoginRequest, {"email": email, "password": password})
        user = self.store.get_user_by_email(creds.email)
        if user is None:
            return {"success": False, "message": INVALID_CREDENTIALS}
        if not user.is_active:
            return {"success": False, "message": ACCOUNT_INACTIVE}
        if not check_password_hash(user.hashed_password, creds.password):
            return {"success": False, "message": INVALID_CREDENTIALS}

        token = generate_session_token()
        expires_at = self.clock() + SESSION_TTL_MS
        self.sessions.create_session(user.id, user.email, user.role, token, expires_at)
        print(f"[auth] {user.role.value} {user.id} logged in")

        return {
            "success": True,
            "user": user.public(),
            "token": token,
            "expiresAt": expires_at,
        }

    def logout(self, token: Optional[str] = None, native_email: Optional[str] = None) -> Dict[str, Any]:
        """End one session by token, or every session of the native identity."""
        if token:
            session = self.sessions.find_session_by_token(token)
            if session is not None:
                self.sessions.delete_session(session.id)
            return {"success": True}
        if native_email:
            removed = self.sessions.delete_sessions_for_email(native_email)
            return {"success": True, "removed": removed}
        return {"success": False}

    def get_current_user(self, user: Optional[User]) -> Optional[Dict[str, Any]]:
        return user.public() if user else None
