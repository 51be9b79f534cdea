"""
Domain dataclasses used across the application.
"""

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class Role(str, Enum):
    """Closed set of account roles."""
    MAIN_HEAD = "mainHead"
    DOCTOR = "doctor"


# ── Tagged identifiers ───────────────────────────────────────────────

class _TaggedId(str):
    """An opaque string id that only belongs to one collection."""
    prefix = ""

    def __new__(cls, value):
        value = str(value)
        if not cls.matches(value):
            raise ValueError(f"{value!r} is not a valid {cls.__name__}")
        return super().__new__(cls, value)

    @classmethod
    def matches(cls, value) -> bool:
        return isinstance(value, str) and value.startswith(cls.prefix) and len(value) > len(cls.prefix)

    @classmethod
    def new(cls):
        return cls(cls.prefix + uuid.uuid4().hex)


class UserId(_TaggedId):
    prefix = "usr_"


class PatientId(_TaggedId):
    prefix = "pat_"


class SessionId(_TaggedId):
    prefix = "ses_"


# ── Records ──────────────────────────────────────────────────────────

@dataclass
class User:
    """A MainHead or Doctor account."""
    id: UserId
    email: str
    hashed_password: str
    role: Role
    name: str
    created_at: int
    updated_at: int
    is_active: bool = True
    created_by: Optional[UserId] = None   # MainHead that created a doctor

    @property
    def is_main_head(self) -> bool:
        return self.role is Role.MAIN_HEAD

    @property
    def is_doctor(self) -> bool:
        return self.role is Role.DOCTOR

    def public(self) -> Dict[str, Any]:
        """Profile without the password hash."""
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "role": self.role.value,
            "createdAt": self.created_at,
            "isActive": self.is_active,
        }


@dataclass
class Session:
    """A token-keyed login credential."""
    id: SessionId
    user_id: UserId
    email: str
    role: Role
    token: str
    created_at: int
    expires_at: Optional[int] = None   # epoch ms; None never expires

    def is_valid_at(self, now_ms: int) -> bool:
        return self.expires_at is None or self.expires_at > now_ms


@dataclass
class Patient:
    """
    A patient intake document.

    ``record`` holds the clinical form as supplied by clinicians (wire field
    names); provenance and assignment live in their own attributes.
    """
    id: PatientId
    created_by: UserId
    last_modified_by: UserId
    created_at: int
    updated_at: int
    doctor_id: Optional[UserId] = None
    record: Dict[str, Any] = field(default_factory=dict)

    def get(self, name: str, default=None):
        return self.record.get(name, default)

    def to_dict(self) -> Dict[str, Any]:
        data = dict(self.record)
        data.update({
            "id": self.id,
            "doctorId": self.doctor_id,
            "createdBy": self.created_by,
            "lastModifiedBy": self.last_modified_by,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        })
        return data
