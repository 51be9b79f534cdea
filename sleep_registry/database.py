"""
Database engine initialisation, table definitions and the Store handle.

The engine is created once by the app factory (or CLI) and handed to a
``Store``; handlers receive the Store and never reach for a global client.
"""

import sys
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import (
    JSON, BigInteger, Boolean, Column, MetaData, String, Table,
    create_engine, delete, insert, or_, select, text, update,
)

from sleep_registry.config import DB_URI
from sleep_registry.models import (
    Patient, PatientId, Role, Session, SessionId, User, UserId,
)

metadata = MetaData()

users = Table(
    "users", metadata,
    Column("id", String(40), primary_key=True),
    Column("email", String(255), nullable=False, unique=True, index=True),
    Column("hashed_password", String(255), nullable=False),
    Column("role", String(20), nullable=False, index=True),
    Column("name", String(255), nullable=False),
    Column("created_at", BigInteger, nullable=False),
    Column("updated_at", BigInteger, nullable=False),
    Column("is_active", Boolean, nullable=False, default=True),
    Column("created_by", String(40), nullable=True, index=True),
)

sessions = Table(
    "sessions", metadata,
    Column("id", String(40), primary_key=True),
    Column("user_id", String(40), nullable=False),
    Column("email", String(255), nullable=False, index=True),
    Column("role", String(20), nullable=False),
    Column("token", String(255), nullable=False, index=True),
    Column("created_at", BigInteger, nullable=False),
    Column("expires_at", BigInteger, nullable=True),
)

patients = Table(
    "patients", metadata,
    Column("id", String(40), primary_key=True),
    Column("created_by", String(40), nullable=False, index=True),
    Column("doctor_id", String(40), nullable=True, index=True),
    Column("last_modified_by", String(40), nullable=False),
    Column("created_at", BigInteger, nullable=False),
    Column("updated_at", BigInteger, nullable=False),
    Column("record", JSON, nullable=False),
)


def init_engine(db_uri: Optional[str] = None):
    """Create a SQLAlchemy engine, verify the connection and create tables."""
    engine = create_engine(db_uri or DB_URI, echo=False, future=True)
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception as e:
        print("ERROR: could not connect to DB:", e, file=sys.stderr)
        sys.exit(1)
    create_schema(engine)
    print("[init] Connected to DB.")
    return engine


def create_schema(engine) -> None:
    metadata.create_all(engine)


# ── Row mapping ──────────────────────────────────────────────────────

def _user_from_row(row) -> User:
    return User(
        id=UserId(row["id"]),
        email=row["email"],
        hashed_password=row["hashed_password"],
        role=Role(row["role"]),
        name=row["name"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
        is_active=bool(row["is_active"]),
        created_by=UserId(row["created_by"]) if row["created_by"] else None,
    )


def _session_from_row(row) -> Session:
    return Session(
        id=SessionId(row["id"]),
        user_id=UserId(row["user_id"]),
        email=row["email"],
        role=Role(row["role"]),
        token=row["token"],
        created_at=row["created_at"],
        expires_at=row["expires_at"],
    )


def _patient_from_row(row) -> Patient:
    return Patient(
        id=PatientId(row["id"]),
        created_by=UserId(row["created_by"]),
        doctor_id=UserId(row["doctor_id"]) if row["doctor_id"] else None,
        last_modified_by=UserId(row["last_modified_by"]),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
        record=dict(row["record"] or {}),
    )


class Store:
    """Data access for the users, sessions and patients collections."""

    def __init__(self, engine):
        self.engine = engine

    # ── users ────────────────────────────────────────────────────────

    def get_user(self, user_id) -> Optional[User]:
        if not UserId.matches(user_id):
            return None
        with self.engine.connect() as conn:
            row = conn.execute(select(users).where(users.c.id == user_id)).mappings().first()
        return _user_from_row(row) if row else None

    def get_user_by_email(self, email: str) -> Optional[User]:
        with self.engine.connect() as conn:
            row = conn.execute(select(users).where(users.c.email == email)).mappings().first()
        return _user_from_row(row) if row else None

    def list_doctors_created_by(self, main_head_id: UserId) -> List[User]:
        sql = (
            select(users)
            .where(users.c.role == Role.DOCTOR.value, users.c.created_by == main_head_id)
            .order_by(users.c.created_at)
        )
        with self.engine.connect() as conn:
            rows = conn.execute(sql).mappings().all()
        return [_user_from_row(r) for r in rows]

    def insert_user(self, user: User) -> UserId:
        with self.engine.begin() as conn:
            conn.execute(insert(users).values(
                id=user.id,
                email=user.email,
                hashed_password=user.hashed_password,
                role=user.role.value,
                name=user.name,
                created_at=user.created_at,
                updated_at=user.updated_at,
                is_active=user.is_active,
                created_by=user.created_by,
            ))
        return user.id

    def patch_user(self, user_id: UserId, **values) -> None:
        with self.engine.begin() as conn:
            conn.execute(update(users).where(users.c.id == user_id).values(**values))

    # ── sessions ─────────────────────────────────────────────────────

    def insert_session(self, session: Session) -> SessionId:
        with self.engine.begin() as conn:
            conn.execute(insert(sessions).values(
                id=session.id,
                user_id=session.user_id,
                email=session.email,
                role=session.role.value,
                token=session.token,
                created_at=session.created_at,
                expires_at=session.expires_at,
            ))
        return session.id

    def get_session_by_token(self, token: str) -> Optional[Session]:
        with self.engine.connect() as conn:
            row = conn.execute(
                select(sessions).where(sessions.c.token == token).order_by(sessions.c.created_at)
            ).mappings().first()
        return _session_from_row(row) if row else None

    def list_sessions_for_email(self, email: str) -> List[Session]:
        with self.engine.connect() as conn:
            rows = conn.execute(select(sessions).where(sessions.c.email == email)).mappings().all()
        return [_session_from_row(r) for r in rows]

    def delete_session(self, session_id) -> None:
        with self.engine.begin() as conn:
            conn.execute(delete(sessions).where(sessions.c.id == session_id))

    def delete_sessions_for_email(self, email: str) -> int:
        with self.engine.begin() as conn:
            result = conn.execute(delete(sessions).where(sessions.c.email == email))
            return result.rowcount

    # ── patients ─────────────────────────────────────────────────────

    def get_patient(self, patient_id) -> Optional[Patient]:
        if not PatientId.matches(patient_id):
            return None
        with self.engine.connect() as conn:
            row = conn.execute(select(patients).where(patients.c.id == patient_id)).mappings().first()
        return _patient_from_row(row) if row else None

    def list_patients(
        self,
        created_by: Iterable[UserId] = (),
        doctor_ids: Iterable[UserId] = (),
    ) -> List[Patient]:
        """
        Patients whose ``created_by`` or ``doctor_id`` is in the given sets.
        With no filters at all, nothing matches.
        """
        created_by = list(created_by)
        doctor_ids = list(doctor_ids)
        sql = select(patients)
        clauses = []
        if created_by:
            clauses.append(patients.c.created_by.in_(created_by))
        if doctor_ids:
            clauses.append(patients.c.doctor_id.in_(doctor_ids))
        if not clauses:
            return []
        sql = sql.where(or_(*clauses))
        with self.engine.connect() as conn:
            rows = conn.execute(sql).mappings().all()
        return [_patient_from_row(r) for r in rows]

    def insert_patient(self, patient: Patient) -> PatientId:
        with self.engine.begin() as conn:
            conn.execute(insert(patients).values(
                id=patient.id,
                created_by=patient.created_by,
                doctor_id=patient.doctor_id,
                last_modified_by=patient.last_modified_by,
                created_at=patient.created_at,
                updated_at=patient.updated_at,
                record=patient.record,
            ))
        return patient.id

    def patch_patient(
        self,
        patient_id: PatientId,
        record_fields: Dict[str, Any],
        **columns,
    ) -> None:
        """Merge ``record_fields`` into the stored form and set ``columns``."""
        with self.engine.begin() as conn:
            row = conn.execute(
                select(patients.c.record).where(patients.c.id == patient_id)
            ).mappings().first()
            if row is None:
                return
            record = dict(row["record"] or {})
            record.update(record_fields)
            conn.execute(
                update(patients).where(patients.c.id == patient_id).values(record=record, **columns)
            )

    def delete_patient(self, patient_id: PatientId) -> None:
        with self.engine.begin() as conn:
            conn.execute(delete(patients).where(patients.c.id == patient_id))
