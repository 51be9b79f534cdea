"""
Role-Based Access Control – ownership hierarchy and permission checks.

A MainHead owns a network: itself plus every doctor it created.  A patient
with an assigned doctor belongs to that doctor's network; an unassigned
patient belongs to the network of whoever created it.  Doctors see the
patients they created or are assigned to.
"""

from typing import Iterable, List, Optional, Set

from sleep_registry.models import Patient, Role, User, UserId


def patient_in_network(patient: Patient, main_head_id: UserId, doctor_ids: Set[UserId]) -> bool:
    """True if *patient* belongs to the network {main_head_id} ∪ doctor_ids."""
    if patient.doctor_id:
        return patient.doctor_id in doctor_ids
    return patient.created_by == main_head_id or patient.created_by in doctor_ids


def patient_owned_by_doctor(patient: Patient, doctor_id: UserId) -> bool:
    return patient.created_by == doctor_id or patient.doctor_id == doctor_id


def _unknown_role(user: User):
    raise ValueError(f"Unknown role: {user.role}")


class Authorizer:
    """Permission checks. Reads the store only to walk the hierarchy."""

    def __init__(self, store):
        self.store = store

    # ── Hierarchy ────────────────────────────────────────────────────

    def network_doctors(self, main_head: User) -> List[User]:
        return self.store.list_doctors_created_by(main_head.id)

    def network_doctor_ids(self, main_head: User) -> Set[UserId]:
        return {d.id for d in self.network_doctors(main_head)}

    def _network_doctor(self, main_head: User, doctor_id) -> Optional[User]:
        doctor = self.store.get_user(doctor_id)
        if doctor is None or doctor.role is not Role.DOCTOR:
            return None
        if doctor.created_by != main_head.id:
            return None
        return doctor

    # ── Patients ─────────────────────────────────────────────────────

    def can_read_patient(self, user: Optional[User], patient: Optional[Patient]) -> bool:
        if user is None or patient is None:
            return False
        if user.role is Role.MAIN_HEAD:
            return patient_in_network(patient, user.id, self.network_doctor_ids(user))
        if user.role is Role.DOCTOR:
            return patient_owned_by_doctor(patient, user.id)
        _unknown_role(user)

    def can_write_patient(self, user: Optional[User], patient: Optional[Patient]) -> bool:
        return self.can_read_patient(user, patient)

    def can_delete_patient(self, user: Optional[User], patient: Optional[Patient]) -> bool:
        return self.can_read_patient(user, patient)

    def filter_visible(self, user: Optional[User], patients: Iterable[Patient]) -> List[Patient]:
        """Keep only the patients *user* may read, preserving order."""
        if user is None:
            return []
        if user.role is Role.MAIN_HEAD:
            doctor_ids = self.network_doctor_ids(user)
            return [p for p in patients if patient_in_network(p, user.id, doctor_ids)]
        if user.role is Role.DOCTOR:
            return [p for p in patients if patient_owned_by_doctor(p, user.id)]
        _unknown_role(user)

    # ── Doctors ──────────────────────────────────────────────────────

    def can_assign_doctor(self, user: Optional[User], doctor_id) -> bool:
        """A MainHead may assign patients only to doctors it created."""
        if user is None:
            return False
        if user.role is Role.MAIN_HEAD:
            return self._network_doctor(user, doctor_id) is not None
        if user.role is Role.DOCTOR:
            return False
        _unknown_role(user)

    def can_manage_doctor(self, user: Optional[User], doctor_id) -> bool:
        """A MainHead manages (views, activates, lists) only doctors it created."""
        if user is None:
            return False
        if user.role is Role.MAIN_HEAD:
            return self._network_doctor(user, doctor_id) is not None
        if user.role is Role.DOCTOR:
            return False
        _unknown_role(user)

    def can_set_assignment(self, user: Optional[User], doctor_id) -> bool:
        """
        Whether *user* may write ``doctorId = doctor_id`` on a patient.
        Doctors may only assign patients to themselves.
        """
        if user is None:
            return False
        if user.role is Role.MAIN_HEAD:
            return self.can_assign_doctor(user, doctor_id)
        if user.role is Role.DOCTOR:
            return doctor_id == user.id
        _unknown_role(user)
