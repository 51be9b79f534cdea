"""
Scoped record queries – every list is filtered to what the caller may see.

Queries never raise on a missing identity or a forbidden target; they return
an empty list or None so that nothing about other networks leaks.
"""

from typing import Any, Dict, Iterable, List, Optional

from sleep_registry.config import MAX_EXPORT_PATIENTS
from sleep_registry.models import Patient, Role, User


class PatientQueries:
    """Read-side handlers for patients and doctors."""

    def __init__(self, store, authorizer):
        self.store = store
        self.authz = authorizer

    # ── Patients ─────────────────────────────────────────────────────

    def list_patients_for_caller(self, user: Optional[User]) -> List[Patient]:
        if user is None:
            return []
        if user.role is Role.MAIN_HEAD:
            doctor_ids = self.authz.network_doctor_ids(user)
            candidates = self.store.list_patients(
                created_by=[user.id, *doctor_ids],
                doctor_ids=doctor_ids,
            )
            return self.authz.filter_visible(user, candidates)
        if user.role is Role.DOCTOR:
            return self.store.list_patients(created_by=[user.id], doctor_ids=[user.id])
        return []

    def list_patients_by_doctor(self, user: Optional[User], doctor_id=None) -> List[Patient]:
        """
        Patients assigned to one doctor.

        A doctor may only ask about itself; a MainHead only about doctors it
        created.  Without a doctor_id this is the caller's own scope.
        """
        if user is None:
            return []
        if doctor_id is None:
            return self.list_patients_for_caller(user)
        if user.role is Role.DOCTOR:
            if doctor_id != user.id:
                return []
            return self.list_patients_for_caller(user)
        if user.role is Role.MAIN_HEAD:
            if not self.authz.can_manage_doctor(user, doctor_id):
                return []
            return self.store.list_patients(doctor_ids=[doctor_id])
        return []

    def get_patient_by_id(self, user: Optional[User], patient_id) -> Optional[Patient]:
        if user is None:
            return None
        patient = self.store.get_patient(patient_id)
        if not self.authz.can_read_patient(user, patient):
            return None
        return patient

    def get_patient_data_for_export(self, user: Optional[User], patient_ids: Iterable) -> List[Dict[str, Any]]:
        """Visible patients among *patient_ids*, each with its doctor's name."""
        if user is None:
            return []
        rows = []
        doctor_names: Dict[str, str] = {}
        for patient_id in list(patient_ids)[:MAX_EXPORT_PATIENTS]:
            patient = self.get_patient_by_id(user, patient_id)
            if patient is None:
                continue
            data = patient.to_dict()
            data["doctorName"] = "Not Assigned"
            if patient.doctor_id:
                if patient.doctor_id not in doctor_names:
                    doctor = self.store.get_user(patient.doctor_id)
                    doctor_names[patient.doctor_id] = doctor.name if doctor and doctor.name else ""
                data["doctorName"] = doctor_names[patient.doctor_id] or "Not Assigned"
            rows.append(data)
        return rows

    # ── Doctors ──────────────────────────────────────────────────────

    def list_doctors_with_patient_counts(self, user: Optional[User]) -> List[Dict[str, Any]]:
        """
        Doctors created by the calling MainHead.  ``patientCount`` counts only
        patients assigned to the doctor, not ones it created unassigned.
        """
        if user is None or user.role is not Role.MAIN_HEAD:
            return []
        doctors = self.authz.network_doctors(user)
        if not doctors:
            return []
        assigned = self.store.list_patients(doctor_ids=[d.id for d in doctors])
        result = []
        for doctor in doctors:
            entry = doctor.public()
            entry["patientCount"] = sum(1 for p in assigned if p.doctor_id == doctor.id)
            result.append(entry)
        return result

    def get_doctor_by_id(self, user: Optional[User], doctor_id) -> Optional[Dict[str, Any]]:
        if user is None or user.role is not Role.MAIN_HEAD:
            return None
        if not self.authz.can_manage_doctor(user, doctor_id):
            return None
        return self.store.get_user(doctor_id).public()
