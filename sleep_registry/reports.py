"""
Aggregate reports over the caller's scoped patient set.
"""

import calendar
from collections import Counter
from datetime import datetime
from typing import Any, Dict, List, Optional

import pandas as pd

from sleep_registry.clock import local_datetime
from sleep_registry.config import (
    AGE_BUCKETS, INCOMPLETE_FIELDS, TOP_DIAGNOSES_LIMIT, TRADITIONAL_RISK_FACTORS,
)
from sleep_registry.models import Patient, Role, User


# ── Helpers ──────────────────────────────────────────────────────────

def is_incomplete(patient: Patient) -> bool:
    """A form is incomplete if any essential field is missing or empty."""
    for name in INCOMPLETE_FIELDS:
        if name == "age_or_dob":
            value = patient.get("age") or patient.get("dob")
        else:
            value = patient.get(name)
        if not value:
            return True
    return False


def gender_distribution(patients: List[Patient]) -> Dict[str, int]:
    dist = {"male": 0, "female": 0, "other": 0, "notSpecified": 0}
    for p in patients:
        gender = p.get("gender")
        if not gender:
            dist["notSpecified"] += 1
        elif gender in ("male", "female"):
            dist[gender] += 1
        else:
            dist["other"] += 1
    return dist


def top_diagnoses(patients: List[Patient], limit: int = TOP_DIAGNOSES_LIMIT) -> List[Dict[str, Any]]:
    """Most frequent provisional diagnoses; ties keep first-seen order."""
    counts = Counter()
    for p in patients:
        diagnosis = p.get("provisionalDiagnosis")
        if diagnosis and diagnosis.strip():
            counts[diagnosis.strip()] += 1
    return [{"diagnosis": d, "count": c} for d, c in counts.most_common(limit)]


def record_datetime(value) -> Optional[datetime]:
    """Local datetime of a stored epoch-ms field, or None if it is not a usable date."""
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        return None
    try:
        return local_datetime(value)
    except (ValueError, OverflowError, OSError):
        return None


def patient_age(patient: Patient, current_year: int) -> Optional[float]:
    """Explicit age, else whole years since the birth year of ``dob``."""
    age = patient.get("age")
    if isinstance(age, (int, float)) and not isinstance(age, bool):
        return float(age)
    born = record_datetime(patient.get("dob"))
    if born is not None:
        return float(current_year - born.year)
    return None


# ── Report handlers ──────────────────────────────────────────────────

class ReportQueries:
    """Dashboard statistics. Built on PatientQueries so scoping is shared."""

    def __init__(self, patient_queries, clock):
        self.patients = patient_queries
        self.clock = clock

    def get_patient_statistics(self, user: Optional[User]) -> Optional[Dict[str, Any]]:
        if user is None:
            return None
        patients = self.patients.list_patients_for_caller(user)
        today = local_datetime(self.clock()).date()

        todays = 0
        for p in patients:
            when = record_datetime(p.get("date"))
            if when is not None and when.date() == today:
                todays += 1

        return {
            "totalPatients": len(patients),
            "todaysPatients": todays,
            "incompletePatients": sum(1 for p in patients if is_incomplete(p)),
            "genderDistribution": gender_distribution(patients),
            "topDiagnoses": top_diagnoses(patients),
        }

    def get_doctor_statistics(self, user: Optional[User]) -> Optional[Dict[str, Any]]:
        if user is None or user.role is not Role.MAIN_HEAD:
            return None
        doctors = self.patients.authz.network_doctors(user)
        patients = self.patients.list_patients_for_caller(user)

        doctor_stats = []
        for doctor in doctors:
            assigned = [p for p in patients if p.doctor_id == doctor.id]
            doctor_stats.append({
                "doctorId": doctor.id,
                "name": doctor.name,
                "patientCount": len(assigned),
                "incompleteFormCount": sum(1 for p in assigned if is_incomplete(p)),
                "isActive": doctor.is_active,
            })

        return {
            "totalDoctors": len(doctors),
            "activeDoctors": sum(1 for d in doctors if d.is_active),
            "doctorStats": doctor_stats,
        }

    def get_monthly_patient_trends(
        self,
        user: Optional[User],
        year: Optional[int] = None,
        doctor_id=None,
    ) -> Optional[Dict[str, Any]]:
        if user is None:
            return None
        year = year or local_datetime(self.clock()).year

        patients = self.patients.list_patients_for_caller(user)
        if user.role is Role.MAIN_HEAD and doctor_id:
            patients = [p for p in patients if p.doctor_id == doctor_id]

        monthly_data = [
            {"month": m, "monthName": calendar.month_abbr[m], "count": 0}
            for m in range(1, 13)
        ]
        for p in patients:
            when = record_datetime(p.get("date"))
            if when is not None and when.year == year:
                monthly_data[when.month - 1]["count"] += 1

        return {"year": year, "monthlyData": monthly_data}

    def get_age_distribution(self, user: Optional[User]) -> Optional[List[Dict[str, Any]]]:
        """Patient counts per age bracket; patients without age or dob are skipped."""
        if user is None:
            return None
        patients = self.patients.list_patients_for_caller(user)
        current_year = local_datetime(self.clock()).year

        labels = [label for label, _, _ in AGE_BUCKETS]
        edges = [low for _, low, _ in AGE_BUCKETS] + [float("inf")]

        ages = pd.Series([patient_age(p, current_year) for p in patients], dtype="float64").dropna()
        ages = ages[ages >= 0]
        if ages.empty:
            return [{"name": label, "count": 0} for label in labels]

        buckets = pd.cut(ages, bins=edges, labels=labels, right=False)
        counts = buckets.value_counts(sort=False)
        return [{"name": label, "count": int(counts.get(label, 0))} for label in labels]

    def get_risk_factor_prevalence(self, user: Optional[User]) -> Optional[List[Dict[str, Any]]]:
        """Traditional cardiovascular risk factors: totals and by gender."""
        if user is None:
            return None
        patients = self.patients.list_patients_for_caller(user)

        rows = []
        for p in patients:
            factors = (p.get("riskFactors") or {}).get("traditionalRiskFactors") or {}
            row = {name: bool(factors.get(name)) for name in TRADITIONAL_RISK_FACTORS}
            row["gender"] = p.get("gender")
            rows.append(row)
        df = pd.DataFrame(rows, columns=[*TRADITIONAL_RISK_FACTORS, "gender"])

        male = df["gender"] == "male"
        female = df["gender"] == "female"
        result = []
        for name in TRADITIONAL_RISK_FACTORS:
            flags = df[name].astype(bool)
            result.append({
                "factor": name,
                "M": int((flags & male).sum()),
                "F": int((flags & female).sum()),
                "Total": int(flags.sum()),
            })
        return result
