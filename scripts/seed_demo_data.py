#!/usr/bin/env python3
"""
Seed a database with a demo main head, its doctors and synthetic patients.

Writes go through the regular handlers, so every patient is created and
assigned exactly as a clinician would do it.
"""

import random
from datetime import datetime, timedelta

from faker import Faker

from sleep_registry.config import DB_URI
from sleep_registry.database import init_engine
from sleep_registry.services import build_services

# --------------------------------------------------------------------
# CONFIG
# --------------------------------------------------------------------
NUM_DOCTORS = 4
NUM_PATIENTS = 60
DEMO_PASSWORD = "demo-password"

DIAGNOSES = [
    "Obstructive sleep apnea",
    "Central sleep apnea",
    "Insomnia",
    "Restless legs syndrome",
    "Narcolepsy",
    "Upper airway resistance syndrome",
]
FREQUENCY = ["rarely", "sometimes", "often", "always"]
SEVERITY = ["notAtAll", "slightly", "moderately", "severely"]

# --------------------------------------------------------------------
# SETUP
# --------------------------------------------------------------------
fake = Faker()
random.seed(42)
Faker.seed(42)


# --------------------------------------------------------------------
# HELPERS
# --------------------------------------------------------------------
def random_bool(p_true=0.5):
    return random.random() < p_true


def random_ms_within(days_back=365):
    delta = timedelta(days=random.randint(0, days_back), seconds=random.randint(0, 86400))
    return int((datetime.now() - delta).timestamp() * 1000)


def condition():
    has_it = random_bool(0.25)
    return {
        "status": has_it,
        "duration": f"{random.randint(1, 15)} years" if has_it else None,
        "treatment": fake.word() if has_it else None,
    }


def patient_form(i):
    birth = fake.date_of_birth(minimum_age=18, maximum_age=90)
    form = {
        "ipd_opd_no": f"OPD-{1000 + i}",
        "name": fake.name(),
        "date": random_ms_within(),
        "gender": random.choice(["male", "female", "male", "other"]),
        "contactNo": fake.phone_number() if random_bool(0.9) else None,
        "address": fake.address(),
        "maritalStatus": random.choice(["married", "unmarried", "divorced", "widowed"]),
        "provisionalDiagnosis": random.choice(DIAGNOSES) if random_bool(0.85) else None,
        "consentObtained": random_bool(0.9),
        "complaints": [
            {"symptom": "snoring", "severity": random.choice(SEVERITY), "duration": "2 years"},
        ],
        "medicalHistory": {
            key: condition()
            for key in ("hypertension", "heartDisease", "stroke", "diabetes",
                        "copd", "asthma", "neurologicalDisorders")
        },
        "anthropometricParameters": {
            "height": round(random.uniform(150, 195), 1),
            "bodyWeight": round(random.uniform(50, 130), 1),
            "neckCircumference": round(random.uniform(32, 48), 1),
            "apneaHypopneaIndex": round(random.uniform(0, 60), 1),
        },
        "riskFactors": {
            "traditionalRiskFactors": {
                "hypertension": random_bool(0.4),
                "diabetesMellitus": random_bool(0.2),
                "hyperlipidemia": random_bool(0.3),
                "obesity": random_bool(0.35),
                "smoking": random_bool(0.2),
                "familyHistory": random_bool(0.25),
            },
            "nonTraditionalRiskFactors": {
                "sleepDisorder": True,
                "depressionAndAnxiety": random_bool(0.2),
            },
        },
        "saqliQuestionnaire": {
            "dailyFunctioning": {"troubleWithDailyActivities": random.choice(FREQUENCY)},
            "socialInteractions": {"feltIsolated": random.choice(FREQUENCY)},
            "emotionalFunctioning": {"depression": random.choice(SEVERITY)},
            "symptoms": {"snoringAffected": random.choice(SEVERITY)},
        },
    }
    if random_bool(0.5):
        form["age"] = datetime.now().year - birth.year
    else:
        form["dob"] = int(datetime.combine(birth, datetime.min.time()).timestamp() * 1000)
    return form


# --------------------------------------------------------------------
# MAIN
# --------------------------------------------------------------------
def main():
    engine = init_engine(DB_URI)
    services = build_services(engine)

    main_head = services.auth.register_main_head({
        "email": fake.unique.email(),
        "password": DEMO_PASSWORD,
        "name": fake.name(),
    })
    print(f"[seed] main head: {main_head.email} / {DEMO_PASSWORD}")

    doctors = []
    for _ in range(NUM_DOCTORS):
        doctor = services.doctors.create_doctor(main_head, {
            "email": fake.unique.email(),
            "password": DEMO_PASSWORD,
            "name": f"Dr. {fake.last_name()}",
        })
        doctors.append(doctor)
        print(f"[seed] doctor: {doctor.email} / {DEMO_PASSWORD}")

    for i in range(NUM_PATIENTS):
        form = patient_form(i)
        if random_bool(0.6):
            # main head intake, assigned to one of its doctors
            form["doctorId"] = random.choice(doctors).id
            services.patients.create_patient(main_head, form)
        else:
            doctor = random.choice(doctors)
            if random_bool(0.5):
                form["doctorId"] = doctor.id
            services.patients.create_patient(doctor, form)

    print(f"[seed] Inserted {NUM_PATIENTS} patients across {NUM_DOCTORS} doctors.")


if __name__ == "__main__":
    main()
