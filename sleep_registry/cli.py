"""
Interactive CLI for the Sleep Registry.
Log in as a MainHead or Doctor and browse scoped reports from the terminal.
"""

import getpass

import pandas as pd

from sleep_registry.database import init_engine
from sleep_registry.errors import RegistryError
from sleep_registry.services import build_services

COMMANDS = {
    "stats": "patient statistics",
    "trends [year]": "monthly patient counts",
    "ages": "age distribution",
    "risk": "traditional risk factors by gender",
    "patients": "patients you can see",
    "doctors": "your doctors and their patient counts (main head)",
    "quit": "exit",
}


def print_table(rows, columns=None):
    df = pd.DataFrame(rows, columns=columns)
    if df.empty:
        print("(no rows)")
    else:
        print(df.to_string(index=False))


def register(services):
    print("\n[register] New main head account")
    name = input("Name: ").strip()
    email = input("Email: ").strip()
    password = getpass.getpass("Password: ")
    try:
        user = services.auth.register_main_head({"email": email, "password": password, "name": name})
    except RegistryError as e:
        print(f"\n[ERROR] Registration failed: {e.message}")
        return
    print(f"[register] Created main head {user.email}")


def login(services):
    """Prompt for credentials; return (user, token) or (None, None)."""
    while True:
        try:
            email = input("Email (or 'register' / 'quit'): ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\nExiting.")
            return None, None

        if not email or email.lower() in {"quit", "exit"}:
            print("Goodbye.")
            return None, None
        if email.lower() == "register":
            register(services)
            continue

        password = getpass.getpass("Password: ")
        try:
            result = services.auth.login(email, password)
        except RegistryError as e:
            print(f"\n[ERROR] Login failed: {e.message}")
            continue
        if not result["success"]:
            print(f"\n[ERROR] Login failed: {result['message']}")
            continue

        token = result["token"]
        return services.identity.require_caller(token=token), token


def run_command(services, user, command: str):
    parts = command.split()
    name, args = parts[0].lower(), parts[1:]

    if name == "stats":
        stats = services.reports.get_patient_statistics(user)
        print(f"\nTotal patients:      {stats['totalPatients']}")
        print(f"Seen today:          {stats['todaysPatients']}")
        print(f"Incomplete forms:    {stats['incompletePatients']}")
        print("\n[Gender distribution]")
        print_table([stats["genderDistribution"]])
        print("\n[Top diagnoses]")
        print_table(stats["topDiagnoses"], columns=["diagnosis", "count"])
    elif name == "trends":
        year = int(args[0]) if args else None
        trends = services.reports.get_monthly_patient_trends(user, year)
        print(f"\n[Monthly patients – {trends['year']}]")
        print_table(trends["monthlyData"])
    elif name == "ages":
        print_table(services.reports.get_age_distribution(user))
    elif name == "risk":
        print_table(services.reports.get_risk_factor_prevalence(user))
    elif name == "patients":
        rows = [
            {k: p.to_dict().get(k) for k in ("id", "ipd_opd_no", "name", "gender", "doctorId")}
            for p in services.queries.list_patients_for_caller(user)
        ]
        print_table(rows, columns=["id", "ipd_opd_no", "name", "gender", "doctorId"])
    elif name == "doctors":
        doctors = services.queries.list_doctors_with_patient_counts(user)
        print_table(doctors, columns=["id", "name", "email", "isActive", "patientCount"])
    else:
        print("Unknown command. Available:")
        for cmd, desc in COMMANDS.items():
            print(f"  {cmd:<15} {desc}")


def main():
    print("=== Sleep Registry: scoped reports console ===\n")

    engine = init_engine()
    services = build_services(engine)

    # ── Login ────────────────────────────────────────────────────────
    user, token = login(services)
    if user is None:
        return

    print(f"\n[auth] Logged in as: {user.name} (role={user.role.value})")

    # ── REPL ─────────────────────────────────────────────────────────
    try:
        while True:
            try:
                q = input("\nCommand (or 'help' / 'quit'): ").strip()
            except (EOFError, KeyboardInterrupt):
                print("\nExiting.")
                break

            if not q:
                continue
            if q.lower() in {"quit", "exit"}:
                print("Goodbye.")
                break

            try:
                run_command(services, user, q)
            except ValueError as e:
                print("\n[ERROR] Could not run command.")
                print("Details:", e)
    finally:
        services.auth.logout(token=token)


if __name__ == "__main__":
    main()
