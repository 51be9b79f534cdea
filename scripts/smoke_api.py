"""
Smoke check for a running Sleep Registry API.

    python -m sleep_registry.api.app          # in one terminal
    python scripts/smoke_api.py [BASE_URL]    # in another

Anonymous checks run first; the rest need an existing account.
"""

import getpass
import json
import sys

import requests

DEFAULT_BASE_URL = "http://localhost:8000"
PREVIEW_CHARS = 600

# (name, method, path, body, expected status, needs token)
CHECKS = [
    ("Health", "GET", "/health", None, 200, False),
    ("Login rejects bad password", "POST", "/api/auth/login",
     {"email": "nobody@example.com", "password": "wrong"}, 401, False),
    ("Anonymous patient list", "GET", "/api/patients", None, 200, False),
    ("Anonymous create rejected", "POST", "/api/patients",
     {"ipd_opd_no": "SMOKE-0", "date": 0}, 401, False),
    ("Current user", "GET", "/api/auth/me", None, 200, True),
    ("Scoped patients", "GET", "/api/patients", None, 200, True),
    ("Statistics", "GET", "/api/reports/statistics", None, 200, True),
    ("Monthly trends", "GET", "/api/reports/monthly-trends", None, 200, True),
    ("Age distribution", "GET", "/api/reports/age-distribution", None, 200, True),
    ("Logout", "POST", "/api/auth/logout", None, 200, True),
]


def call(http, base_url, method, path, body=None):
    response = http.request(method, f"{base_url}{path}", json=body, timeout=10)
    text = json.dumps(response.json(), indent=2)
    if len(text) > PREVIEW_CHARS:
        text = text[:PREVIEW_CHARS] + "... (truncated)"
    print(f"  {method} {path} -> {response.status_code}\n{text}")
    return response


def main():
    base_url = sys.argv[1] if len(sys.argv) > 1 else DEFAULT_BASE_URL
    print(f"[smoke] Target: {base_url}")

    email = input("Account email (blank for anonymous checks only): ").strip()
    http = requests.Session()

    if email:
        password = getpass.getpass("Password: ")
        resp = call(http, base_url, "POST", "/api/auth/login", {"email": email, "password": password})
        if resp.status_code == 200:
            http.headers["Authorization"] = f"Bearer {resp.json()['token']}"
        else:
            print("[smoke] Login failed; authenticated checks skipped.")
            email = ""

    results = {}
    for name, method, path, body, expected, needs_token in CHECKS:
        if needs_token and not email:
            continue
        print(f"\n[smoke] {name}")
        try:
            resp = call(http, base_url, method, path, body)
        except requests.RequestException as e:
            print(f"[ERROR] {e}")
            results[name] = False
            continue
        results[name] = resp.status_code == expected

    print("\n" + "=" * 50)
    for name, ok in results.items():
        print(f"{'✓ PASS' if ok else '✗ FAIL'}: {name}")
    print(f"\n{sum(results.values())}/{len(results)} checks passed")
    sys.exit(0 if all(results.values()) else 1)


if __name__ == "__main__":
    main()
