"""
Flask route handlers for the REST API.
"""

import sys
import traceback

from flask import jsonify, request
from sqlalchemy import text

from sleep_registry.errors import RegistryError
from sleep_registry.api.auth import caller_optional, token_required


def _json_body():
    """The request's JSON object minus the token, or None if it is not JSON."""
    if not request.is_json:
        return None
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        return None
    body = dict(body)
    body.pop("token", None)
    return body


def _bad_content_type():
    return jsonify({"error": "Content-Type must be application/json"}), 400


def register_routes(app, services):
    """Register all API routes on the Flask *app*."""

    # ── Health / info ────────────────────────────────────────────────

    @app.route("/", methods=["GET"])
    def index():
        return jsonify({
            "service": "Sleep Registry API",
            "version": "1.0.0",
            "status": "running",
            "endpoints": {
                "auth": "/api/auth/login",
                "patients": "/api/patients",
                "doctors": "/api/doctors",
                "reports": "/api/reports/statistics",
                "logout": "/api/auth/logout",
                "health": "/health",
            },
        })

    @app.route("/health", methods=["GET"])
    def health():
        checks = {"database": False}
        try:
            with services.store.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            checks["database"] = True
        except Exception as e:
            print(f"[WARN] Health check failed: {e}", file=sys.stderr)

        all_healthy = all(checks.values())
        return jsonify({
            "status": "healthy" if all_healthy else "unhealthy",
            "checks": checks,
        }), 200 if all_healthy else 503

    # ── Auth ─────────────────────────────────────────────────────────

    @app.route("/api/auth/register", methods=["POST"])
    def register_main_head():
        data = _json_body()
        if data is None:
            return _bad_content_type()
        user = services.auth.register_main_head(data)
        return jsonify({"success": True, "userId": user.id}), 201

    @app.route("/api/auth/login", methods=["POST"])
    def login():
        data = _json_body()
        if data is None:
            return _bad_content_type()
        result = services.auth.login(data.get("email"), data.get("password"))
        return jsonify(result), 200 if result["success"] else 401

    @app.route("/api/auth/logout", methods=["POST"])
    @caller_optional
    def logout():
        result = services.auth.logout(token=request.token, native_email=request.native_email)
        return jsonify(result), 200 if result["success"] else 401

    @app.route("/api/auth/me", methods=["GET"])
    @caller_optional
    def current_user():
        return jsonify({"user": services.auth.get_current_user(request.caller)}), 200

    # ── Doctors ──────────────────────────────────────────────────────

    @app.route("/api/doctors", methods=["GET"])
    @caller_optional
    def list_doctors():
        return jsonify(services.queries.list_doctors_with_patient_counts(request.caller)), 200

    @app.route("/api/doctors/<doctor_id>", methods=["GET"])
    @caller_optional
    def get_doctor(doctor_id):
        doctor = services.queries.get_doctor_by_id(request.caller, doctor_id)
        if doctor is None:
            return jsonify({"error": "Doctor not found"}), 404
        return jsonify(doctor), 200

    @app.route("/api/doctors", methods=["POST"])
    @token_required
    def create_doctor():
        data = _json_body()
        if data is None:
            return _bad_content_type()
        doctor = services.doctors.create_doctor(request.caller, data)
        return jsonify({"success": True, "doctorId": doctor.id}), 201

    @app.route("/api/doctors/<doctor_id>/status", methods=["PATCH", "POST"])
    @token_required
    def toggle_doctor_status(doctor_id):
        data = _json_body()
        if data is None:
            return _bad_content_type()
        doctor = services.doctors.toggle_doctor_status(request.caller, doctor_id, data.get("isActive"))
        return jsonify({"success": True, "doctor": doctor.public()}), 200

    # ── Patients ─────────────────────────────────────────────────────

    @app.route("/api/patients", methods=["GET"])
    @caller_optional
    def list_patients():
        doctor_id = request.args.get("doctorId")
        if doctor_id:
            patients = services.queries.list_patients_by_doctor(request.caller, doctor_id)
        else:
            patients = services.queries.list_patients_for_caller(request.caller)
        return jsonify([p.to_dict() for p in patients]), 200

    @app.route("/api/patients/<patient_id>", methods=["GET"])
    @caller_optional
    def get_patient(patient_id):
        patient = services.queries.get_patient_by_id(request.caller, patient_id)
        if patient is None:
            return jsonify({"error": "Patient not found"}), 404
        return jsonify(patient.to_dict()), 200

    @app.route("/api/patients", methods=["POST"])
    @token_required
    def create_patient():
        data = _json_body()
        if data is None:
            return _bad_content_type()
        patient = services.patients.create_patient(request.caller, data)
        return jsonify({"success": True, "patientId": patient.id}), 201

    @app.route("/api/patients/<patient_id>", methods=["PATCH"])
    @token_required
    def update_patient(patient_id):
        data = _json_body()
        if data is None:
            return _bad_content_type()
        patient = services.patients.update_patient(request.caller, patient_id, data)
        return jsonify({"success": True, "patient": patient.to_dict()}), 200

    @app.route("/api/patients/<patient_id>", methods=["DELETE"])
    @token_required
    def delete_patient(patient_id):
        services.patients.delete_patient(request.caller, patient_id)
        return jsonify({"success": True}), 200

    @app.route("/api/patients/export", methods=["POST"])
    @caller_optional
    def export_patients():
        data = _json_body()
        if data is None:
            return _bad_content_type()
        patient_ids = data.get("patientIds") or []
        if not isinstance(patient_ids, list):
            return jsonify({"error": "patientIds must be a list"}), 400
        return jsonify(services.queries.get_patient_data_for_export(request.caller, patient_ids)), 200

    # ── Reports ──────────────────────────────────────────────────────

    @app.route("/api/reports/statistics", methods=["GET"])
    @caller_optional
    def patient_statistics():
        return jsonify(services.reports.get_patient_statistics(request.caller)), 200

    @app.route("/api/reports/doctor-statistics", methods=["GET"])
    @caller_optional
    def doctor_statistics():
        return jsonify(services.reports.get_doctor_statistics(request.caller)), 200

    @app.route("/api/reports/monthly-trends", methods=["GET"])
    @caller_optional
    def monthly_trends():
        year = request.args.get("year", type=int)
        doctor_id = request.args.get("doctorId") or None
        return jsonify(services.reports.get_monthly_patient_trends(request.caller, year, doctor_id)), 200

    @app.route("/api/reports/age-distribution", methods=["GET"])
    @caller_optional
    def age_distribution():
        return jsonify(services.reports.get_age_distribution(request.caller)), 200

    @app.route("/api/reports/risk-factors", methods=["GET"])
    @caller_optional
    def risk_factors():
        return jsonify(services.reports.get_risk_factor_prevalence(request.caller)), 200

    # ── Error handlers ───────────────────────────────────────────────

    @app.errorhandler(RegistryError)
    def registry_error(e):
        body = {"success": False, "error": e.message}
        details = getattr(e, "details", None)
        if details:
            body["details"] = details
        return jsonify(body), e.status_code

    @app.errorhandler(404)
    def not_found(e):
        return jsonify({"error": "Endpoint not found", "message": str(e)}), 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return jsonify({"error": "Method not allowed", "message": str(e)}), 405

    @app.errorhandler(500)
    def internal_error(e):
        print(f"[ERROR] Unhandled error: {e}", file=sys.stderr)
        traceback.print_exc()
        return jsonify({"error": "Internal server error"}), 500
