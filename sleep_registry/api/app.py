"""
Flask application factory and server entry-point.
"""

import os
import sys
import traceback

from flask import Flask
from flask_cors import CORS

from sleep_registry.config import NATIVE_IDENTITY_HEADER, SECRET_KEY, SESSION_TTL_DAYS
from sleep_registry.database import init_engine
from sleep_registry.services import build_services
from sleep_registry.api.routes import register_routes


def create_app(engine=None, clock=None, config=None):
    """Build and return a fully configured Flask application."""
    app = Flask(__name__)
    app.config["SECRET_KEY"] = SECRET_KEY
    app.config["NATIVE_IDENTITY_HEADER"] = NATIVE_IDENTITY_HEADER
    if config:
        app.config.update(config)
    CORS(app)

    # ── Initialise shared resources ──────────────────────────────────
    try:
        if engine is None:
            print("[init] Initializing database connection...")
            engine = init_engine()
        services = build_services(engine, clock)
        print("[init] ✓ API server ready")
    except Exception as e:
        print(f"[FATAL] Failed to initialize: {e}", file=sys.stderr)
        traceback.print_exc()
        sys.exit(1)

    app.extensions["sleep_registry"] = services

    # ── Register routes ──────────────────────────────────────────────
    register_routes(app, services)

    return app


def main():
    """Run the development server."""
    print("=" * 60)
    print("Sleep Registry – REST API Server")
    print("=" * 60)

    app = create_app()

    host = os.getenv("API_HOST", "0.0.0.0")
    port = int(os.getenv("API_PORT", "8000"))
    debug = os.getenv("FLASK_ENV") == "development"

    print(f"\n[server] Starting Flask API on {host}:{port}")
    print(f"[server] Debug mode: {debug}")
    print(f"[server] CORS enabled: True")
    print(f"[server] Session expiry: {SESSION_TTL_DAYS} days")
    print(f"[server] Native identity header: {app.config['NATIVE_IDENTITY_HEADER'] or 'disabled'}")
    print("\nAPI Endpoints:")
    for rule in sorted(app.url_map.iter_rules(), key=lambda r: r.rule):
        if rule.endpoint == "static":
            continue
        methods = ",".join(sorted(rule.methods - {"HEAD", "OPTIONS"}))
        print(f"  - {methods:<12} http://{host}:{port}{rule.rule}")
    print("\n" + "=" * 60)

    app.run(host=host, port=port, debug=debug, threaded=True)


if __name__ == "__main__":
    main()
