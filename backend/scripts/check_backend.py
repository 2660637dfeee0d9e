#!/usr/bin/env python3
"""
Quick checks so the backend can start. Run from backend/:
  python scripts/check_backend.py
"""
import os
import socket
import sys
from pathlib import Path

# Run from backend/
backend_dir = Path(__file__).resolve().parent.parent
os.chdir(backend_dir)
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))


def main() -> int:
    errors = []
    warnings = []

    # 1) .env
    env_file = backend_dir / ".env"
    if not env_file.exists():
        errors.append("backend/.env missing. Create it and set DATABASE_URL, CLERK_JWKS_URL, YELP_API_KEY.")
    else:
        print("OK  .env exists")

    from mood_discovery.config import settings

    # 2) Credentials: missing Yelp/Clerk keys start fine but degrade the API
    if not settings.yelp_api_key:
        warnings.append("YELP_API_KEY not set: chat and place endpoints return 503.")
    if not settings.clerk_jwks_url:
        warnings.append("CLERK_JWKS_URL not set: every authenticated request returns 401.")
    if not settings.openweather_api_key:
        warnings.append("OPENWEATHER_API_KEY not set: context has no weather.")

    # 3) DB connection
    try:
        from sqlalchemy import text

        from mood_discovery.db.session import Database

        database = Database(settings.database_url)
        try:
            with database.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        finally:
            database.dispose()
        print("OK  Database connection (DATABASE_URL)")
    except Exception as e:
        errors.append(f"Database: {e}")
        print("FAIL Database:", e)

    # 4) App import (catches missing deps, bad imports)
    try:
        from mood_discovery.main import app  # noqa: F401

        print("OK  App import (mood_discovery.main)")
    except Exception as e:
        errors.append(f"App import: {e}")
        print("FAIL App import:", e)
        print("\nFix the above, then run:")
        print(f"  uvicorn mood_discovery.main:app --reload --port {settings.port}")
        return 1

    # 5) Port
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
            s.bind(("127.0.0.1", settings.port))
        print(f"OK  Port {settings.port} is free")
    except OSError:
        errors.append(f"Port {settings.port} is in use. Stop the other process or set PORT.")
        print(f"FAIL Port {settings.port} is in use")

    for w in warnings:
        print("WARN", w)

    if errors:
        print("\n---")
        for e in errors:
            print("•", e)
        return 1

    print(f"\nAll checks passed. Start with: uvicorn mood_discovery.main:app --reload --port {settings.port}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
