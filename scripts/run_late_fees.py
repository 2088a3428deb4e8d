#!/usr/bin/env python3
"""Apply late fees to every open due whose due date has passed. Safe to run daily."""

from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from apartment_admin.auth.session import AdminSession  # noqa: E402
from apartment_admin.config import SessionLocal, settings  # noqa: E402
from apartment_admin.core.logging import configure_logging  # noqa: E402
from apartment_admin.services.dues import apply_late_fees  # noqa: E402


def main() -> None:
    configure_logging(settings.log_level, json=settings.log_json)
    with SessionLocal() as session:
        updated = apply_late_fees(session, AdminSession.system())
    if updated:
        print(f"Late fees applied to {updated} dues.")
    else:
        print("No dues past their due date.")


if __name__ == "__main__":
    main()
