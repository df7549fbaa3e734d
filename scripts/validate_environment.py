#!/usr/bin/env python3
"""Validate local front-desk environment readiness."""

from __future__ import annotations

import importlib
import shutil
import sys
import tempfile
from dataclasses import replace
from datetime import date
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from frontdesk.domain.models import PaymentMethod, RoomStatus
from frontdesk.domain.workflow import WorkflowAction
from frontdesk.repository.data_repository import DataRepository
from frontdesk.services.room_service import BookingConflictError, RoomWorkflowService
from frontdesk.utils.config import get_settings

SEPARATOR_LINE = "=" * 44


def _print_result(name: str, success: bool, detail: str = "") -> tuple[bool, str]:
    if success:
        return True, f"[PASS] {name}{detail}"
    return False, f"[FAIL] {name}: {detail}"


def main() -> int:
    results: list[str] = []
    all_passed = True
    temp_dir = tempfile.mkdtemp(prefix="frontdesk-env-")

    # CHECK 1: Python version >= 3.10
    if sys.version_info >= (3, 10):
        ok, line = _print_result("Python " + sys.version.split()[0], True)
    else:
        ok, line = _print_result(
            "Python version >= 3.10",
            False,
            f"found {sys.version.split()[0]}",
        )
    results.append(line)
    all_passed = all_passed and ok

    # CHECK 2: Required packages importable with versions
    package_specs = [
        ("fastapi", "fastapi"),
        ("uvicorn", "uvicorn"),
        ("pydantic", "pydantic"),
        ("pandas", "pandas"),
        ("requests", "requests"),
        ("streamlit", "streamlit"),
        ("httpx", "httpx"),
        ("pytest", "pytest"),
    ]
    import_errors: list[str] = []
    for module_name, dist_name in package_specs:
        try:
            importlib.import_module(module_name)
            version(dist_name)
        except (ImportError, PackageNotFoundError) as exc:
            import_errors.append(f"{module_name} ({exc})")
    if import_errors:
        ok, line = _print_result(
            "Required packages",
            False,
            "missing/unimportable -> " + "; ".join(import_errors),
        )
    else:
        ok, line = _print_result("Required packages: all importable", True)
    results.append(line)
    all_passed = all_passed and ok

    try:
        validation_settings = replace(
            get_settings(),
            database_path=Path(temp_dir) / "frontdesk_validation.db",
            booking_store_enabled=True,
        )
        repository = DataRepository(validation_settings)

        # CHECK 3: Database initialization
        try:
            repository.initialize_database()
            ok, line = _print_result("Database initialization", True)
        except Exception as exc:
            ok, line = _print_result("Database initialization", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

        # CHECK 4: Default room seeding
        try:
            seeded = repository.seed_rooms_if_empty(date(2026, 1, 1))
            if seeded != validation_settings.seed_room_count:
                raise RuntimeError(
                    f"expected {validation_settings.seed_room_count} rooms, got {seeded}"
                )
            ok, line = _print_result("Default rooms", True, f": {seeded} seeded")
        except Exception as exc:
            ok, line = _print_result("Default rooms", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

        # CHECK 5: Check-in records a booking, overlapping re-check-in is blocked
        service = RoomWorkflowService(repository=repository, settings=validation_settings)
        try:
            room = service.list_rooms(RoomStatus.AVAILABLE)[0]
            stay = {
                "status": RoomStatus.OCCUPIED,
                "guest_name": "Validation Guest",
                "check_in_date": "2020-03-01",
                "check_out_date": "2020-03-03",
                "payment_method": PaymentMethod.CARD,
            }
            outcome = service.save_room(room.id, stay)
            if outcome.booking is None:
                raise RuntimeError("check-in did not record a booking")
            service.apply_action(room.id, WorkflowAction.CHECK_OUT)
            service.apply_action(room.id, WorkflowAction.MARK_CLEAN)
            try:
                service.save_room(room.id, {**stay, "guest_name": "Second Guest"})
            except BookingConflictError:
                ok, line = _print_result("Conflict guard", True, ": overlap rejected")
            else:
                raise RuntimeError("overlapping stay was not rejected")
        except Exception as exc:
            ok, line = _print_result("Conflict guard", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

    finally:
        shutil.rmtree(temp_dir, ignore_errors=True)

    print(SEPARATOR_LINE)
    print(" Front Desk Environment Validation")
    print(SEPARATOR_LINE)
    for line in results:
        print(f" {line}")
    print(SEPARATOR_LINE)
    if all_passed:
        print(" All checks passed. Environment is ready.")
        print(SEPARATOR_LINE)
        return 0
    print(" One or more checks failed.")
    print(SEPARATOR_LINE)
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
