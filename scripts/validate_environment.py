#!/usr/bin/env python3
"""Validate local OPD engine environment readiness."""

from __future__ import annotations

import importlib
import shutil
import sys
import tempfile
from dataclasses import replace
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from backend.domain.errors import NoCapacityError
from backend.repository.data_repository import DataRepository
from backend.services.opd_service import OPDWorkflowService
from backend.utils.config import get_settings

SEPARATOR_LINE = "=" * 44


def _print_result(name: str, success: bool, detail: str = "") -> tuple[bool, str]:
    if success:
        return True, f"[PASS] {name}{detail}"
    return False, f"[FAIL] {name}: {detail}"


def main() -> int:
    results: list[str] = []
    all_passed = True
    temp_dir = tempfile.mkdtemp(prefix="opd-env-")

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

    # CHECK 2: Required packages importable
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
        except Exception as exc:  # pragma: no cover
            import_errors.append(f"{dist_name} ({exc})")
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
            database_path=Path(temp_dir) / "opd_validation.db",
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

        # CHECK 4: Smoke allocation: two slots, capacity one
        workflow = OPDWorkflowService(repository=repository, settings=validation_settings)
        try:
            doctor = workflow.create_doctor(
                name="Dr. Validation",
                start_time="09:00",
                end_time="09:30",
                slot_duration_minutes=15,
                max_patients_per_slot=1,
            )
            for index in range(2):
                workflow.allocate(
                    doctor_id=doctor.id,
                    date="2026-02-23",
                    patient_name=f"Walk-in {index + 1}",
                    source="WALK_IN",
                )
            try:
                workflow.allocate(
                    doctor_id=doctor.id,
                    date="2026-02-23",
                    patient_name="Walk-in 3",
                    source="WALK_IN",
                )
                raise RuntimeError("third booking should have been refused")
            except NoCapacityError:
                pass
            ok, line = _print_result("Smoke allocation", True, ": 2 booked, 1 refused")
        except Exception as exc:
            ok, line = _print_result("Smoke allocation", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

        # CHECK 5: Snapshot round trip
        try:
            restored = repository.load_store()
            if len(restored.tokens) != 2 or len(restored.slots) != 2:
                raise RuntimeError(
                    f"expected 2 slots and 2 tokens, got {len(restored.slots)} and {len(restored.tokens)}"
                )
            ok, line = _print_result("Snapshot round trip", True)
        except Exception as exc:
            ok, line = _print_result("Snapshot round trip", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

    finally:
        shutil.rmtree(temp_dir, ignore_errors=True)

    print(SEPARATOR_LINE)
    print(" OPD Environment Validation")
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
