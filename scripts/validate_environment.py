#!/usr/bin/env python3
"""Validate local hotel rack environment readiness."""

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

from hotel_rack.repository.data_repository import DataRepository
from hotel_rack.services.kpi_service import RackKpiService
from hotel_rack.services.move_workflow_service import MoveWorkflowService
from hotel_rack.utils.config import get_settings

SEPARATOR_LINE = "=" * 44

REQUIRED_PACKAGES = [
    ("fastapi", "fastapi"),
    ("uvicorn", "uvicorn"),
    ("pydantic", "pydantic"),
    ("pandas", "pandas"),
    ("httpx", "httpx"),
    ("pytest", "pytest"),
]


def _print_result(name: str, success: bool, detail: str = "") -> tuple[bool, str]:
    if success:
        return True, f"[PASS] {name}{detail}"
    return False, f"[FAIL] {name}: {detail}"


def _check_packages() -> tuple[bool, str]:
    import_errors: list[str] = []
    for module_name, dist_name in REQUIRED_PACKAGES:
        try:
            importlib.import_module(module_name)
            version(dist_name)
        except (ImportError, PackageNotFoundError) as exc:
            import_errors.append(f"{module_name} ({exc})")
    if import_errors:
        return _print_result(
            "Required packages",
            False,
            "missing/unimportable -> " + "; ".join(import_errors),
        )
    return _print_result("Required packages: all importable", True)


def main() -> int:
    results: list[str] = []
    all_passed = True
    temp_dir = tempfile.mkdtemp(prefix="hotel-rack-env-")

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
    ok, line = _check_packages()
    results.append(line)
    all_passed = all_passed and ok

    try:
        validation_settings = replace(
            get_settings(),
            database_path=Path(temp_dir) / "rack_validation.db",
        )
        repository = DataRepository(validation_settings)
        today = date.today()

        # CHECK 3: Database initialization and demo seed
        try:
            repository.initialize_database()
            repository.seed_demo_data(today=today)
            snapshot = repository.load_snapshot()
            if not snapshot.rooms or not snapshot.reservations:
                raise RuntimeError("demo rack is empty")
            ok, line = _print_result(
                "Database + demo rack",
                True,
                f": {len(snapshot.rooms)} rooms, {len(snapshot.reservations)} reservations",
            )
        except Exception as exc:
            ok, line = _print_result("Database + demo rack", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

        # CHECK 4: KPI aggregation bounds
        try:
            kpis = RackKpiService(repository=repository, settings=validation_settings).daily_kpis(
                today, 7
            )
            if len(kpis) != 7:
                raise RuntimeError(f"expected 7 KPI rows, got {len(kpis)}")
            if any(not 0 <= kpi.occupancy_rate <= 100 for kpi in kpis):
                raise RuntimeError("occupancy rate out of [0,100] bounds")
            ok, line = _print_result(
                "Daily KPIs",
                True,
                f": today occupancy={kpis[0].occupancy_rate}%",
            )
        except Exception as exc:
            ok, line = _print_result("Daily KPIs", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

        # CHECK 5: Move conflict detection round trip
        try:
            move_service = MoveWorkflowService(repository=repository, settings=validation_settings)
            outcome = move_service.propose_move(reservation_id="RES-2", target_room_id="R104")
            if not outcome.conflicts:
                raise RuntimeError("expected a conflict against RES-3")
            move_service.cancel("RES-2")
            ok, line = _print_result(
                "Move workflow",
                True,
                f": choices={','.join(outcome.choices)}",
            )
        except Exception as exc:
            ok, line = _print_result("Move workflow", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

    finally:
        shutil.rmtree(temp_dir, ignore_errors=True)

    print(SEPARATOR_LINE)
    print(" Hotel Rack Environment Validation")
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
