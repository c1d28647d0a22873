import asyncio
from datetime import date
from pathlib import Path

import pytest
from pydantic import ValidationError

from dpstore.common.exceptions import MissingRequiredFieldError, PersistenceError
from dpstore.common.models import LicenseRecord, LicenseStatus
from dpstore.server.license_store import (
    LicenseStore,
    activate,
    add_years,
    normalize_features,
)
from dpstore.server.persistence import DataPersistence

TODAY = date(2024, 5, 17)


@pytest.fixture
def store(tmp_path: Path) -> LicenseStore:
    return LicenseStore.load(
        tmp_path / "licenses.csv",
        known_features=["parallax", "stereo3d"],
        today=lambda: TODAY,
    )


def test_add_years_calendar_semantics() -> None:
    assert add_years(date(2024, 5, 17), 1) == date(2025, 5, 17)
    assert add_years(date(2023, 3, 1), 1) == date(2024, 3, 1)  # 366 days
    assert add_years(date(2024, 2, 29), 1) == date(2025, 2, 28)
    assert add_years(date(2024, 2, 29), 4) == date(2028, 2, 29)


def test_normalize_features() -> None:
    assert normalize_features(["feature-parallax", " Stereo3D ", "", "feature-"]) == {
        "parallax",
        "stereo3d",
    }


def test_activate_is_pure() -> None:
    record = LicenseRecord(serial="SN-001")
    updated = activate(record, ["A"], TODAY)
    assert record.status == LicenseStatus.NOT_ACTIVE
    assert updated.status == LicenseStatus.VALID
    assert updated.activation_date == TODAY
    assert updated.expires == date(2025, 5, 17)
    assert updated.active_features == {"a"}


def test_activation_creates_record(store: LicenseStore) -> None:
    record = asyncio.run(store.apply_activation("ab-12", ["feature-parallax"]))

    assert record.serial == "AB-12"
    assert record.status == LicenseStatus.VALID
    assert "parallax" in record.active_features
    assert store.get("AB-12") == record
    assert store.get(" ab-12 ") == record
    assert "ab-12" in store


def test_repeated_activation_unions_features(store: LicenseStore) -> None:
    asyncio.run(store.apply_activation("SN-001", ["A"]))
    record = asyncio.run(store.apply_activation("SN-001", ["A", "B"]))

    assert record.active_features == {"a", "b"}
    assert len(store) == 1


def test_reactivation_restarts_term(store: LicenseStore) -> None:
    asyncio.run(store.apply_activation("SN-001", ["parallax"], on=date(2023, 1, 10)))
    record = asyncio.run(store.apply_activation("SN-001", [], on=date(2023, 6, 1)))

    assert record.activation_date == date(2023, 6, 1)
    assert record.expires == date(2024, 6, 1)
    assert record.active_features == {"parallax"}


def test_activation_uses_clock(store: LicenseStore) -> None:
    record = asyncio.run(store.apply_activation("SN-001", []))
    assert record.activation_date == TODAY
    assert record.expires == date(2025, 5, 17)


def test_blank_serial_rejected(store: LicenseStore) -> None:
    with pytest.raises(MissingRequiredFieldError):
        asyncio.run(store.apply_activation("  ", ["parallax"]))
    assert len(store) == 0


def test_activation_is_written_through(store: LicenseStore) -> None:
    asyncio.run(store.apply_activation("ab-12", ["feature-parallax"]))

    reloaded = LicenseStore.load(store.file_path)
    assert reloaded.records() == store.records()
    assert reloaded.known_features == {"parallax", "stereo3d"}


def test_failed_write_leaves_index_unchanged(
    store: LicenseStore, monkeypatch: pytest.MonkeyPatch
) -> None:
    asyncio.run(store.apply_activation("SN-001", ["A"]))
    before = store.get("SN-001")

    def fail(*args: object) -> None:
        raise PersistenceError("disk full")

    monkeypatch.setattr(DataPersistence, "save_licenses", staticmethod(fail))

    with pytest.raises(PersistenceError):
        asyncio.run(store.apply_activation("SN-001", ["B"]))
    with pytest.raises(PersistenceError):
        asyncio.run(store.apply_activation("SN-002", ["B"]))

    assert store.get("SN-001") == before
    assert store.get("SN-002") is None


def test_concurrent_activations_same_serial(store: LicenseStore) -> None:
    async def run() -> None:
        await asyncio.gather(
            *(store.apply_activation("SN-001", [f"f{i}"]) for i in range(10))
        )

    asyncio.run(run())

    expected = {f"f{i}" for i in range(10)}
    assert store.get("SN-001").active_features == expected
    assert LicenseStore.load(store.file_path).get("SN-001").active_features == expected


def test_concurrent_activations_different_serials(store: LicenseStore) -> None:
    async def run() -> None:
        await asyncio.gather(
            *(store.apply_activation(f"SN-{i:03d}", ["parallax"]) for i in range(10))
        )

    asyncio.run(run())

    reloaded = LicenseStore.load(store.file_path)
    assert len(reloaded) == 10  # noqa: PLR2004
    assert reloaded.records() == store.records()


def test_flush_writes_loaded_records(tmp_path: Path) -> None:
    path = tmp_path / "licenses.csv"
    records = {"SN-001": LicenseRecord(serial="SN-001")}
    store = LicenseStore(path, known_features=["parallax"], records=records)

    asyncio.run(store.flush())

    assert LicenseStore.load(path).records() == records


def test_reserved_feature_names_are_not_stored(store: LicenseStore) -> None:
    record = asyncio.run(
        store.apply_activation("AB-12", ["feature-parallax", "feature-status", "Serial"])
    )
    assert record.active_features == {"parallax"}

    reloaded = LicenseStore.load(store.file_path)
    assert reloaded.get("AB-12").status == LicenseStatus.VALID
    assert reloaded.records() == store.records()


def test_reserved_known_features_ignored(tmp_path: Path) -> None:
    store = LicenseStore(tmp_path / "licenses.csv", known_features=["parallax", "status"])
    assert store.known_features == {"parallax"}


def test_serial_locks_released_after_activation(store: LicenseStore) -> None:
    async def run() -> None:
        await asyncio.gather(
            *(store.apply_activation(f"SN-{i % 3:03d}", ["parallax"]) for i in range(9))
        )

    asyncio.run(run())

    assert len(store) == 3  # noqa: PLR2004
    assert store._serial_locks == {}
    assert store._lock_users == {}


def test_serial_lock_released_after_failed_write(
    store: LicenseStore, monkeypatch: pytest.MonkeyPatch
) -> None:
    def fail(*args: object) -> None:
        raise PersistenceError("disk full")

    monkeypatch.setattr(DataPersistence, "save_licenses", staticmethod(fail))

    with pytest.raises(PersistenceError):
        asyncio.run(store.apply_activation("SN-001", ["parallax"]))
    assert store._serial_locks == {}


def test_records_cannot_be_mutated_in_place(store: LicenseStore) -> None:
    asyncio.run(store.apply_activation("SN-001", ["parallax"]))
    record = store.get("SN-001")

    with pytest.raises(ValidationError):
        record.status = LicenseStatus.REVOKED
    assert store.get("SN-001").status == LicenseStatus.VALID
