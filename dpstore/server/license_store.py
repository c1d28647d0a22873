"""
License activation store keyed by serial number.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime, timezone
from pathlib import Path  # noqa: TC003
from typing import TYPE_CHECKING, Callable, Iterable

from dpstore.common.exceptions import MissingRequiredFieldError
from dpstore.common.models import LicenseRecord, LicenseStatus

if TYPE_CHECKING:
    from dpstore.common.interfaces import ILicensePersistence

from .persistence import FIXED_COLUMNS, DataPersistence, normalize_serial

FEATURE_PREFIX = "feature-"

logger = logging.getLogger(__name__)


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def add_years(start: date, years: int) -> date:
    """Calendar year increment; 29 February falls back to 28 February."""
    try:
        return start.replace(year=start.year + years)
    except ValueError:
        return start.replace(year=start.year + years, day=28)


def normalize_features(features: Iterable[str]) -> frozenset[str]:
    """Map catalog identifiers like ``feature-parallax`` to ``parallax``.

    Identifiers that collide with a fixed license file column are dropped,
    they could not be stored as a feature column.
    """
    normalized = set()
    for feature in features:
        token = feature.strip().lower()
        if token.startswith(FEATURE_PREFIX):
            token = token[len(FEATURE_PREFIX) :]
        if token in FIXED_COLUMNS:
            logger.warning("Ignoring reserved feature name %r", feature)
            continue
        if token:
            normalized.add(token)
    return frozenset(normalized)


def activate(
    record: LicenseRecord, features: Iterable[str], on: date, term_years: int = 1
) -> LicenseRecord:
    """Return the record after a completed payment on the given date.

    Re-activation restarts the term from ``on`` and unions the features.
    """
    return record.model_copy(
        update={
            "status": LicenseStatus.VALID,
            "activation_date": on,
            "expires": add_years(on, term_years),
            "active_features": record.active_features | normalize_features(features),
        }
    )


class LicenseStore:
    """In-memory license index with write-through persistence.

    Each activation holds a lock for its serial across read, modify and
    persist. Snapshots are written under a store-wide lock so concurrent
    activations for different serials cannot overwrite each other's rows.
    The in-memory index only changes after the file write succeeded.
    """

    def __init__(
        self,
        file_path: Path,
        known_features: Iterable[str] = (),
        records: dict[str, LicenseRecord] | None = None,
        term_years: int = 1,
        today: Callable[[], date] = utc_today,
        persistence: type[ILicensePersistence] = DataPersistence,
    ):
        self.file_path = file_path
        self.persistence = persistence
        self.known_features = {f for f in known_features if f not in FIXED_COLUMNS}
        self.term_years = term_years
        self._records: dict[str, LicenseRecord] = dict(records or {})
        self._today = today
        self._serial_locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}
        self._write_lock = asyncio.Lock()
        self.logger = logging.getLogger(__name__)

    @classmethod
    def load(
        cls,
        file_path: Path,
        known_features: Iterable[str] = (),
        term_years: int = 1,
        today: Callable[[], date] = utc_today,
        persistence: type[ILicensePersistence] = DataPersistence,
    ) -> LicenseStore:
        """Build the store from the license file, once at start-up."""
        records, feature_columns = persistence.load_licenses(file_path)
        return cls(
            file_path,
            known_features=[*known_features, *feature_columns],
            records=records,
            term_years=term_years,
            today=today,
            persistence=persistence,
        )

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, serial: object) -> bool:
        return isinstance(serial, str) and normalize_serial(serial) in self._records

    def get(self, serial: str) -> LicenseRecord | None:
        """Look up a record by serial, case-insensitively."""
        return self._records.get(normalize_serial(serial))

    def records(self) -> dict[str, LicenseRecord]:
        return dict(self._records)

    async def apply_activation(
        self, serial: str, features: Iterable[str], on: date | None = None
    ) -> LicenseRecord:
        """Activate (or re-activate) a serial and persist the full record set."""
        key = normalize_serial(serial)
        if not key:
            raise MissingRequiredFieldError("serial")
        features = list(features)

        # Locks live only while an activation for the serial is in flight
        lock = self._serial_locks.setdefault(key, asyncio.Lock())
        self._lock_users[key] = self._lock_users.get(key, 0) + 1
        try:
            async with lock:
                current = self._records.get(key) or LicenseRecord(serial=key)
                updated = activate(current, features, on or self._today(), self.term_years)
                await self._commit(key, updated)
        finally:
            self._lock_users[key] -= 1
            if not self._lock_users[key]:
                del self._lock_users[key]
                del self._serial_locks[key]

        self.logger.info(
            "Activated %s until %s with features %s",
            key,
            updated.expires,
            ",".join(sorted(updated.active_features)) or "-",
        )
        return updated

    async def _commit(self, serial: str, record: LicenseRecord) -> None:
        async with self._write_lock:
            snapshot = {**self._records, serial: record}
            await asyncio.to_thread(
                self.persistence.save_licenses,
                self.file_path,
                snapshot,
                self.known_features,
            )
            self._records = snapshot

    async def flush(self) -> None:
        """Write the current record set to the license file."""
        async with self._write_lock:
            await asyncio.to_thread(
                self.persistence.save_licenses,
                self.file_path,
                dict(self._records),
                self.known_features,
            )
