"""
Data persistence utilities for the license store file.

The file is a CSV snapshot with one row per serial:
serial,status,activation_date,expiration_date,<feature>,<feature>,...
where each feature column holds ``true`` or ``false``.
"""

from __future__ import annotations

import csv
import logging
import os
import tempfile
from datetime import date
from pathlib import Path  # noqa: TC003
from typing import Iterable

from dpstore.common.exceptions import PersistenceError
from dpstore.common.models import LicenseRecord, LicenseStatus

logger = logging.getLogger(__name__)

FIXED_COLUMNS = ["serial", "status", "activation_date", "expiration_date"]
TRUE_TOKEN = "true"
FALSE_TOKEN = "false"


def normalize_serial(serial: str) -> str:
    return serial.strip().upper()


class DataPersistence:
    """Handles loading and saving the license records."""

    @staticmethod
    def _parse_date(value: str | None) -> date | None:
        value = (value or "").strip()
        return date.fromisoformat(value) if value else None

    @staticmethod
    def _format_date(value: date | None) -> str:
        return value.isoformat() if value else ""

    @staticmethod
    def _deserialize_record(row: dict[str, str], feature_columns: list[str]) -> LicenseRecord:
        """Build a LicenseRecord from one CSV row."""
        features = frozenset(
            feature
            for feature in feature_columns
            if (row.get(feature) or "").strip().lower() == TRUE_TOKEN
        )
        return LicenseRecord(
            serial=normalize_serial(row["serial"]),
            status=LicenseStatus((row.get("status") or "").strip() or LicenseStatus.NOT_ACTIVE),
            activation_date=DataPersistence._parse_date(row.get("activation_date")),
            expires=DataPersistence._parse_date(row.get("expiration_date")),
            active_features=features,
        )

    @staticmethod
    def _serialize_record(record: LicenseRecord, feature_columns: list[str]) -> list[str]:
        return [
            record.serial,
            record.status.value,
            DataPersistence._format_date(record.activation_date),
            DataPersistence._format_date(record.expires),
        ] + [
            TRUE_TOKEN if feature in record.active_features else FALSE_TOKEN
            for feature in feature_columns
        ]

    @staticmethod
    def load_licenses(file_path: Path) -> tuple[dict[str, LicenseRecord], list[str]]:
        """Load license records and the feature columns found in the file.

        A missing file is an empty store. Malformed rows raise PersistenceError,
        since saving over a partially read file would drop licenses.
        """
        try:
            with file_path.open(newline="", encoding="utf-8") as f:
                reader = csv.DictReader(f)
                header = [name.strip() for name in reader.fieldnames or []]
                reader.fieldnames = header
                feature_columns = [name for name in header if name not in FIXED_COLUMNS]
                records: dict[str, LicenseRecord] = {}
                for line_no, row in enumerate(reader, start=2):
                    if not (row.get("serial") or "").strip():
                        continue
                    try:
                        record = DataPersistence._deserialize_record(row, feature_columns)
                    except ValueError as err:
                        msg = f"Invalid license row {line_no} in {file_path}: {err}"
                        raise PersistenceError(msg) from err
                    records[record.serial] = record
        except FileNotFoundError:
            logger.info("No license file at %s, starting empty", file_path)
            return {}, []

        logger.info("Loaded %d license records from %s", len(records), file_path)
        return records, feature_columns

    @staticmethod
    def save_licenses(
        file_path: Path,
        records: dict[str, LicenseRecord],
        known_features: Iterable[str],
    ) -> None:
        """Rewrite the whole license file atomically."""
        feature_columns = sorted(
            set(known_features).union(
                *(record.active_features for record in records.values())
            )
        )
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=file_path.parent, prefix=f".{file_path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", newline="", encoding="utf-8") as f:
                    writer = csv.writer(f)
                    writer.writerow(FIXED_COLUMNS + feature_columns)
                    for serial in sorted(records):
                        writer.writerow(
                            DataPersistence._serialize_record(
                                records[serial], feature_columns
                            )
                        )
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp_name, file_path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as err:
            msg = f"Could not write license file {file_path}: {err}"
            raise PersistenceError(msg) from err
