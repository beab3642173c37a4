"""
Record stores behind the list / get / insert-if-absent / delete contract.

Every store serializes its mutations with a single-writer lock so two
concurrent inserts or deletes cannot interleave their read and write phases.
I/O problems surface as StorageFailure; a failed read never degrades into an
empty collection.
"""
import json
import logging
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from datetime import timezone
from typing import Dict, List, Optional

import pydantic
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from string_analyzer import database
from string_analyzer.exceptions import StorageFailure
from string_analyzer.models.string_record import StringAnalysis
from string_analyzer.schemas.string_record import StringRecord
from string_analyzer.services.analyzer import compute_sha256

logger = logging.getLogger(__name__)


class RecordStore(ABC):
    """Durable keyed collection of StringRecords, listed in insertion order"""

    @abstractmethod
    def list(self) -> List[StringRecord]:
        ...

    @abstractmethod
    def get_by_value(self, value: str) -> Optional[StringRecord]:
        ...

    @abstractmethod
    def insert_if_absent(self, record: StringRecord) -> bool:
        """Return False when a record with the same value already exists"""
        ...

    @abstractmethod
    def delete_by_value(self, value: str) -> bool:
        """Return False when no record has this value"""
        ...


class InMemoryRecordStore(RecordStore):
    def __init__(self, records: Optional[List[StringRecord]] = None):
        self._lock = threading.Lock()
        self._records: Dict[str, StringRecord] = {}
        for record in records or []:
            self._records[record.value] = record

    def list(self):
        return list(self._records.values())

    def get_by_value(self, value):
        return self._records.get(value)

    def insert_if_absent(self, record):
        with self._lock:
            if record.value in self._records:
                return False
            self._records[record.value] = record
            return True

    def delete_by_value(self, value):
        with self._lock:
            return self._records.pop(value, None) is not None


class JsonFileRecordStore(RecordStore):
    """
    Ordered JSON array of records, loaded in full before every operation and
    rewritten in full on every mutation.
    """

    def __init__(self, path: str):
        self.path = path
        self._lock = threading.Lock()

    def _load(self) -> List[StringRecord]:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                raw = f.read()
        except FileNotFoundError:
            return []
        except OSError as e:
            logger.error(f"Error reading data file {self.path}: {e}")
            raise StorageFailure("An error occurred while reading stored strings")

        if not raw.strip():
            return []

        try:
            entries = json.loads(raw)
            if not isinstance(entries, list):
                raise ValueError("top level JSON value is not an array")
            return [StringRecord.model_validate(entry) for entry in entries]
        except (ValueError, pydantic.ValidationError) as e:
            logger.error(f"Invalid JSON data in {self.path}: {e}")
            raise StorageFailure("Invalid JSON data in storage")

    def _save(self, records: List[StringRecord]) -> None:
        payload = json.dumps([record.model_dump(mode="json") for record in records])
        directory = os.path.dirname(os.path.abspath(self.path))
        tmp_path = None
        try:
            fd, tmp_path = tempfile.mkstemp(dir=directory, suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp_path, self.path)
        except OSError as e:
            logger.exception(f"Error writing data file {self.path}")
            if tmp_path is not None and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise StorageFailure("Unable to complete your request at this time") from e

    def list(self):
        return self._load()

    def get_by_value(self, value):
        return next((r for r in self._load() if r.value == value), None)

    def insert_if_absent(self, record):
        with self._lock:
            records = self._load()
            if any(r.value == record.value for r in records):
                return False
            records.append(record)
            self._save(records)
            return True

    def delete_by_value(self, value):
        with self._lock:
            records = self._load()
            remaining = [r for r in records if r.value != value]
            if len(remaining) == len(records):
                return False
            self._save(remaining)
            return True


def _to_record(row: StringAnalysis) -> StringRecord:
    created_at = row.created_at
    # SQLite hands datetimes back without tzinfo
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    return StringRecord(
        id=row.id,
        value=row.value,
        properties={
            "length": row.length,
            "is_palindrome": row.is_palindrome,
            "unique_characters": row.unique_characters,
            "word_count": row.word_count,
            "sha256_hash": row.sha256_hash,
            "character_frequency_map": row.character_frequency_map,
        },
        created_at=created_at,
    )


def _to_row(record: StringRecord) -> StringAnalysis:
    return StringAnalysis(
        id=record.id,
        value=record.value,
        created_at=record.created_at,
        **record.properties.model_dump(),
    )


class SQLAlchemyRecordStore(RecordStore):
    """
    Table backed store. The hash primary key makes insert-if-absent atomic
    at the database level; the lock keeps writers from this process in line.
    """

    def __init__(self, session_factory=None):
        self.session_factory = session_factory or database.SessionLocal
        self._lock = threading.Lock()

    def _find(self, db, value: str) -> Optional[StringAnalysis]:
        row = db.get(StringAnalysis, compute_sha256(value))
        if row is not None and row.value == value:
            return row
        return None

    def list(self):
        try:
            with self.session_factory() as db:
                rows = db.query(StringAnalysis).order_by(StringAnalysis.created_at).all()
                return [_to_record(row) for row in rows]
        except SQLAlchemyError as e:
            logger.error(f"Error listing strings: {e}")
            raise StorageFailure("An error occurred while reading stored strings") from e

    def get_by_value(self, value):
        try:
            with self.session_factory() as db:
                row = self._find(db, value)
                return _to_record(row) if row is not None else None
        except SQLAlchemyError as e:
            logger.error(f"Error reading string: {e}")
            raise StorageFailure("An error occurred while reading stored strings") from e

    def insert_if_absent(self, record):
        with self._lock:
            try:
                with self.session_factory() as db:
                    if self._find(db, record.value) is not None:
                        return False
                    db.add(_to_row(record))
                    try:
                        db.commit()
                    except IntegrityError:
                        db.rollback()
                        return False
                    return True
            except SQLAlchemyError as e:
                logger.exception("Error inserting string")
                raise StorageFailure("Unable to complete your request at this time") from e

    def delete_by_value(self, value):
        with self._lock:
            try:
                with self.session_factory() as db:
                    row = self._find(db, value)
                    if row is None:
                        return False
                    db.delete(row)
                    db.commit()
                    return True
            except SQLAlchemyError as e:
                logger.exception("Error deleting string")
                raise StorageFailure("Unable to complete your request at this time") from e


def build_store(kind: str) -> RecordStore:
    if kind == "sql":
        database.init_db()
        return SQLAlchemyRecordStore()
    if kind == "json":
        return JsonFileRecordStore(database.DATA_FILE)
    if kind == "memory":
        return InMemoryRecordStore()
    logger.error(f"Unknown STRING_STORE value: {kind!r}")
    raise ValueError(f"Unknown STRING_STORE value: {kind!r} (expected sql, json or memory)")


_store: Optional[RecordStore] = None


def get_store() -> RecordStore:
    """Dependency to provide the process wide record store."""
    global _store
    if _store is None:
        _store = build_store(database.STRING_STORE)
        logger.info(f"Using {type(_store).__name__}")
    return _store
