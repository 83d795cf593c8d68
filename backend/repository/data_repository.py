"""Repository layer responsible for all database access."""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Optional

from backend.domain.models import Doctor, Slot, Token, TokenStatus
from backend.domain.priority import TokenSource
from backend.repository.store import OPDStore
from backend.utils.config import Settings, get_settings
from backend.utils.logger import get_logger


logger = get_logger(__name__)


class DataRepository:
    """Persists store snapshots to SQLite so allocation logic stays storage-agnostic."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings or get_settings()
        self._db_path = Path(self._settings.database_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def database_path(self) -> Path:
        return self._db_path

    def _connect(self) -> sqlite3.Connection:
        connection = sqlite3.connect(self._db_path)
        connection.row_factory = sqlite3.Row
        connection.execute("PRAGMA foreign_keys = ON;")
        return connection

    def initialize_database(self) -> None:
        """Create all persistence artifacts before API startup."""
        try:
            with self._connect() as conn:
                cursor = conn.cursor()

                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS Doctors (
                        id TEXT PRIMARY KEY,
                        name TEXT NOT NULL,
                        start_time TEXT NOT NULL,
                        end_time TEXT NOT NULL,
                        slot_duration_minutes INTEGER NOT NULL CHECK (slot_duration_minutes > 0),
                        max_patients_per_slot INTEGER NOT NULL CHECK (max_patients_per_slot > 0),
                        position INTEGER NOT NULL
                    );
                    """
                )

                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS Slots (
                        id TEXT PRIMARY KEY,
                        doctor_id TEXT NOT NULL,
                        date TEXT NOT NULL,
                        start_time TEXT NOT NULL,
                        end_time TEXT NOT NULL,
                        capacity INTEGER NOT NULL CHECK (capacity > 0),
                        position INTEGER NOT NULL,
                        FOREIGN KEY (doctor_id) REFERENCES Doctors(id)
                    );
                    """
                )

                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS Tokens (
                        id TEXT PRIMARY KEY,
                        doctor_id TEXT NOT NULL,
                        slot_id TEXT NOT NULL,
                        date TEXT NOT NULL,
                        patient_name TEXT NOT NULL,
                        source TEXT NOT NULL,
                        priority_score INTEGER NOT NULL,
                        status TEXT NOT NULL DEFAULT 'SCHEDULED',
                        created_at TEXT NOT NULL,
                        position INTEGER NOT NULL,
                        FOREIGN KEY (doctor_id) REFERENCES Doctors(id),
                        FOREIGN KEY (slot_id) REFERENCES Slots(id)
                    );
                    """
                )

                cursor.execute(
                    """
                    CREATE INDEX IF NOT EXISTS idx_slots_doctor_date
                    ON Slots(doctor_id, date);
                    """
                )
                cursor.execute(
                    """
                    CREATE INDEX IF NOT EXISTS idx_tokens_slot_status
                    ON Tokens(slot_id, status);
                    """
                )
                conn.commit()
            logger.info("Database initialized at %s", self._db_path)
        except sqlite3.Error as exc:
            raise RuntimeError(f"Database initialization failed: {exc}") from exc

    def save_store(self, store: OPDStore) -> None:
        """Replace persisted rows with a full snapshot of ``store`` in one transaction."""
        try:
            with self._connect() as conn:
                cursor = conn.cursor()
                cursor.execute("DELETE FROM Tokens;")
                cursor.execute("DELETE FROM Slots;")
                cursor.execute("DELETE FROM Doctors;")
                cursor.executemany(
                    """
                    INSERT INTO Doctors (
                        id,
                        name,
                        start_time,
                        end_time,
                        slot_duration_minutes,
                        max_patients_per_slot,
                        position
                    )
                    VALUES (?, ?, ?, ?, ?, ?, ?);
                    """,
                    [
                        (
                            doctor.id,
                            doctor.name,
                            doctor.start_time,
                            doctor.end_time,
                            doctor.slot_duration_minutes,
                            doctor.max_patients_per_slot,
                            position,
                        )
                        for position, doctor in enumerate(store.doctors)
                    ],
                )
                cursor.executemany(
                    """
                    INSERT INTO Slots (id, doctor_id, date, start_time, end_time, capacity, position)
                    VALUES (?, ?, ?, ?, ?, ?, ?);
                    """,
                    [
                        (
                            slot.id,
                            slot.doctor_id,
                            slot.date,
                            slot.start_time,
                            slot.end_time,
                            slot.capacity,
                            position,
                        )
                        for position, slot in enumerate(store.slots)
                    ],
                )
                cursor.executemany(
                    """
                    INSERT INTO Tokens (
                        id,
                        doctor_id,
                        slot_id,
                        date,
                        patient_name,
                        source,
                        priority_score,
                        status,
                        created_at,
                        position
                    )
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?);
                    """,
                    [
                        (
                            token.id,
                            token.doctor_id,
                            token.slot_id,
                            token.date,
                            token.patient_name,
                            token.source.value,
                            token.priority_score,
                            token.status.value,
                            token.created_at,
                            position,
                        )
                        for position, token in enumerate(store.tokens)
                    ],
                )
                conn.commit()
            logger.debug(
                "Store persisted | doctors=%s | slots=%s | tokens=%s",
                len(store.doctors),
                len(store.slots),
                len(store.tokens),
            )
        except sqlite3.Error as exc:
            raise RuntimeError(f"Store persistence failed: {exc}") from exc

    def load_store(self) -> OPDStore:
        """Rebuild a store from the last snapshot, preserving creation order."""
        try:
            with self._connect() as conn:
                cursor = conn.cursor()
                cursor.execute(
                    """
                    SELECT id, name, start_time, end_time, slot_duration_minutes, max_patients_per_slot
                    FROM Doctors
                    ORDER BY position ASC;
                    """
                )
                doctors = [
                    Doctor(
                        id=str(row["id"]),
                        name=str(row["name"]),
                        start_time=str(row["start_time"]),
                        end_time=str(row["end_time"]),
                        slot_duration_minutes=int(row["slot_duration_minutes"]),
                        max_patients_per_slot=int(row["max_patients_per_slot"]),
                    )
                    for row in cursor.fetchall()
                ]

                cursor.execute(
                    """
                    SELECT id, doctor_id, date, start_time, end_time, capacity
                    FROM Slots
                    ORDER BY position ASC;
                    """
                )
                slots = [
                    Slot(
                        id=str(row["id"]),
                        doctor_id=str(row["doctor_id"]),
                        date=str(row["date"]),
                        start_time=str(row["start_time"]),
                        end_time=str(row["end_time"]),
                        capacity=int(row["capacity"]),
                    )
                    for row in cursor.fetchall()
                ]

                cursor.execute(
                    """
                    SELECT
                        id,
                        doctor_id,
                        slot_id,
                        date,
                        patient_name,
                        source,
                        priority_score,
                        status,
                        created_at
                    FROM Tokens
                    ORDER BY position ASC;
                    """
                )
                tokens = [
                    Token(
                        id=str(row["id"]),
                        doctor_id=str(row["doctor_id"]),
                        slot_id=str(row["slot_id"]),
                        date=str(row["date"]),
                        patient_name=str(row["patient_name"]),
                        source=TokenSource(str(row["source"])),
                        priority_score=int(row["priority_score"]),
                        status=TokenStatus(str(row["status"])),
                        created_at=str(row["created_at"]),
                    )
                    for row in cursor.fetchall()
                ]
        except sqlite3.Error as exc:
            raise RuntimeError(f"Store load failed: {exc}") from exc

        logger.info(
            "Store loaded | doctors=%s | slots=%s | tokens=%s",
            len(doctors),
            len(slots),
            len(tokens),
        )
        return OPDStore(doctors=doctors, slots=slots, tokens=tokens)
