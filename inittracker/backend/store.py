"""Persistence interfaces and implementations for encounter data."""

from __future__ import annotations

import copy
from dataclasses import dataclass
from datetime import datetime, timezone
import json
import logging
from typing import Any, Protocol


logger = logging.getLogger(__name__)


class EncounterRepository(Protocol):
    def get(self, encounter_id: str) -> dict[str, Any] | None:
        """Return the stored encounter, or None when absent."""

    def put(self, encounter_id: str, state: dict[str, Any]) -> None:
        """Store the whole encounter under its key, replacing any previous value."""

    def list_all(self) -> list[dict[str, Any]]:
        """Return every stored encounter."""


@dataclass
class InMemoryEncounterRepository:
    def __post_init__(self) -> None:
        self._encounters: dict[str, dict[str, Any]] = {}

    def get(self, encounter_id: str) -> dict[str, Any] | None:
        state = self._encounters.get(encounter_id)
        if state is None:
            return None
        return copy.deepcopy(state)

    def put(self, encounter_id: str, state: dict[str, Any]) -> None:
        self._encounters[encounter_id] = copy.deepcopy(state)

    def list_all(self) -> list[dict[str, Any]]:
        return [copy.deepcopy(state) for state in self._encounters.values()]


@dataclass
class PostgresEncounterRepository:
    database_url: str

    def _connect(self) -> Any:
        import psycopg

        return psycopg.connect(self.database_url)

    def get(self, encounter_id: str) -> dict[str, Any] | None:
        with self._connect() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    SELECT state_json
                    FROM encounters
                    WHERE id = %s
                    """,
                    (encounter_id,),
                )
                row = cur.fetchone()

        if row is None:
            return None
        return _decode_state(row[0])

    def put(self, encounter_id: str, state: dict[str, Any]) -> None:
        now = datetime.now(timezone.utc)
        with self._connect() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO encounters (id, name, state_json, created_at, updated_at)
                    VALUES (%s, %s, %s::jsonb, %s, %s)
                    ON CONFLICT (id) DO UPDATE
                    SET name = EXCLUDED.name,
                        state_json = EXCLUDED.state_json,
                        updated_at = EXCLUDED.updated_at
                    """,
                    (encounter_id, state.get("name", ""), json.dumps(state), now, now),
                )
            conn.commit()
        logger.debug("Persisted encounter %s to postgres", encounter_id)

    def list_all(self) -> list[dict[str, Any]]:
        with self._connect() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    SELECT state_json
                    FROM encounters
                    ORDER BY created_at DESC
                    """,
                    (),
                )
                rows = cur.fetchall()
        return [_decode_state(row[0]) for row in rows]


def _decode_state(state_json: Any) -> dict[str, Any]:
    return state_json if isinstance(state_json, dict) else json.loads(state_json)


def create_store(database_url: str | None) -> EncounterRepository:
    if database_url:
        logger.info("Using postgres encounter repository")
        return PostgresEncounterRepository(database_url=database_url)
    logger.info("Using in-memory encounter repository")
    return InMemoryEncounterRepository()
