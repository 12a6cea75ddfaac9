"""Backend package for the initiative tracker."""

from .config import BackendSettings, load_settings
from .errors import NotFoundError, TrackerError, ValidationFailedError
from .ordering import sort_entities
from .service import EncounterService
from .state import DEMO_ENCOUNTER_ID, build_initial_state
from .store import EncounterRepository, InMemoryEncounterRepository, PostgresEncounterRepository, create_store

__all__ = [
    "BackendSettings",
    "build_initial_state",
    "create_store",
    "DEMO_ENCOUNTER_ID",
    "EncounterRepository",
    "EncounterService",
    "InMemoryEncounterRepository",
    "load_settings",
    "NotFoundError",
    "PostgresEncounterRepository",
    "sort_entities",
    "TrackerError",
    "ValidationFailedError",
]
