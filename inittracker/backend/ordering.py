"""Canonical turn order for an encounter roster."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any


def entity_sort_key(entity: dict[str, Any]) -> tuple[bool, int, int, str, str]:
    """Living before dead, then initiative descending, players before monsters, then name.

    Names compare case-insensitively first so "bandit" lands before "Orc";
    the raw name keeps the order total when two names differ only in case.
    """
    name = str(entity["name"])
    return (
        bool(entity["isDead"]),
        -int(entity["initiative"]),
        0 if entity["type"] == "player" else 1,
        name.casefold(),
        name,
    )


def sort_entities(entities: Iterable[dict[str, Any]]) -> list[dict[str, Any]]:
    return sorted(entities, key=entity_sort_key)
