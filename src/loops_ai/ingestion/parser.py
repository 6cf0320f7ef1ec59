"""Normalise raw loop records from the loop store into typed models."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from ..core.datetime_utils import coerce_instant
from ..core.models import Loop, LoopPriority, LoopStatus, LoopUpdate


class LoopParseError(ValueError):
    """Raised when a stored record cannot be interpreted as a loop."""


class LoopParser:
    """Convert loosely typed store documents into :class:`Loop` records.

    Keys may be camelCase, as written by the web client, or snake_case.
    Date fields that cannot be interpreted become ``None``; an unknown
    status or priority, or a missing id, raises :class:`LoopParseError`.
    """

    def parse(self, record: Mapping[str, Any]) -> Loop:
        """Parse a single record."""
        if not isinstance(record, Mapping):
            raise LoopParseError("Loop record must be a mapping")

        loop_id = _pick(record, "id")
        if not isinstance(loop_id, str) or not loop_id.strip():
            raise LoopParseError("Loop record is missing an 'id'")

        return Loop(
            id=loop_id,
            title=_text(_pick(record, "title")),
            primary_objective=_text(
                _pick(record, "primaryObjective", "primary_objective")
            ),
            immediate_next_step=_optional_text(
                _pick(record, "immediateNextStep", "immediate_next_step")
            ),
            status=_enum(LoopStatus, _pick(record, "status"), "status", loop_id),
            priority=_enum(
                LoopPriority, _pick(record, "priority"), "priority", loop_id
            ),
            due_at=coerce_instant(_pick(record, "dueAt", "due_at")),
            updated_at=coerce_instant(_pick(record, "updatedAt", "updated_at")),
            stale_at=coerce_instant(_pick(record, "staleAt", "stale_at")),
            created_at=coerce_instant(_pick(record, "createdAt", "created_at")),
            owner_id=_optional_text(_pick(record, "ownerId", "owner_id")),
        )

    def parse_many(self, records: Iterable[Mapping[str, Any]]) -> list[Loop]:
        """Parse records in order, rejecting duplicate ids."""
        loops: list[Loop] = []
        seen: set[str] = set()
        for record in records:
            loop = self.parse(record)
            if loop.id in seen:
                raise LoopParseError(f"Duplicate loop id '{loop.id}'")
            seen.add(loop.id)
            loops.append(loop)
        return loops

    def parse_update(self, record: Mapping[str, Any]) -> LoopUpdate:
        """Parse a progress note attached to a loop."""
        if not isinstance(record, Mapping):
            raise LoopParseError("Loop update must be a mapping")
        return LoopUpdate(
            id=_text(_pick(record, "id")),
            loop_id=_text(_pick(record, "loopId", "loop_id")),
            body=_text(_pick(record, "body")),
            created_at=coerce_instant(_pick(record, "createdAt", "created_at")),
            author_name=_optional_text(_pick(record, "authorName", "author_name")),
        )


def _pick(record: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in record:
            return record[key]
    return None


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _optional_text(value: Any) -> str | None:
    text = _text(value)
    return text or None


def _enum(enum_type: Any, value: Any, field: str, loop_id: str) -> Any:
    try:
        return enum_type(value)
    except ValueError as exc:
        msg = f"Loop '{loop_id}' has invalid {field} {value!r}"
        raise LoopParseError(msg) from exc


__all__ = ["LoopParseError", "LoopParser"]
