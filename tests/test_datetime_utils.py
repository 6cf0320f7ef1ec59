"""Tests for datetime helpers."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from loops_ai.core import datetime_utils
from loops_ai.core.datetime_utils import (
    as_utc,
    coerce_instant,
    days_between,
    parse_datetime,
    serialize_datetime,
)

MOMENT = datetime(2025, 10, 26, 12, 0, tzinfo=timezone.utc)


def test_parse_datetime_accepts_zulu_suffix() -> None:
    assert parse_datetime("2025-10-26T12:00:00Z") == MOMENT


def test_serialize_datetime_round_trips_through_parse() -> None:
    text = serialize_datetime(MOMENT)

    assert text == "2025-10-26T12:00:00Z"
    assert parse_datetime(text) == MOMENT


def test_coerce_instant_normalises_offsets_to_utc() -> None:
    value = coerce_instant("2025-10-26T14:00:00+02:00")

    assert value == MOMENT
    assert value is not None and value.utcoffset() == timedelta(0)


def test_coerce_instant_reads_epoch_millis_and_firestore_maps() -> None:
    millis = int(MOMENT.timestamp() * 1000)

    assert coerce_instant(millis) == MOMENT
    assert coerce_instant({"seconds": int(MOMENT.timestamp())}) == MOMENT
    assert coerce_instant({"_seconds": int(MOMENT.timestamp()), "_nanoseconds": 0}) == (
        MOMENT
    )


def test_coerce_instant_swallows_garbage() -> None:
    for value in (None, "", "soon", False, object(), {"seconds": "x"}, 10**20):
        assert coerce_instant(value) is None


def test_days_between_is_signed_and_fractional() -> None:
    assert days_between(MOMENT, MOMENT + timedelta(hours=36)) == 1.5
    assert days_between(MOMENT, MOMENT - timedelta(days=2)) == -2


def test_as_utc_is_the_single_normaliser() -> None:
    naive = datetime(2025, 10, 26, 12, 0)

    assert as_utc(naive) == MOMENT
    assert "ensure_utc" not in datetime_utils.__all__
    assert not hasattr(datetime_utils, "ensure_utc")
