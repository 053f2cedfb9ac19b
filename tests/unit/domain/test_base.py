"""Unit tests for UTC timestamp handling"""

from datetime import datetime, timedelta, timezone

from src.domain.base import UTCDateTime, as_utc, utcnow


class TestAsUtc:

    def test_naive_value_is_taken_as_utc(self):
        value = as_utc(datetime(2024, 1, 1, 12, 0))

        assert value == datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
        assert value.tzinfo is timezone.utc

    def test_offset_value_is_converted(self):
        plus_two = timezone(timedelta(hours=2))

        value = as_utc(datetime(2024, 1, 1, 14, 0, tzinfo=plus_two))

        assert value.hour == 12
        assert value.tzinfo is timezone.utc

    def test_utcnow_is_aware(self):
        assert utcnow().tzinfo is timezone.utc


class TestUTCDateTime:

    def test_bind_and_result_are_aware_utc(self):
        column_type = UTCDateTime()
        naive = datetime(2024, 1, 1, 12, 0)

        bound = column_type.process_bind_param(naive, dialect=None)
        loaded = column_type.process_result_value(naive, dialect=None)

        assert bound.tzinfo is timezone.utc
        assert loaded == datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def test_none_passes_through(self):
        column_type = UTCDateTime()

        assert column_type.process_bind_param(None, dialect=None) is None
        assert column_type.process_result_value(None, dialect=None) is None
