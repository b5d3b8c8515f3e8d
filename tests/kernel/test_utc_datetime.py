"""UTCDateTime: timestamps are stored and loaded as UTC."""

from datetime import datetime, timedelta, timezone

from delivery_kernel.db.base import UTCDateTime

SAST = timezone(timedelta(hours=2))


def test_naive_value_from_the_database_is_utc():
    loaded = UTCDateTime().process_result_value(datetime(2024, 6, 3, 8, 0), None)
    assert loaded == datetime(2024, 6, 3, 8, 0, tzinfo=timezone.utc)
    assert loaded.tzinfo is timezone.utc


def test_offset_value_from_the_database_is_converted():
    loaded = UTCDateTime().process_result_value(datetime(2024, 6, 3, 10, 0, tzinfo=SAST), None)
    assert loaded.tzinfo is timezone.utc
    assert loaded.hour == 8


def test_aware_value_is_bound_as_utc():
    bound = UTCDateTime().process_bind_param(datetime(2024, 6, 3, 10, 0, tzinfo=SAST), None)
    assert bound == datetime(2024, 6, 3, 8, 0, tzinfo=timezone.utc)
    assert bound.utcoffset() == timedelta(0)


def test_none_passes_through():
    assert UTCDateTime().process_bind_param(None, None) is None
    assert UTCDateTime().process_result_value(None, None) is None
