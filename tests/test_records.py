"""Tests for purchase records and support status."""

import datetime

import pytest

from envato_server.records import PurchaseRecord, parse_support_date

TODAY = datetime.date(2025, 6, 15)


def _record(supported_until):
    return PurchaseRecord(code="c", item_id=1, item_name="Theme", buyer="bob",
                          supported_until=supported_until)


class TestParseSupportDate:
    @pytest.mark.parametrize("value, expected", [
        ("2024-01-01", datetime.date(2024, 1, 1)),
        ("2017-03-10T00:00:00+11:00", datetime.date(2017, 3, 10)),
        ("2017-03-10T23:59:59-05:00", datetime.date(2017, 3, 10)),
        (datetime.datetime(2020, 5, 1, 12, 30), datetime.date(2020, 5, 1)),
        (datetime.date(2020, 5, 1), datetime.date(2020, 5, 1)),
    ])
    def test_reads_calendar_date(self, value, expected):
        assert parse_support_date(value) == expected

    @pytest.mark.parametrize("value", [None, "", "soon", "2024-13-01", 20240101])
    def test_unreadable(self, value):
        assert parse_support_date(value) is None


class TestStatus:
    def test_supported_until_today_is_valid(self):
        assert _record(TODAY).status(TODAY) == "valid"

    def test_supported_until_yesterday_is_expired(self):
        assert _record(TODAY - datetime.timedelta(days=1)).status(TODAY) == "expired"

    def test_future_is_valid(self):
        assert _record(TODAY + datetime.timedelta(days=30)).status(TODAY) == "valid"

    def test_time_of_day_is_ignored(self):
        late = datetime.datetime.combine(TODAY, datetime.time(23, 59))
        assert _record(TODAY).status(late) == "valid"

    def test_status_follows_the_clock(self):
        record = _record(TODAY)
        assert record.status(TODAY) == "valid"
        assert record.status(TODAY + datetime.timedelta(days=1)) == "expired"

    def test_defaults_to_current_date(self):
        assert _record(datetime.date.today()).status() == "valid"
        assert _record(datetime.date.today() - datetime.timedelta(days=1)).status() == "expired"


class TestFromResponse:
    def test_item_name_falls_back_to_nested_item(self):
        data = {"item_id": 9, "item": {"name": "Nested"}, "supported_until": "2030-01-01"}
        record = PurchaseRecord.from_response("code", data)
        assert record.item_name == "Nested"
        assert record.buyer == ""

    def test_raw_is_read_only(self):
        record = PurchaseRecord.from_response("code", {"item_id": 9, "supported_until": "2030-01-01"})
        with pytest.raises(TypeError):
            record.raw["item_id"] = 10

    def test_to_dict(self):
        record = _record(datetime.date(2024, 1, 1))
        assert record.to_dict(datetime.date(2025, 1, 1)) == {
            "code": "c",
            "item_id": 1,
            "item_name": "Theme",
            "buyer": "bob",
            "supported_until": "2024-01-01",
            "status": "expired",
        }
