"""
Tests for expiry resolution
"""

from datetime import datetime, timedelta, timezone

import pytest

from cryptokit.services.crypto.errors import InvalidExpirySpec
from cryptokit.services.crypto.expiry import (
    format_expiry,
    parse_expiry,
    resolve_expiry,
    utc_now,
)

NOW = datetime(2026, 10, 18, 12, 0, 0, tzinfo=timezone.utc)


class TestRelativeExpiry:
    """Test relative expiry specs"""

    def test_seconds(self):
        """Test numeric seconds from now"""
        assert resolve_expiry(60, now=NOW) == NOW + timedelta(seconds=60)
        assert resolve_expiry(1.5, now=NOW) == NOW + timedelta(seconds=1.5)

    def test_negative_seconds_in_past(self):
        """Test that negative numbers resolve to the past"""
        assert resolve_expiry(-1, now=NOW) < NOW

    def test_timedelta(self):
        """Test timedelta specs"""
        assert resolve_expiry(timedelta(minutes=5), now=NOW) == NOW + timedelta(minutes=5)

    @pytest.mark.parametrize(
        "spec,expected",
        [
            ("24hrs", timedelta(hours=24)),
            ("1hrs", timedelta(hours=1)),
            ("30mns", timedelta(minutes=30)),
            ("2 hours", timedelta(hours=2)),
            ("15 minutes", timedelta(minutes=15)),
            ("15m", timedelta(minutes=15)),
            ("45s", timedelta(seconds=45)),
            ("7 days", timedelta(days=7)),
            ("1w", timedelta(weeks=1)),
            ("1.5 HOURS", timedelta(hours=1.5)),
        ],
    )
    def test_shorthand(self, spec, expected):
        """Test relative shorthands"""
        assert resolve_expiry(spec, now=NOW) == NOW + expected

    def test_default_now(self):
        """Test resolution against the real clock"""
        before = utc_now()
        resolved = resolve_expiry(3600)
        assert before + timedelta(hours=1) <= resolved <= utc_now() + timedelta(hours=1)


class TestAbsoluteExpiry:
    """Test absolute expiry specs"""

    def test_aware_datetime(self):
        """Test aware datetimes are normalized to UTC"""
        moment = datetime(2027, 1, 1, 5, 0, tzinfo=timezone(timedelta(hours=5)))
        assert resolve_expiry(moment, now=NOW) == datetime(2027, 1, 1, tzinfo=timezone.utc)

    def test_naive_datetime_is_utc(self):
        """Test naive datetimes are taken as UTC"""
        resolved = resolve_expiry(datetime(2027, 1, 1), now=NOW)
        assert resolved == datetime(2027, 1, 1, tzinfo=timezone.utc)

    def test_iso_string(self):
        """Test ISO-8601 strings"""
        resolved = resolve_expiry("2027-01-01T00:00:00+00:00", now=NOW)
        assert resolved == datetime(2027, 1, 1, tzinfo=timezone.utc)

    def test_rfc2822_string(self):
        """Test RFC 2822 date strings"""
        resolved = resolve_expiry("Fri, 01 Jan 2027 00:00:00 +0000", now=NOW)
        assert resolved == datetime(2027, 1, 1, tzinfo=timezone.utc)

    def test_iso_string_with_z_suffix(self):
        """Test ISO-8601 strings ending in Z"""
        resolved = resolve_expiry("2026-10-18T13:00:00Z", now=NOW)
        assert resolved == NOW + timedelta(hours=1)
        assert parse_expiry("2026-10-18T13:00:00Z") == NOW + timedelta(hours=1)

    @pytest.mark.parametrize(
        "spec,expected",
        [
            ("12/31/2026", datetime(2026, 12, 31, tzinfo=timezone.utc)),
            ("12-31-2026", datetime(2026, 12, 31, tzinfo=timezone.utc)),
            ("December 31, 2026", datetime(2026, 12, 31, tzinfo=timezone.utc)),
            ("Dec 31 2026", datetime(2026, 12, 31, tzinfo=timezone.utc)),
            ("12/31/2026 18:30", datetime(2026, 12, 31, 18, 30, tzinfo=timezone.utc)),
            ("Dec 31 2026 18:30:15", datetime(2026, 12, 31, 18, 30, 15, tzinfo=timezone.utc)),
        ],
    )
    def test_month_first_date_strings(self, spec, expected):
        """Test month-date-year and month/date/year strings, taken as UTC"""
        assert resolve_expiry(spec, now=NOW) == expected

    def test_month_first_invalid_day(self):
        """Test that an impossible calendar date is rejected"""
        with pytest.raises(InvalidExpirySpec):
            resolve_expiry("02/30/2026", now=NOW)


class TestInvalidExpiry:
    """Test rejection of unusable specs"""

    @pytest.mark.parametrize("spec", ["soon", "", "12 parsecs", "hrs", "-1"])
    def test_unrecognized_strings(self, spec):
        """Test strings that are neither shorthand nor date"""
        with pytest.raises(InvalidExpirySpec):
            resolve_expiry(spec, now=NOW)

    @pytest.mark.parametrize("spec", [True, None, [1], {"h": 1}])
    def test_unsupported_types(self, spec):
        """Test non-duration types"""
        with pytest.raises(InvalidExpirySpec):
            resolve_expiry(spec, now=NOW)

    def test_nan_and_overflow(self):
        """Test numbers that cannot become a timestamp"""
        with pytest.raises(InvalidExpirySpec):
            resolve_expiry(float("nan"), now=NOW)
        with pytest.raises(InvalidExpirySpec):
            resolve_expiry(10 ** 12, now=NOW)


class TestExpiryText:
    """Test the on-token expiry representation"""

    def test_format_and_parse(self):
        """Test format_expiry/parse_expiry round trip"""
        text = format_expiry(NOW)
        assert text == "2026-10-18T12:00:00+00:00"
        assert parse_expiry(text) == NOW

    def test_parse_rejects_garbage(self):
        """Test that malformed expiry text raises ValueError"""
        with pytest.raises(ValueError):
            parse_expiry("not-a-date")
