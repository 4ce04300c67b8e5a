from decimal import Decimal

import pytest

from autobook import rate_limiter
from autobook.shared.money import to_minor_units, to_money
from autobook.shared.validators import (
    parse_iso_date,
    validate_email,
    validate_time_of_day,
    validate_vehicle_year,
)


class TestValidators:
    def test_email_is_normalized(self):
        assert validate_email("  Jane@Example.COM ") == "jane@example.com"

    @pytest.mark.parametrize("email", ["jane", "jane@", "jane@example", "@example.com"])
    def test_invalid_email(self, email):
        with pytest.raises(ValueError):
            validate_email(email)

    @pytest.mark.parametrize("value", ["9:00", "24:00", "12:60", "noon"])
    def test_invalid_time(self, value):
        with pytest.raises(ValueError):
            validate_time_of_day(value)

    def test_vehicle_year_range(self):
        assert validate_vehicle_year(1900) == 1900
        with pytest.raises(ValueError):
            validate_vehicle_year(2101)

    def test_iso_date(self):
        assert parse_iso_date("2030-01-07").isoformat() == "2030-01-07"
        with pytest.raises(ValueError, match="YYYY-MM-DD"):
            parse_iso_date("2030-02-30")


class TestMoney:
    def test_to_money(self):
        assert to_money(None) == Decimal("0.00")
        assert to_money(35) == Decimal("35.00")
        assert to_money("19.999") == Decimal("20.00")

    def test_minor_units(self):
        assert to_minor_units(Decimal("165.00")) == 16500
        assert to_minor_units(Decimal("0.07")) == 7


class FakeRedis:
    def __init__(self):
        self.store = {}

    def get(self, key):
        return self.store.get(key)

    def ttl(self, key):
        return 60 if key in self.store else -2

    def set(self, key, value, ex=None):
        self.store[key] = str(value)


class TestRateLimit:
    def setup_method(self):
        rate_limiter.memory_cache.clear()

    def test_allows_up_to_limit(self):
        client = FakeRedis()

        results = [rate_limiter.check_rate_limit("test:1.2.3.4", 3, 60, client)[0] for _ in range(4)]

        assert results == [True, True, True, False]

    def test_counts_are_loaded_from_redis(self):
        client = FakeRedis()
        client.store["test:5.6.7.8"] = "5"

        allowed, count, ttl = rate_limiter.check_rate_limit("test:5.6.7.8", 5, 60, client)

        assert not allowed
        assert count == 5
        assert ttl > 0
