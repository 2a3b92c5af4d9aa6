from datetime import date

import pytest

from members_api.errors import RateLimitExceeded
from members_api.utils.dates import add_months
from members_api.utils.hashing import chain_hash, payload_digest
from members_api.utils.phone import mask_phone, normalize_phone
from members_api.utils.rate_limiter import RateLimiter


class TestNormalizePhone:

    def test_leading_zero_becomes_country_prefix(self):
        assert normalize_phone("0712345678") == "254712345678"

    def test_length_grows_by_two(self):
        phone = "0112345678"
        assert len(normalize_phone(phone)) == len(phone) - 1 + 3

    @pytest.mark.parametrize("phone", ["254712345678", "+254712345678", "712345678"])
    def test_other_formats_pass_through(self, phone):
        assert normalize_phone(phone) == phone

    def test_surrounding_whitespace_trimmed(self):
        assert normalize_phone(" 0712345678 ") == "254712345678"


def test_mask_phone():
    assert mask_phone("254712345678") == "2547****5678"
    assert mask_phone("0712") == "****"


class TestAddMonths:

    def test_simple(self):
        assert add_months(date(2024, 6, 12)) == date(2024, 7, 12)

    def test_year_rollover(self):
        assert add_months(date(2024, 12, 5)) == date(2025, 1, 5)

    def test_clamps_to_month_end(self):
        assert add_months(date(2024, 1, 31)) == date(2024, 2, 29)
        assert add_months(date(2023, 1, 31)) == date(2023, 2, 28)

    def test_multiple_months(self):
        assert add_months(date(2024, 11, 30), 3) == date(2025, 2, 28)


def test_chain_hash_depends_on_previous():
    first = chain_hash({"a": 1})
    assert chain_hash({"a": 1}, first) != first
    assert chain_hash({"a": 1}) == first
    assert payload_digest({"a": 1, "b": 2}) == payload_digest({"b": 2, "a": 1})


class TestRateLimiter:

    def test_blocks_after_limit_within_window(self):
        limiter = RateLimiter(requests=2, window=60)
        limiter.hit("1.2.3.4", now=0)
        limiter.hit("1.2.3.4", now=1)
        with pytest.raises(RateLimitExceeded) as exc:
            limiter.hit("1.2.3.4", now=2)
        assert exc.value.status_code == 429

    def test_window_resets(self):
        limiter = RateLimiter(requests=1, window=60)
        limiter.hit("1.2.3.4", now=0)
        limiter.hit("1.2.3.4", now=61)

    def test_zero_disables(self):
        limiter = RateLimiter(requests=0, window=60)
        for i in range(10):
            limiter.hit("1.2.3.4", now=i)

    def test_closed_windows_are_evicted(self):
        limiter = RateLimiter(requests=5, window=60)
        for i in range(100):
            limiter.hit(f"10.0.0.{i}", now=0)
        limiter.hit("1.2.3.4", now=120)
        assert list(limiter._store) == ["1.2.3.4"]
