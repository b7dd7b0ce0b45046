"""
Tests for PII redaction and location anonymization.
"""
import math
import re

import pytest

from diary_vault.privacy import (
    DEFAULT_PATTERNS,
    Coordinates,
    Redactor,
    anonymize_location,
    redact_pii,
)


class TestRedactPII:

    def test_card(self):
        result = redact_pii("Card 4111-1111-1111-1111")
        assert "[REDACTED-CARD]" in result
        assert "4111" not in result
        assert result == "Card [REDACTED-CARD]"

    def test_card_with_spaces(self):
        assert redact_pii("4111 1111 1111 1111") == "[REDACTED-CARD]"

    def test_email(self):
        assert redact_pii("contact me at a@b.com") == "contact me at [REDACTED-EMAIL]"

    def test_ssn(self):
        assert redact_pii("SSN 123-45-6789.") == "SSN [REDACTED-SSN]."

    @pytest.mark.parametrize("phone", ["555-123-4567", "555.123.4567", "5551234567"])
    def test_phone(self, phone):
        assert redact_pii(f"call {phone} tonight") == "call [REDACTED-PHONE] tonight"

    def test_ip(self):
        assert redact_pii("from 192.168.1.20 again") == "from [REDACTED-IP] again"

    def test_mixed(self):
        text = (
            "Met Dana (dana.k@example.org, 555-867-5309) at 10.0.0.1; "
            "paid with 4242424242424242."
        )
        result = redact_pii(text)
        assert result == (
            "Met Dana ([REDACTED-EMAIL], [REDACTED-PHONE]) at [REDACTED-IP]; "
            "paid with [REDACTED-CARD]."
        )

    def test_no_pii_unchanged(self):
        text = "Shipped the onboarding flow, 3 users signed up."
        assert redact_pii(text) == text

    def test_empty(self):
        assert redact_pii("") == ""


class TestRedactor:

    def test_order_insensitive(self):
        text = "card 4111-1111-1111-1111, mail a@b.com, ip 8.8.8.8, ssn 123-45-6789"
        forward = Redactor(DEFAULT_PATTERNS).redact(text)
        backward = Redactor(reversed(DEFAULT_PATTERNS)).redact(text)
        assert forward == backward

    def test_overlap_prefers_wider_span(self):
        """A phone number inside an email address redacts the whole address."""
        phone_first = sorted(DEFAULT_PATTERNS, key=lambda p: p.name != "phone")
        result = Redactor(phone_first).redact("reply to 5551234567@mail.com")
        assert result == "reply to [REDACTED-EMAIL]"

    def test_add_pattern(self):
        redactor = Redactor()
        redactor.add_pattern("handle", r"@[a-z_]{3,}\b")
        assert redactor.redact("ping @founder_bob") == "ping [REDACTED-HANDLE]"

    def test_add_compiled_pattern_with_placeholder(self):
        redactor = Redactor([])
        redactor.add_pattern("iban", re.compile(r"\bDE\d{20}\b"), "[IBAN]")
        assert redactor.redact("DE89370400440532013000") == "[IBAN]"

    def test_custom_list_does_not_touch_defaults(self):
        Redactor([]).add_pattern("x", r"x")
        assert redact_pii("x") == "x"


class TestAnonymizeLocation:

    def test_two_places(self):
        assert anonymize_location(40.712776, -74.005974, 2) == Coordinates(40.71, -74.01)

    def test_default_precision(self):
        result = anonymize_location(51.507351, -0.127758)
        assert result.lat == 51.51
        assert result.lng == -0.13

    def test_zero_precision(self):
        assert anonymize_location(40.712776, -74.505974, 0) == (41.0, -75.0)

    def test_half_up(self):
        assert anonymize_location(1.005, 2.125, 2) == (1.01, 2.13)

    def test_precision_beyond_float_digits(self):
        assert anonymize_location(40.712776, -74.005974, 30) == (40.712776, -74.005974)

    def test_large_precision_on_large_value(self):
        assert anonymize_location(1e300, -1e300, 50) == (1e300, -1e300)

    def test_infinite_passes_through(self):
        result = anonymize_location(math.inf, 0.0, 2)
        assert result.lat == math.inf
        assert result.lng == 0.0
        assert anonymize_location(1.234, -math.inf).lng == -math.inf

    def test_nan_passes_through(self):
        result = anonymize_location(math.nan, 12.345)
        assert math.isnan(result.lat)
        assert result.lng == 12.35
