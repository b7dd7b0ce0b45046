"""
Privacy utilities — PII redaction and location blurring for exports.

These are best-effort heuristics for content leaving the vault (yearbook
exports, logs). They miss unusual formats and will sometimes redact things
that only look like PII; when patterns overlap the wider span wins.
They are not a compliance control.
"""
import math
import re
from decimal import Decimal, ROUND_HALF_UP, localcontext
from typing import Iterable, NamedTuple, Optional, Union


class PIIPattern(NamedTuple):
    name: str
    regex: re.Pattern
    placeholder: str


class Coordinates(NamedTuple):
    lat: float
    lng: float


DEFAULT_PATTERNS: tuple[PIIPattern, ...] = (
    PIIPattern(
        "card",
        re.compile(r"\b\d{4}[-\s]?\d{4}[-\s]?\d{4}[-\s]?\d{4}\b"),
        "[REDACTED-CARD]",
    ),
    PIIPattern("ssn", re.compile(r"\b\d{3}-\d{2}-\d{4}\b"), "[REDACTED-SSN]"),
    PIIPattern(
        "email",
        re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b"),
        "[REDACTED-EMAIL]",
    ),
    PIIPattern(
        "phone",
        re.compile(r"\b\d{3}[-.]?\d{3}[-.]?\d{4}\b"),
        "[REDACTED-PHONE]",
    ),
    PIIPattern(
        "ip",
        re.compile(r"\b\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3}\b"),
        "[REDACTED-IP]",
    ),
)


class Redactor:
    """Replace every match of a set of PII patterns with its placeholder.

    All patterns are matched against the original text, then overlapping
    matches are merged into one redaction that keeps the placeholder of the
    longest match starting first. The result is the same whatever order the
    patterns are listed in.
    """

    def __init__(self, patterns: Optional[Iterable[PIIPattern]] = None):
        self.patterns: list[PIIPattern] = list(
            DEFAULT_PATTERNS if patterns is None else patterns
        )

    def add_pattern(
        self,
        name: str,
        regex: Union[str, re.Pattern],
        placeholder: Optional[str] = None,
    ) -> None:
        if isinstance(regex, str):
            regex = re.compile(regex)
        placeholder = placeholder or f"[REDACTED-{name.upper()}]"
        self.patterns.append(PIIPattern(name, regex, placeholder))

    def _spans(self, text: str) -> list[tuple[int, int, str]]:
        found = []
        for pattern in self.patterns:
            for match in pattern.regex.finditer(text):
                if match.end() > match.start():
                    found.append((match.start(), match.end(), pattern.placeholder))
        # earliest first; on ties the longest, then the placeholder text
        found.sort(key=lambda s: (s[0], -(s[1] - s[0]), s[2]))
        merged: list[list] = []
        for start, end, placeholder in found:
            if merged and start < merged[-1][1]:
                merged[-1][1] = max(merged[-1][1], end)
            else:
                merged.append([start, end, placeholder])
        return [(s, e, p) for s, e, p in merged]

    def redact(self, text: str) -> str:
        if not text:
            return text
        parts = []
        cursor = 0
        for start, end, placeholder in self._spans(text):
            parts.append(text[cursor:start])
            parts.append(placeholder)
            cursor = end
        parts.append(text[cursor:])
        return "".join(parts)


_default_redactor = Redactor()


def redact_pii(text: str) -> str:
    """Redact cards, SSNs, emails, phone numbers and IPv4 addresses."""
    return _default_redactor.redact(text)


def _round_half_up(value: float, precision: int) -> float:
    if not math.isfinite(value):
        return value
    with localcontext() as ctx:
        # enough digits for any finite float at any requested precision
        ctx.prec = 330 + abs(precision)
        exponent = Decimal(1).scaleb(-precision)
        rounded = Decimal(repr(value)).quantize(exponent, rounding=ROUND_HALF_UP)
    return float(rounded)


def anonymize_location(lat: float, lng: float, precision: int = 2) -> Coordinates:
    """Round coordinates to ``precision`` decimal places.

    Two places is roughly a 1 km cell, enough to keep the city and lose the
    street.
    """
    return Coordinates(
        _round_half_up(lat, precision),
        _round_half_up(lng, precision),
    )
