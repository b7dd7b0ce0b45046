"""
Vault Password Strength — scoring used to gate vault setup.

Score (maximum 8):
    length >= 12 → 2, length >= 8 → 1
    +1 each: lowercase, uppercase, digit, symbol (ASCII classes)
    +1 no character repeated three times in a row
    +1 none of "123", "abc", "qwe" (case-insensitive)

A password is accepted when the score is at least 6.
"""
import re

from pydantic import BaseModel, Field

MIN_VALID_SCORE = 6
MAX_SCORE = 8

_LOWER = re.compile(r"[a-z]")
_UPPER = re.compile(r"[A-Z]")
_DIGIT = re.compile(r"[0-9]")
_SYMBOL = re.compile(r"[^a-zA-Z0-9]")
_REPEATED = re.compile(r"(.)\1{2,}", re.DOTALL)
_SEQUENCE = re.compile(r"123|abc|qwe", re.IGNORECASE | re.ASCII)


class PasswordStrengthResult(BaseModel):
    is_valid: bool
    score: int = Field(ge=0, le=MAX_SCORE)
    feedback: list[str] = Field(default_factory=list)


def validate_key_strength(password: str) -> PasswordStrengthResult:
    """Score a candidate vault password and explain how to improve it."""
    feedback: list[str] = []
    score = 0

    if len(password) >= 12:
        score += 2
    elif len(password) >= 8:
        score += 1
        feedback.append("Consider using a longer password (12+ characters)")
    else:
        feedback.append("Password must be at least 8 characters long")

    classes = [
        (_LOWER, "Add lowercase letters"),
        (_UPPER, "Add uppercase letters"),
        (_DIGIT, "Add numbers"),
        (_SYMBOL, "Add special characters"),
    ]
    missing = []
    for pattern, hint in classes:
        if pattern.search(password):
            score += 1
        else:
            missing.append(hint)

    if not _REPEATED.search(password):
        score += 1
    if not _SEQUENCE.search(password):
        score += 1

    is_valid = score >= MIN_VALID_SCORE
    if not is_valid:
        feedback.extend(missing)

    return PasswordStrengthResult(is_valid=is_valid, score=score, feedback=feedback)
