# Vault - Password Generator
#
# Random password generation (secrets module) and a simple additive
# strength score used by the "generate" and "check strength" commands.

import re
import secrets
from dataclasses import dataclass, field
from typing import List

from .errors import ValidationFailure

LOWERCASE = "abcdefghijklmnopqrstuvwxyz"
UPPERCASE = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
NUMBERS = "0123456789"
SYMBOLS = "!@#$%^&*()_+-=[]{}|;:,.<>?"

DEFAULT_LENGTH = 16


@dataclass
class StrengthReport:
    score: int                  # 0..7
    level: str                  # weak / fair / good / strong
    suggestions: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"score": self.score, "level": self.level, "suggestions": self.suggestions}


def generate_password(
    length: int = DEFAULT_LENGTH,
    *,
    lowercase: bool = True,
    uppercase: bool = True,
    numbers: bool = True,
    symbols: bool = True,
) -> str:
    """Generate a random password from the enabled character classes.

    With every class disabled, falls back to lowercase letters + digits.
    """
    if length < 0:
        raise ValidationFailure("Password length must not be negative", errors=["Invalid length"])

    charset = ""
    if lowercase:
        charset += LOWERCASE
    if uppercase:
        charset += UPPERCASE
    if numbers:
        charset += NUMBERS
    if symbols:
        charset += SYMBOLS
    if not charset:
        charset = LOWERCASE + NUMBERS

    return "".join(secrets.choice(charset) for _ in range(length))


def check_strength(password: str) -> StrengthReport:
    """Score a password: one point per satisfied rule, plus one for 16+ chars."""
    score = 0
    suggestions: List[str] = []

    if len(password) >= 8:
        score += 1
    else:
        suggestions.append("Use at least 8 characters")

    if len(password) >= 12:
        score += 1
    else:
        suggestions.append("Consider using 12 or more characters")

    if re.search(r"[a-z]", password):
        score += 1
    else:
        suggestions.append("Add lowercase letters")

    if re.search(r"[A-Z]", password):
        score += 1
    else:
        suggestions.append("Add uppercase letters")

    if re.search(r"[0-9]", password):
        score += 1
    else:
        suggestions.append("Add numbers")

    if re.search(r"[^a-zA-Z0-9]", password):
        score += 1
    else:
        suggestions.append("Add special characters")

    if len(password) >= 16:
        score += 1

    if score >= 6:
        level = "strong"
    elif score >= 4:
        level = "good"
    elif score >= 2:
        level = "fair"
    else:
        level = "weak"

    return StrengthReport(score=score, level=level, suggestions=suggestions)
