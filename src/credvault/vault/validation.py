# Vault - Input Validation
#
# Policy checks for master secrets, stored passwords, domains, usernames
# and URLs. Each check collects every violated rule rather than stopping
# at the first one, so a UI can show them all.

import re
from dataclasses import dataclass, field
from typing import List

from .domains import parse_url, is_valid_domain
from .errors import ValidationFailure

MIN_PASSWORD_LENGTH = 8
MIN_MASTER_PASSWORD_LENGTH = 12
MAX_USERNAME_LENGTH = 256

_LOWER = re.compile(r"[a-z]")
_UPPER = re.compile(r"[A-Z]")
_DIGIT = re.compile(r"[0-9]")
_SPECIAL = re.compile(r"[^a-zA-Z0-9]")


@dataclass
class ValidationResult:
    valid: bool
    errors: List[str] = field(default_factory=list)

    @classmethod
    def from_errors(cls, errors: List[str]) -> "ValidationResult":
        return cls(valid=not errors, errors=errors)


def require_valid(result: ValidationResult, what: str = "Input") -> None:
    """Raise ValidationFailure listing every violated rule."""
    if not result.valid:
        raise ValidationFailure(f"{what} is invalid: {'; '.join(result.errors)}", errors=result.errors)


class Validator:
    """Stateless validation rules, grouped for discoverability."""

    @staticmethod
    def validate_password(password: str) -> ValidationResult:
        errors: List[str] = []
        if not password:
            errors.append("Password is required")
        else:
            if len(password) < MIN_PASSWORD_LENGTH:
                errors.append(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
            if not _LOWER.search(password):
                errors.append("Password must contain at least one lowercase letter")
            if not _UPPER.search(password):
                errors.append("Password must contain at least one uppercase letter")
            if not _DIGIT.search(password):
                errors.append("Password must contain at least one number")
        return ValidationResult.from_errors(errors)

    @staticmethod
    def validate_master_password(password: str) -> ValidationResult:
        errors: List[str] = []
        if not password:
            errors.append("Master password is required")
        else:
            if len(password) < MIN_MASTER_PASSWORD_LENGTH:
                errors.append(
                    f"Master password must be at least {MIN_MASTER_PASSWORD_LENGTH} characters long"
                )
            if not _LOWER.search(password):
                errors.append("Master password must contain at least one lowercase letter")
            if not _UPPER.search(password):
                errors.append("Master password must contain at least one uppercase letter")
            if not _DIGIT.search(password):
                errors.append("Master password must contain at least one number")
            if not _SPECIAL.search(password):
                errors.append("Master password must contain at least one special character")
        return ValidationResult.from_errors(errors)

    @staticmethod
    def validate_domain(domain: str) -> ValidationResult:
        errors: List[str] = []
        if not domain:
            errors.append("Domain is required")
        elif not is_valid_domain(domain):
            errors.append("Invalid domain format")
        return ValidationResult.from_errors(errors)

    @staticmethod
    def validate_username(username: str) -> ValidationResult:
        errors: List[str] = []
        if not username:
            errors.append("Username is required")
        elif len(username) > MAX_USERNAME_LENGTH:
            errors.append(f"Username is too long (max {MAX_USERNAME_LENGTH} characters)")
        return ValidationResult.from_errors(errors)

    @staticmethod
    def validate_url(url: str) -> ValidationResult:
        errors: List[str] = []
        if not url:
            errors.append("URL is required")
        else:
            try:
                parse_url(url)
            except ValueError:
                errors.append("Invalid URL format")
        return ValidationResult.from_errors(errors)
