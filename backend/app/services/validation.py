"""Shared validation logic for post and account form inputs.

Each ``validate_*`` function returns ``None`` when the value is acceptable or
a human-readable message otherwise.  Used by the post actions, the HTTP
routes, and on-blur form validation so that rules live in one place and are
testable without framework dependencies.
"""

import re
from dataclasses import dataclass, field

from backend.app.services.slugify import is_valid_slug

TITLE_MAX_LENGTH = 200
CONTENT_MAX_LENGTH = 100_000
PASSWORD_MIN_LENGTH = 8

_EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


@dataclass
class ValidationResult:
    is_valid: bool
    errors: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class FieldValidation:
    is_valid: bool
    error: str | None = None


def validate_title(title: str | None) -> str | None:
    if not title or not title.strip():
        return "Title is required"
    if len(title) > TITLE_MAX_LENGTH:
        return f"Title must be {TITLE_MAX_LENGTH} characters or less"
    return None


def validate_slug(slug: str | None) -> str | None:
    if not slug or not slug.strip():
        return "Slug is required"
    if not is_valid_slug(slug):
        return "Slug must contain only lowercase letters, numbers, and hyphens"
    return None


def validate_content(content: str | None) -> str | None:
    """Content is optional; only its length is limited."""
    if content and len(content) > CONTENT_MAX_LENGTH:
        return "Content must be 100,000 characters or less"
    return None


def validate_email(email: str | None) -> str | None:
    if not email or not email.strip():
        return "Email is required"
    if not _EMAIL_PATTERN.match(email.strip()):
        return "Please enter a valid email address"
    return None


def validate_password(password: str | None) -> str | None:
    if not password:
        return "Password is required"
    if len(password) < PASSWORD_MIN_LENGTH:
        return f"Password must be at least {PASSWORD_MIN_LENGTH} characters"
    return None


def validate_post_inputs(
    title: str | None,
    slug: str | None,
    content: str | None,
) -> ValidationResult:
    """Validate all post fields; ``errors`` maps field name to message."""
    errors: dict[str, str] = {}

    for name, message in (
        ("title", validate_title(title)),
        ("slug", validate_slug(slug)),
        ("content", validate_content(content)),
    ):
        if message:
            errors[name] = message

    return ValidationResult(is_valid=not errors, errors=errors)


_FIELD_VALIDATORS = {
    "title": validate_title,
    "slug": validate_slug,
    "content": validate_content,
    "email": validate_email,
    "password": validate_password,
}


def validate_field(field_name: str, value: str | None) -> FieldValidation:
    """Validate a single form field (on-blur validation).

    Unknown field names have no rules and are always valid.
    """
    validator = _FIELD_VALIDATORS.get(field_name)
    if validator is None:
        return FieldValidation(is_valid=True)
    error = validator(value)
    return FieldValidation(is_valid=error is None, error=error)
