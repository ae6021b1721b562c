"""
Field validation for role and user entities.

Validators return the normalized value or raise ``ValidationError`` tagged with
the offending field and a reason code. Human readable text lives only in
``VALIDATION_MESSAGES``, keyed by ``<field>.<reason>``.
"""
from __future__ import annotations

import re
from typing import Any, Final, Mapping

from ..errors import ValidationError

NAME_MAX_LENGTH: Final[int] = 50

NAME_PATTERN: Final[re.Pattern[str]] = re.compile(r"^[A-Za-z ]*$")
EMAIL_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"^[a-zA-Z0-9._+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"
)
PHONE_PATTERN: Final[re.Pattern[str]] = re.compile(r"^(?:0|91)?[6-9][0-9]{9}$")
PASSWORD_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"^(?=.*[0-9])(?=.*[a-zA-Z])(?=.*[!@#$%^&*_])[a-zA-Z0-9!@#$%^&*_]{6,20}$"
)

VALIDATION_MESSAGES: Final[Mapping[str, str]] = {
    "title.required": "Role title is required",
    "title.empty": "Role title cannot be empty",
    "title.pattern": "Role title must contain only letters and spaces",
    "title.max_length": "Role title cannot exceed {max_length} characters",
    "permissions.required": "Permissions are required",
    "permissions.min_items": "Role must have at least one permission",
    "permissions.invalid": (
        "Provided invalid permissions: {invalid}. Valid permissions are: {options}"
    ),
    "firstname.required": "First name is required",
    "firstname.pattern": "First name must contain only letters",
    "firstname.max_length": "First name cannot exceed {max_length} characters",
    "lastname.pattern": "Last name must contain only letters",
    "lastname.max_length": "Last name cannot exceed {max_length} characters",
    "email.required": "Email address is required",
    "email.pattern": "Please provide a valid email address",
    "phone.required": "Phone number is required",
    "phone.pattern": "Please provide a valid phone number",
    "password.required": "Password is required",
    "password.pattern": (
        "Password must be 6-20 characters long and should contain at least one digit, "
        "one letter, and one special character"
    ),
    "avatar.content_type": "Avatar must be a JPG, PNG or GIF image",
    "avatar.empty": "Avatar file cannot be empty",
    "avatar.max_size": "Avatar cannot exceed {max_bytes} bytes",
    "page.min": "Page must be at least {minimum}",
    "limit.range": "Limit must be between {minimum} and {maximum}",
    "sort_by.invalid": "Invalid sort value. Valid options are: {options}",
    "order.invalid": "Invalid order value. Valid options are: {options}",
    "active.invalid": "Invalid value provided for active. Valid options are: {options}",
}


def validation_error(field: str, reason: str, **params: Any) -> ValidationError:
    template = VALIDATION_MESSAGES[f"{field}.{reason}"]
    return ValidationError(template.format(**params), field=field, reason=reason)


def validate_name(value: str | None, field: str, *, required: bool) -> str | None:
    if value is None or not value.strip():
        if required:
            raise validation_error(field, "required")
        return None

    candidate = value.strip()
    if len(candidate) > NAME_MAX_LENGTH:
        raise validation_error(field, "max_length", max_length=NAME_MAX_LENGTH)
    if not NAME_PATTERN.match(candidate):
        raise validation_error(field, "pattern")
    return candidate


def validate_email(value: str | None) -> str:
    if value is None or not value.strip():
        raise validation_error("email", "required")
    candidate = value.strip().lower()
    if not EMAIL_PATTERN.match(candidate):
        raise validation_error("email", "pattern")
    return candidate


def validate_phone(value: str | None) -> str:
    if value is None or not value.strip():
        raise validation_error("phone", "required")
    candidate = value.strip()
    if not PHONE_PATTERN.match(candidate):
        raise validation_error("phone", "pattern")
    return candidate


def validate_password(value: str | None) -> str:
    if not value:
        raise validation_error("password", "required")
    if not PASSWORD_PATTERN.match(value):
        raise validation_error("password", "pattern")
    return value


def fullname(firstname: str, lastname: str | None) -> str:
    return f"{firstname} {lastname or ''}".rstrip()
