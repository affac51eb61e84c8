"""Form validation. Rejections are returned as values, never raised."""

import math
import re
from dataclasses import dataclass
from datetime import datetime

EMAIL_PATTERN = re.compile(r"[A-Z0-9a-z._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,64}")


@dataclass(frozen=True)
class ValidationResult:
    ok: bool
    message: str = ""

    def __bool__(self) -> bool:
        return self.ok


VALID = ValidationResult(True)


def rejected(message: str) -> ValidationResult:
    return ValidationResult(False, message)


def is_valid_email(email: str) -> bool:
    return EMAIL_PATTERN.fullmatch(email.strip()) is not None


def validate_user_info(name: str, email: str) -> ValidationResult:
    if not name.strip():
        return rejected("Please enter your name")
    if not email.strip():
        return rejected("Please enter your email")
    if not is_valid_email(email):
        return rejected("Please enter a valid email address")
    return VALID


def parse_number(value: str | float | None) -> float | None:
    """Parse a numeric form field; None when blank, ValueError when malformed or not finite."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    number = float(value)
    if not math.isfinite(number):
        raise ValueError(f"Not a finite number: {value!r}")
    return number


def validate_task_form(title: str, estimated_hours: str | float | None = None) -> ValidationResult:
    if not title.strip():
        return rejected("Please enter a task title")
    try:
        hours = parse_number(estimated_hours)
    except ValueError:
        return rejected("Estimated hours must be a number")
    if hours is not None and hours <= 0:
        return rejected("Estimated hours must be greater than zero")
    return VALID


def validate_project_form(
    name: str,
    budget: str | float | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
) -> ValidationResult:
    if not name.strip():
        return rejected("Please enter a project name")
    try:
        amount = parse_number(budget)
    except ValueError:
        return rejected("Budget must be a number")
    if amount is not None and amount < 0:
        return rejected("Budget cannot be negative")
    if start_date and end_date and end_date < start_date:
        return rejected("End date cannot be before start date")
    return VALID
