"""
Input checks shared by the services. They run before any store access.
"""

import uuid
from typing import Optional

from vidtube.exceptions import ValidationError


def parse_entity_id(raw: Optional[str], label: str) -> uuid.UUID:
    """
    Parse a path/query identifier.

    Raises:
        ValidationError("Invalid <label> ID") for missing or malformed ids.
    """
    if raw is None or not str(raw).strip():
        raise ValidationError(message=f"Invalid {label} ID", field=f"{label}Id")
    try:
        return uuid.UUID(str(raw).strip())
    except ValueError:
        raise ValidationError(
            message=f"Invalid {label} ID",
            field=f"{label}Id",
            context={"value": str(raw)[:64]},
        )


def clean_text(raw: Optional[str]) -> str:
    """Trimmed text; None becomes the empty string."""
    return (raw or "").strip()


def require_text(raw: Optional[str], message: str, field: str) -> str:
    value = clean_text(raw)
    if not value:
        raise ValidationError(message=message, field=field)
    return value
