from datetime import datetime, timezone
from typing import Optional

from app.common.errors import ValidationError

TITLE_MIN, TITLE_MAX = 5, 255
DESCRIPTION_MIN, DESCRIPTION_MAX = 20, 2000
JUSTIFICATION_MAX = 1000
COMMENT_MAX = 1000


def as_utc(value: datetime) -> datetime:
    """Naive datetimes are taken to be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def validate_title(title: Optional[str]) -> None:
    if title is None or not title.strip():
        raise ValidationError("Title is required")
    if not TITLE_MIN <= len(title) <= TITLE_MAX:
        raise ValidationError(f"Title must be between {TITLE_MIN} and {TITLE_MAX} characters")


def validate_description(description: Optional[str]) -> None:
    if description is None or not description.strip():
        raise ValidationError("Description is required")
    if not DESCRIPTION_MIN <= len(description) <= DESCRIPTION_MAX:
        raise ValidationError(
            f"Description must be between {DESCRIPTION_MIN} and {DESCRIPTION_MAX} characters"
        )


def validate_justification(justification: Optional[str]) -> None:
    if justification is not None and len(justification) > JUSTIFICATION_MAX:
        raise ValidationError(f"Justification cannot exceed {JUSTIFICATION_MAX} characters")


def validate_comment(comment: Optional[str], required: bool = False) -> None:
    if required and (comment is None or not comment.strip()):
        raise ValidationError("A comment is required")
    if comment is not None and len(comment) > COMMENT_MAX:
        raise ValidationError(f"Comment cannot exceed {COMMENT_MAX} characters")


def validate_requested_date(requested_date: Optional[datetime], now: datetime) -> None:
    if requested_date is not None and as_utc(requested_date) <= as_utc(now):
        raise ValidationError("Requested date must be in the future")
