from ..errors import ValidationError


def ensure_positive_int(value, field: str) -> int:
    try:
        v = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be an integer", field=field) from None
    if v <= 0:
        raise ValidationError(f"{field} must be > 0", field=field)
    return v


def ensure_int(value, field: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be an integer", field=field) from None


def require_text(value, field: str, message: str) -> str:
    v = str(value or "").strip()
    if not v:
        raise ValidationError(message, field=field)
    return v


def require_email(value, field: str = "customer_email") -> str:
    v = str(value or "").strip()
    if not v or "@" not in v:
        raise ValidationError("Please enter a valid email address", field=field)
    return v
