import re

from library_api.errors import ValidationError

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
LOAN_STATUSES = ("all", "borrowed", "returned", "overdue")
# largest value a 64-bit signed INTEGER column can hold
MAX_DB_INT = 2 ** 63 - 1


def _pick(data: dict, *keys):
    """First present key wins; lets clients send book_id or bookId."""
    for k in keys:
        if k in data and data[k] is not None:
            return data[k]
    return None


def parse_id(value, name: str) -> int:
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool):
        raise ValidationError(f"{name} must be a positive integer")
    try:
        ident = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be a positive integer")
    if ident < 1 or ident > MAX_DB_INT or (isinstance(value, float) and value != ident):
        raise ValidationError(f"{name} must be a positive integer")
    return ident


def required_id(data: dict, name: str) -> int:
    camel = re.sub(r"_(\w)", lambda m: m.group(1).upper(), name)
    value = _pick(data, name, camel)
    if value is None:
        raise ValidationError(f"{name} is required")
    return parse_id(value, name)


def optional_id(data: dict, name: str):
    camel = re.sub(r"_(\w)", lambda m: m.group(1).upper(), name)
    value = _pick(data, name, camel)
    return None if value is None else parse_id(value, name)


def required_str(data: dict, name: str, max_len: int = 255) -> str:
    value = data.get(name)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{name} is required")
    value = value.strip()
    if len(value) > max_len:
        raise ValidationError(f"{name} cannot be more than {max_len} characters")
    return value


def optional_int(data: dict, name: str, minimum: int = None, maximum: int = MAX_DB_INT):
    if data.get(name) is None:
        return None
    value = data[name]
    if isinstance(value, bool):
        raise ValidationError(f"{name} must be an integer")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be an integer")
    if minimum is not None and number < minimum:
        raise ValidationError(f"{name} must be at least {minimum}")
    if maximum is not None and number > maximum:
        raise ValidationError(f"{name} must be at most {maximum}")
    return number


def valid_email(value) -> str:
    if not isinstance(value, str) or not EMAIL_RE.match(value.strip()):
        raise ValidationError("Valid email required")
    return value.strip().lower()


def loan_status(value) -> str:
    status = (value or "all").strip().lower()
    if status not in LOAN_STATUSES:
        raise ValidationError(f"status must be one of {', '.join(LOAN_STATUSES)}")
    return status


def optional_str(data: dict, name: str, max_len: int = 255):
    """Missing or null → None; blank strings clear the field."""
    value = data.get(name)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{name} must be a string")
    value = value.strip()
    if len(value) > max_len:
        raise ValidationError(f"{name} cannot be more than {max_len} characters")
    return value


def page_args(args, default_limit: int, max_limit: int):
    page = parse_id(args.get("page", 1), "page")
    limit = min(parse_id(args.get("limit", default_limit), "limit"), max_limit)
    return page, limit
