"""
Input validation helpers shared by the services.
Each helper returns the cleaned value or raises ValidationError naming the field.
"""
import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from docspot.errors import ValidationError
from docspot.models import SPECIALTIES

EMAIL_RE = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')
TIME_RE = re.compile(r'^([01]\d|2[0-3]):[0-5]\d$')

# Column limits: Integer and Numeric(10, 2)
MAX_INT = 2 ** 31 - 1
MAX_AMOUNT = Decimal('99999999.99')


def require_text(data: dict, field: str, label: Optional[str] = None) -> str:
    value = data.get(field)
    if value is None or not isinstance(value, str) or not value.strip():
        raise ValidationError(f'Field "{label or field}" is required', field=field)
    return value.strip()


def optional_text(data: dict, field: str) -> Optional[str]:
    value = data.get(field)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f'Field "{field}" must be text', field=field)
    return value.strip() or None


def validate_email(value: Any) -> str:
    if not isinstance(value, str) or not EMAIL_RE.match(value.strip()):
        raise ValidationError('Invalid email address', field='email')
    return value.strip().lower()


def validate_password(value: Any, min_length: int = 6) -> str:
    if not isinstance(value, str) or len(value) < min_length:
        raise ValidationError(f'Password must be at least {min_length} characters', field='password')
    return value


def parse_date(value: Any, field: str = 'date') -> date:
    """Parse a YYYY-MM-DD string"""
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f'Field "{field}" is required', field=field)
    try:
        return datetime.strptime(value.strip(), '%Y-%m-%d').date()
    except ValueError:
        raise ValidationError('Invalid date format. Use YYYY-MM-DD', field=field)


def parse_optional_date(value: Any, field: str) -> Optional[date]:
    if value in (None, ''):
        return None
    return parse_date(value, field)


def validate_time(value: Any, field: str = 'time') -> str:
    """Check HH:MM (24h) format"""
    if not isinstance(value, str) or not TIME_RE.match(value.strip()):
        raise ValidationError('Invalid time format. Use HH:MM (e.g., 10:30)', field=field)
    return value.strip()


def non_negative_int(value: Any, field: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f'Field "{field}" must be a whole number', field=field)
    try:
        number = int(value)
    except (TypeError, ValueError, OverflowError):
        raise ValidationError(f'Field "{field}" must be a whole number', field=field)
    if isinstance(value, float) and not value.is_integer():
        raise ValidationError(f'Field "{field}" must be a whole number', field=field)
    if number < 0:
        raise ValidationError(f'Field "{field}" cannot be negative', field=field)
    if number > MAX_INT:
        raise ValidationError(f'Field "{field}" is too large', field=field)
    return number


def non_negative_amount(value: Any, field: str) -> Decimal:
    """Currency amount with two decimal places"""
    if isinstance(value, bool) or value is None or value == '':
        raise ValidationError(f'Field "{field}" is required', field=field)
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        raise ValidationError(f'Field "{field}" must be a number', field=field)
    if not amount.is_finite():
        raise ValidationError(f'Field "{field}" must be a number', field=field)
    if amount < 0:
        raise ValidationError(f'Field "{field}" cannot be negative', field=field)
    if amount > MAX_AMOUNT:
        raise ValidationError(f'Field "{field}" cannot exceed {MAX_AMOUNT}', field=field)
    return amount.quantize(Decimal('0.01'))


def validate_specialty(value: Any, field: str = 'specialty') -> str:
    if value not in SPECIALTIES:
        raise ValidationError(f'Invalid specialty. Valid values: {", ".join(SPECIALTIES)}', field=field)
    return value


def parse_id(value: Any, field: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f'Field "{field}" must be an integer id', field=field)
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        raise ValidationError(f'Field "{field}" must be an integer id', field=field)


def validate_documents(value: Any) -> list:
    """Document references are a list of non-empty strings"""
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(d, str) and d.strip() for d in value):
        raise ValidationError('Field "documents" must be a list of document references', field='documents')
    return [d.strip() for d in value]
