from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from django.core.exceptions import ValidationError
from django.utils.dateparse import parse_date


def parse_report_date(value, field='date') -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    parsed = None
    if isinstance(value, str):
        try:
            parsed = parse_date(value.strip())
        except ValueError:
            parsed = None
    if parsed is None:
        raise ValidationError({field: f'Invalid date: {value!r}.'})
    return parsed


def to_decimal(value, field='amount') -> Decimal:
    if isinstance(value, Decimal):
        return value
    if value is None or value == '':
        return Decimal('0')
    if isinstance(value, float):
        value = repr(value)
    try:
        result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError({field: f'Invalid amount: {value!r}.'})
    if not result.is_finite():
        raise ValidationError({field: f'Invalid amount: {value!r}.'})
    return result


def quantize(value) -> Decimal:
    return to_decimal(value).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)
