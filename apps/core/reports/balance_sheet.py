from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from django.core.exceptions import ValidationError

from apps.core.utils.parsing import parse_report_date, to_decimal

from .aggregation import AssetValuation, depreciated_asset_value, expenses_in_period, payments_in_period

MODE_YEARLY = 'yearly'
MODE_MONTHLY = 'monthly'
LABEL_PROFIT = 'Net Profit'
LABEL_LOSS = 'Net Loss'


@dataclass(frozen=True)
class BalanceSheet:
    start: date
    end: date
    total_fees_collected: Decimal
    total_expenses: Decimal
    asset: AssetValuation
    net_result: Decimal
    label: str
    magnitude: Decimal
    period_label: str = ''


def period_bounds(mode, year, month=None):
    try:
        year = int(year)
    except (TypeError, ValueError):
        raise ValidationError({'year': f'Invalid year: {year!r}.'})

    if mode == MODE_YEARLY:
        return date(year, 1, 1), date(year, 12, 31)

    if mode == MODE_MONTHLY:
        try:
            month = int(month)
        except (TypeError, ValueError):
            raise ValidationError({'month': 'Month is required for a monthly balance sheet.'})
        if not 1 <= month <= 12:
            raise ValidationError({'month': f'Invalid month: {month}.'})
        last_day = calendar.monthrange(year, month)[1]
        return date(year, month, 1), date(year, month, last_day)

    raise ValidationError({'mode': f'Unknown report type: {mode!r}.'})


def period_label(mode, year, month=None) -> str:
    if mode == MODE_MONTHLY:
        return f"Month: {calendar.month_name[int(month)]} {year}"
    return f"Year: {year}"


def compute_balance_sheet(*, start, end, fee_payments, expenses, dead_stock, rate=None, label=''):
    start = parse_report_date(start, 'start')
    end = parse_report_date(end, 'end')
    if start > end:
        raise ValidationError('Period start must not be after its end.')

    total_fees = sum(
        (to_decimal(payment.amount) for payment in payments_in_period(fee_payments, start, end)),
        Decimal('0'),
    )
    total_expenses = sum(
        (to_decimal(expense.amount) for expense in expenses_in_period(expenses, start, end)),
        Decimal('0'),
    )
    asset = depreciated_asset_value(dead_stock, end, rate=rate)

    net_result = total_fees + asset.net_value - total_expenses
    return BalanceSheet(
        start=start,
        end=end,
        total_fees_collected=total_fees,
        total_expenses=total_expenses,
        asset=asset,
        net_result=net_result,
        label=LABEL_PROFIT if net_result >= 0 else LABEL_LOSS,
        magnitude=abs(net_result),
        period_label=label,
    )
