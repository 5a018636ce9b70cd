"""
Pure summaries over students, teachers, ledgers and attendance.

Every function takes plain collections (querysets, lists or snapshot tuples)
and returns new values. Nothing here reads the database or mutates input.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from django.conf import settings

from apps.core.utils.parsing import parse_report_date, to_decimal

ALL_CLASSES = 'all'
DAYS_PER_YEAR = Decimal('365.25')

FEE_STATUS_PAID = 'Paid'
FEE_STATUS_PARTIAL = 'Partially Paid'
FEE_STATUS_UNPAID = 'Unpaid'


@dataclass(frozen=True)
class FeeSummary:
    collected: Decimal = Decimal('0')
    pending: Decimal = Decimal('0')


@dataclass(frozen=True)
class AttendanceSummary:
    present: int = 0
    absent: int = 0


@dataclass(frozen=True)
class AssetValuation:
    purchase_value: Decimal = Decimal('0')
    depreciation: Decimal = Decimal('0')
    net_value: Decimal = Decimal('0')


def depreciation_rate() -> Decimal:
    return to_decimal(getattr(settings, 'DEAD_STOCK_DEPRECIATION_RATE', '0.10'), 'DEAD_STOCK_DEPRECIATION_RATE')


def is_active_student(student) -> bool:
    return (student.status or '') in ('', 'Active')


def class_label(class_name, section) -> str:
    return f"{class_name} '{section}'"


def split_class_label(label):
    label = (label or '').strip()
    if " '" not in label:
        return label, ''
    class_name, section = label.split(" '", 1)
    return class_name.strip(), section.rstrip("'").strip()


def _pending(student) -> Decimal:
    return to_decimal(student.total_fees) - to_decimal(student.fees_paid)


def fees_summary_by_class(students) -> dict:
    collected = {}
    pending = {}
    for student in students:
        if not is_active_student(student):
            continue
        key = student.class_name
        collected[key] = collected.get(key, Decimal('0')) + to_decimal(student.fees_paid)
        pending[key] = pending.get(key, Decimal('0')) + _pending(student)
    return {key: FeeSummary(collected=collected[key], pending=pending[key]) for key in collected}


def fee_totals(students) -> FeeSummary:
    collected = Decimal('0')
    pending = Decimal('0')
    for student in students:
        collected += to_decimal(student.fees_paid)
        pending += _pending(student)
    return FeeSummary(collected=collected, pending=pending)


def attendance_summary(records, active_ids, on_date) -> AttendanceSummary:
    """Count present/absent marks for `on_date`. Duplicate marks are each counted."""
    on_date = parse_report_date(on_date, 'on_date')
    active_ids = set(active_ids)
    present = 0
    absent = 0
    for record in records:
        if parse_report_date(record.date) != on_date or record.person_id not in active_ids:
            continue
        if record.status == 'present':
            present += 1
        elif record.status == 'absent':
            absent += 1
    return AttendanceSummary(present=present, absent=absent)


def _matches_class(student, class_filter) -> bool:
    if not class_filter or class_filter == ALL_CLASSES:
        return True
    return student.class_name == class_filter


def due_students(students, class_filter=ALL_CLASSES) -> list:
    return [
        student
        for student in students
        if to_decimal(student.total_fees) > to_decimal(student.fees_paid) and _matches_class(student, class_filter)
    ]


def _in_period(entries, start, end, attr):
    start = parse_report_date(start, 'start')
    end = parse_report_date(end, 'end')
    dated = [(parse_report_date(getattr(entry, attr)), entry) for entry in entries]
    selected = [(entry_date, entry) for entry_date, entry in dated if start <= entry_date <= end]
    return [entry for _, entry in sorted(selected, key=lambda pair: pair[0])]


def expenses_in_period(expenses, start, end) -> list:
    return _in_period(expenses, start, end, 'date')


def payments_in_period(payments, start, end) -> list:
    return _in_period(payments, start, end, 'date')


def _anniversary(purchase_date: date, year: int) -> date:
    try:
        return purchase_date.replace(year=year)
    except ValueError:
        # 29 February in a non-leap year.
        return purchase_date.replace(year=year, day=28)


def age_in_years(purchase_date: date, as_of: date) -> Decimal:
    if as_of <= purchase_date:
        return Decimal('0')
    years = as_of.year - purchase_date.year
    anniversary = _anniversary(purchase_date, as_of.year)
    if anniversary > as_of:
        years -= 1
        anniversary = _anniversary(purchase_date, purchase_date.year + years)
    remaining_days = (as_of - anniversary).days
    return Decimal(years) + Decimal(remaining_days) / DAYS_PER_YEAR


def depreciated_asset_value(dead_stock, as_of, rate=None) -> AssetValuation:
    """
    Straight-line valuation of dead stock bought on or before `as_of`.

    Depreciation is not capped per item; only the total net value is floored
    at zero.
    """
    as_of = parse_report_date(as_of, 'as_of')
    rate = depreciation_rate() if rate is None else to_decimal(rate, 'rate')

    purchase_value = Decimal('0')
    depreciation = Decimal('0')
    for item in dead_stock:
        purchase_date = parse_report_date(item.purchase_date, 'purchase_date')
        if purchase_date > as_of:
            continue
        item_value = to_decimal(item.price) * Decimal(item.quantity)
        purchase_value += item_value
        age = age_in_years(purchase_date, as_of)
        if age > 0:
            depreciation += item_value * rate * age

    net_value = max(Decimal('0'), purchase_value - depreciation)
    return AssetValuation(purchase_value=purchase_value, depreciation=depreciation, net_value=net_value)


def fee_status(student) -> str:
    if _pending(student) <= 0:
        return FEE_STATUS_PAID
    if to_decimal(student.fees_paid) > 0:
        return FEE_STATUS_PARTIAL
    return FEE_STATUS_UNPAID


def roll_sort_key(student):
    roll = (student.roll_number or '').strip()
    name = (student.name or '').lower()
    if roll.isdigit():
        return (0, int(roll), name)
    return (1, 0, name)


def _class_name_key(class_name):
    class_name = class_name or ''
    if class_name.isdigit():
        return (0, int(class_name), class_name)
    return (1, 0, class_name.lower())


def _label_sort_key(label):
    class_name, section = split_class_label(label)
    return (_class_name_key(class_name), section)


def class_options(students) -> list:
    labels = {
        class_label(student.class_name, student.section)
        for student in students
        if student.class_name and is_active_student(student)
    }
    return sorted(labels, key=_label_sort_key)


def class_section_labels(classes) -> list:
    """Every class-section pair configured for the school."""
    labels = []
    for school_class in classes:
        for section in school_class.sections or []:
            labels.append(class_label(school_class.name, section))
    return sorted(labels, key=_label_sort_key)
