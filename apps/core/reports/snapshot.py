from __future__ import annotations

from dataclasses import dataclass

from django.core.exceptions import ValidationError
from django.db import DatabaseError

from apps.core.academics.models import SchoolClass
from apps.core.expenses.models import Expense
from apps.core.fees.models import FeePayment
from apps.core.hr.models import Teacher
from apps.core.inventory.models import DeadStockItem
from apps.core.schools.services import get_school_profile
from apps.core.students.models import Student
from apps.core.utils.exceptions import UpstreamUnavailable
from apps.core.utils.parsing import parse_report_date

_LOADERS = {
    'students': lambda: Student.objects.order_by('admission_number', 'id'),
    'teachers': lambda: Teacher.objects.order_by('name', 'id'),
    'classes': lambda: SchoolClass.objects.order_by('name', 'id'),
    'expenses': lambda: Expense.objects.order_by('date', 'id'),
    'dead_stock': lambda: DeadStockItem.objects.order_by('purchase_date', 'id'),
    'fee_payments': lambda: FeePayment.objects.order_by('date', 'id'),
}
ALL_COLLECTIONS = tuple(_LOADERS) + ('profile',)


@dataclass(frozen=True)
class LedgerSnapshot:
    """Collections read together for one report or dashboard render."""

    students: tuple = ()
    teachers: tuple = ()
    classes: tuple = ()
    expenses: tuple = ()
    dead_stock: tuple = ()
    fee_payments: tuple = ()
    profile: object = None


def load_snapshot(*, include=ALL_COLLECTIONS) -> LedgerSnapshot:
    unknown = set(include) - set(ALL_COLLECTIONS)
    if unknown:
        raise ValidationError(f"Unknown collections: {', '.join(sorted(unknown))}.")

    loaded = {}
    for name in include:
        if name == 'profile':
            loaded['profile'] = get_school_profile()
            continue
        try:
            loaded[name] = tuple(_LOADERS[name]())
        except DatabaseError as exc:
            raise UpstreamUnavailable(name, exc) from exc
    return LedgerSnapshot(**loaded)


def load_attendance(model, start, end, **filters) -> tuple:
    start = parse_report_date(start, 'start')
    end = parse_report_date(end, 'end')
    try:
        return tuple(
            model.objects.filter(date__range=(start, end), **filters).order_by('date', 'id')
        )
    except DatabaseError as exc:
        raise UpstreamUnavailable(model._meta.verbose_name_plural, exc) from exc
