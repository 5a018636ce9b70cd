"""
Report tables as raw values.

Builders pick, order and total the rows; numbers stay Decimal and dates stay
dates until a renderer formats them.
"""
from __future__ import annotations

import calendar
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from django.core.exceptions import ValidationError

from apps.core.utils.parsing import parse_report_date, to_decimal

from .aggregation import (
    ALL_CLASSES,
    class_label,
    due_students,
    expenses_in_period,
    fee_status,
    is_active_student,
    roll_sort_key,
    split_class_label,
)

PORTRAIT = 'portrait'
LANDSCAPE = 'landscape'


@dataclass(frozen=True)
class Column:
    key: str
    label: str
    numeric: bool = False
    accounting: bool = False


@dataclass(frozen=True)
class ReportTable:
    title: str
    subtitle: str
    columns: tuple
    rows: tuple
    footer: tuple = ()
    orientation: str = PORTRAIT
    notes: tuple = field(default_factory=tuple)

    @property
    def headers(self):
        return [column.label for column in self.columns]


def _class_subtitle(class_filter):
    if not class_filter or class_filter == ALL_CLASSES:
        return 'All Classes'
    return f"Class: {class_filter}"


def _student_class_label(student):
    return class_label(student.class_name, student.section)


def build_due_fees_table(students, class_filter=ALL_CLASSES, orientation=PORTRAIT) -> ReportTable:
    rows = []
    total_pending = Decimal('0')
    for student in due_students(students, class_filter):
        pending = to_decimal(student.total_fees) - to_decimal(student.fees_paid)
        total_pending += pending
        rows.append((
            student.admission_number,
            student.name,
            _student_class_label(student),
            to_decimal(student.total_fees),
            to_decimal(student.fees_paid),
            pending,
        ))

    return ReportTable(
        title='Due Fees Report',
        subtitle=_class_subtitle(class_filter),
        columns=(
            Column('admission_number', 'Adm. No'),
            Column('name', 'Student Name'),
            Column('class', 'Class'),
            Column('total_fees', 'Total Fees', numeric=True),
            Column('fees_paid', 'Fees Paid', numeric=True),
            Column('pending', 'Pending Amount', numeric=True),
        ),
        rows=tuple(rows),
        footer=('Total Pending Amount', None, None, None, None, total_pending),
        orientation=orientation,
    )


def build_fee_status_table(students, class_filter=ALL_CLASSES, orientation=PORTRAIT) -> ReportTable:
    selected = [
        student
        for student in students
        if not class_filter or class_filter == ALL_CLASSES or student.class_name == class_filter
    ]
    selected = sorted(selected, key=lambda student: (student.class_name or '', roll_sort_key(student)))

    rows = []
    total_fees = Decimal('0')
    total_paid = Decimal('0')
    total_pending = Decimal('0')
    for student in selected:
        fees = to_decimal(student.total_fees)
        paid = to_decimal(student.fees_paid)
        pending = fees - paid
        total_fees += fees
        total_paid += paid
        total_pending += pending
        rows.append((
            student.admission_number,
            student.name,
            _student_class_label(student),
            fees,
            paid,
            max(pending, Decimal('0')),
            fee_status(student),
        ))

    return ReportTable(
        title='All Fees Status Report',
        subtitle=_class_subtitle(class_filter),
        columns=(
            Column('admission_number', 'GR No'),
            Column('name', 'Student Name'),
            Column('class', 'Class'),
            Column('total_fees', 'Total Fees', numeric=True),
            Column('fees_paid', 'Fees Paid', numeric=True),
            Column('pending', 'Pending Amount', numeric=True),
            Column('status', 'Status'),
        ),
        rows=tuple(rows),
        footer=('Grand Total', None, None, total_fees, total_paid, total_pending, None),
        orientation=orientation,
    )


def build_attendance_grid(people, records, year, month, *, label_columns, label_values, title, subtitle='') -> ReportTable:
    """
    One row per person with a P/A/- cell for every day of the month.

    `label_values(person)` returns the leading cells for `label_columns`.
    When a person has more than one mark for a day the first one is shown.
    """
    days_in_month = calendar.monthrange(year, month)[1]
    start = date(year, month, 1)
    end = date(year, month, days_in_month)

    marks = {}
    for record in records:
        record_date = parse_report_date(record.date)
        if start <= record_date <= end:
            marks.setdefault((record.person_id, record_date.day), record.status)

    rows = []
    for person in people:
        cells = list(label_values(person))
        total_present = 0
        total_absent = 0
        for day in range(1, days_in_month + 1):
            status = marks.get((person.pk, day))
            if status is None:
                cells.append('-')
            elif status == 'present':
                cells.append('P')
                total_present += 1
            else:
                cells.append('A')
                total_absent += 1
        cells.extend([total_present, total_absent])
        rows.append(tuple(cells))

    columns = tuple(label_columns) + tuple(
        Column(f'day_{day}', str(day)) for day in range(1, days_in_month + 1)
    ) + (
        Column('total_present', 'Total P', numeric=True),
        Column('total_absent', 'Total A', numeric=True),
    )
    return ReportTable(
        title=title,
        subtitle=subtitle,
        columns=columns,
        rows=tuple(rows),
        orientation=LANDSCAPE,
    )


def build_student_attendance_grid(students, records, year, month, selected_class) -> ReportTable:
    return build_attendance_grid(
        students,
        records,
        year,
        month,
        label_columns=(Column('roll_number', 'Roll'), Column('name', 'Name')),
        label_values=lambda student: (student.roll_number, student.name),
        title='Student Attendance Report',
        subtitle=f"Class: {selected_class} | Month: {calendar.month_name[month]} {year}",
    )


def build_teacher_muster(teachers, records, year, month) -> ReportTable:
    return build_attendance_grid(
        teachers,
        records,
        year,
        month,
        label_columns=(Column('name', 'Teacher Name'), Column('subject', 'Subject')),
        label_values=lambda teacher: (teacher.name, teacher.subject),
        title='Teacher Muster Report',
        subtitle=f"Month: {calendar.month_name[month]} {year}",
    )


def build_expense_table(expenses, start, end, subtitle='') -> ReportTable:
    selected = expenses_in_period(expenses, start, end)
    total = sum((to_decimal(expense.amount) for expense in selected), Decimal('0'))
    return ReportTable(
        title='Expense Report',
        subtitle=subtitle,
        columns=(
            Column('date', 'Date'),
            Column('category', 'Category'),
            Column('description', 'Description'),
            Column('amount', 'Amount', numeric=True),
        ),
        rows=tuple(
            (parse_report_date(expense.date), expense.category, expense.description, to_decimal(expense.amount))
            for expense in selected
        ),
        footer=('Total Expenses', None, None, total),
    )


def build_dead_stock_table(dead_stock, as_of=None) -> ReportTable:
    items = sorted(dead_stock, key=lambda item: parse_report_date(item.purchase_date, 'purchase_date'))
    rows = []
    grand_total = Decimal('0')
    for item in items:
        price = to_decimal(item.price)
        total_price = price * Decimal(item.quantity)
        grand_total += total_price
        rows.append((
            item.item_name,
            item.quantity,
            parse_report_date(item.purchase_date),
            item.description or '',
            price,
            total_price,
            item.status,
        ))

    return ReportTable(
        title='Dead Stock Report',
        subtitle=f"As of {as_of.strftime('%d-%m-%Y')}" if as_of else '',
        columns=(
            Column('item_name', 'Item Name'),
            Column('quantity', 'Quantity', numeric=True),
            Column('purchase_date', 'Purchase Date'),
            Column('description', 'Description'),
            Column('price', 'Unit Price', numeric=True),
            Column('total_price', 'Total Price', numeric=True),
            Column('status', 'Status'),
        ),
        rows=tuple(rows),
        footer=('Grand Total', None, None, None, None, grand_total, None),
    )


def build_balance_sheet_table(sheet) -> ReportTable:
    return ReportTable(
        title='Balance Sheet',
        subtitle=f"For the Period: {sheet.period_label}" if sheet.period_label else '',
        columns=(
            Column('particulars', 'Particulars'),
            Column('amount', 'Amount', numeric=True, accounting=True),
        ),
        rows=(
            ('Total Fees Collection (for the period)', sheet.total_fees_collected),
            ('Value of Dead Stock', sheet.asset.net_value),
            ('Total Expenses (for the period)', -sheet.total_expenses),
        ),
        footer=(sheet.label, sheet.magnitude),
        notes=(
            ('Dead stock purchase value', sheet.asset.purchase_value),
            ('Dead stock depreciation', sheet.asset.depreciation),
        ),
    )


def build_class_register_table(students, selected_class, academic_year='') -> ReportTable:
    class_name, section = split_class_label(selected_class)
    in_class = [
        student
        for student in students
        if student.class_name == class_name and student.section == section and is_active_student(student)
    ]
    if not in_class:
        raise ValidationError(f"No active students found in class {selected_class}.")

    rows = tuple(
        (
            student.roll_number or 'N/A',
            student.admission_number,
            student.name,
            student.father_name,
            student.mobile,
            student.address,
        )
        for student in sorted(in_class, key=roll_sort_key)
    )
    return ReportTable(
        title='Class Register',
        subtitle=f"Class: {selected_class} | Session: {academic_year}",
        columns=(
            Column('roll_number', 'Roll No.'),
            Column('admission_number', 'GR No.'),
            Column('name', 'Student Name'),
            Column('father_name', "Father's Name"),
            Column('mobile', 'Mobile No.'),
            Column('address', 'Address'),
        ),
        rows=rows,
    )
