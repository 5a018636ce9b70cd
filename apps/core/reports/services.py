from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date

from django.utils import timezone

from apps.core.attendance.models import StudentAttendance, TeacherAttendance
from apps.core.hr.models import Teacher

from .aggregation import (
    ALL_CLASSES,
    AttendanceSummary,
    FeeSummary,
    attendance_summary,
    fee_totals,
    fees_summary_by_class,
    is_active_student,
    roll_sort_key,
    split_class_label,
)
from .balance_sheet import compute_balance_sheet, period_bounds, period_label
from .snapshot import load_attendance, load_snapshot
from .tables import (
    PORTRAIT,
    build_balance_sheet_table,
    build_class_register_table,
    build_dead_stock_table,
    build_due_fees_table,
    build_expense_table,
    build_fee_status_table,
    build_student_attendance_grid,
    build_teacher_muster,
)


@dataclass(frozen=True)
class DashboardSummary:
    on_date: date
    total_students: int
    total_teachers: int
    attendance: AttendanceSummary
    fees: FeeSummary
    fees_by_class: dict


def _month_bounds(year, month):
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def due_fees_report(*, class_filter=ALL_CLASSES, orientation=PORTRAIT, snapshot=None):
    snapshot = snapshot or load_snapshot(include=('students',))
    return build_due_fees_table(snapshot.students, class_filter, orientation=orientation)


def fee_status_report(*, class_filter=ALL_CLASSES, orientation=PORTRAIT, snapshot=None):
    snapshot = snapshot or load_snapshot(include=('students',))
    return build_fee_status_table(snapshot.students, class_filter, orientation=orientation)


def student_attendance_report(*, selected_class, year, month, snapshot=None):
    snapshot = snapshot or load_snapshot(include=('students',))
    class_name, section = split_class_label(selected_class)
    students = sorted(
        (
            student
            for student in snapshot.students
            if student.class_name == class_name and student.section == section and is_active_student(student)
        ),
        key=roll_sort_key,
    )
    start, end = _month_bounds(year, month)
    records = load_attendance(StudentAttendance, start, end, class_label=selected_class)
    return build_student_attendance_grid(students, records, year, month, selected_class)


def muster_report(*, year, month, snapshot=None):
    snapshot = snapshot or load_snapshot(include=('teachers',))
    teachers = [teacher for teacher in snapshot.teachers if teacher.status == Teacher.STATUS_ACTIVE]
    start, end = _month_bounds(year, month)
    records = load_attendance(TeacherAttendance, start, end)
    return build_teacher_muster(teachers, records, year, month)


def expense_report(*, year, month, snapshot=None):
    snapshot = snapshot or load_snapshot(include=('expenses',))
    start, end = _month_bounds(year, month)
    return build_expense_table(
        snapshot.expenses,
        start,
        end,
        subtitle=f"Month: {calendar.month_name[month]} {year}",
    )


def dead_stock_report(*, as_of=None, snapshot=None):
    snapshot = snapshot or load_snapshot(include=('dead_stock',))
    return build_dead_stock_table(snapshot.dead_stock, as_of=as_of or timezone.localdate())


def balance_sheet_report(*, mode, year, month=None, snapshot=None):
    start, end = period_bounds(mode, year, month)
    snapshot = snapshot or load_snapshot(include=('fee_payments', 'expenses', 'dead_stock'))
    sheet = compute_balance_sheet(
        start=start,
        end=end,
        fee_payments=snapshot.fee_payments,
        expenses=snapshot.expenses,
        dead_stock=snapshot.dead_stock,
        label=period_label(mode, year, month),
    )
    return build_balance_sheet_table(sheet)


def class_register_report(*, selected_class, snapshot=None):
    snapshot = snapshot or load_snapshot(include=('students', 'profile'))
    academic_year = snapshot.profile.academic_year if snapshot.profile else ''
    return build_class_register_table(snapshot.students, selected_class, academic_year)


def dashboard_summary(on_date=None) -> DashboardSummary:
    on_date = on_date or timezone.localdate()
    snapshot = load_snapshot(include=('students', 'teachers'))
    active_students = [student for student in snapshot.students if is_active_student(student)]
    records = load_attendance(StudentAttendance, on_date, on_date)

    return DashboardSummary(
        on_date=on_date,
        total_students=len(active_students),
        total_teachers=sum(1 for teacher in snapshot.teachers if teacher.status == Teacher.STATUS_ACTIVE),
        attendance=attendance_summary(records, [student.pk for student in active_students], on_date),
        fees=fee_totals(snapshot.students),
        fees_by_class=fees_summary_by_class(snapshot.students),
    )
