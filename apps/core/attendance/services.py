from __future__ import annotations

from django.core.exceptions import ValidationError
from django.db import DatabaseError, transaction

from apps.core.hr.models import Teacher
from apps.core.students.models import Student
from apps.core.users.audit import log_audit_event
from apps.core.utils.exceptions import PartialBatchFailure
from apps.core.utils.parsing import parse_report_date

from .models import AttendanceRecord, StudentAttendance, TeacherAttendance

ALLOWED_STATUSES = {AttendanceRecord.STATUS_PRESENT, AttendanceRecord.STATUS_ABSENT}


def student_class_label(student: Student) -> str:
    return student.class_label


def _parse_ids(status_by_id):
    parsed = {}
    failed = {}
    for raw_id, status in status_by_id.items():
        try:
            parsed[int(raw_id)] = status
        except (TypeError, ValueError):
            failed[raw_id] = 'Invalid id.'
    return parsed, failed


def _upsert_batch(*, model, person_field, people, status_by_id, target_date, marked_by, extra_defaults=None):
    saved = []
    failed = {}
    for person_id, status in status_by_id.items():
        person = people.get(person_id)
        if person is None:
            failed[person_id] = 'Unknown record.'
            continue
        if status not in ALLOWED_STATUSES:
            failed[person_id] = f"Invalid status {status!r}."
            continue

        defaults = {'status': status, 'marked_by': marked_by}
        if extra_defaults:
            defaults.update(extra_defaults(person))
        try:
            with transaction.atomic():
                record, _ = model.objects.update_or_create(
                    date=target_date,
                    defaults=defaults,
                    **{person_field: person},
                )
        except DatabaseError as exc:
            failed[person_id] = str(exc)
            continue
        saved.append(record)
    return saved, failed


def mark_student_attendance(*, target_date, status_by_student_id, marked_by=None):
    """
    Save one day of student attendance. Re-submitting the same day overwrites
    the earlier status instead of adding a second record.
    """
    target_date = parse_report_date(target_date, 'target_date')
    if not status_by_student_id:
        raise ValidationError('No students selected for attendance.')

    status_by_id, failed = _parse_ids(status_by_student_id)
    students = Student.objects.in_bulk(list(status_by_id))
    saved, write_failures = _upsert_batch(
        model=StudentAttendance,
        person_field='student',
        people=students,
        status_by_id=status_by_id,
        target_date=target_date,
        marked_by=marked_by,
        extra_defaults=lambda student: {'class_label': student_class_label(student)},
    )
    failed.update(write_failures)

    log_audit_event(
        action='attendance.students_marked',
        user=marked_by,
        details=f"Date={target_date}, Saved={len(saved)}, Failed={len(failed)}",
    )
    if failed:
        raise PartialBatchFailure(
            'Student attendance',
            succeeded=[record.student_id for record in saved],
            failed=failed,
        )
    return saved


def mark_teacher_attendance(*, target_date, status_by_teacher_id, marked_by=None):
    target_date = parse_report_date(target_date, 'target_date')
    if not status_by_teacher_id:
        raise ValidationError('No teachers selected for attendance.')

    status_by_id, failed = _parse_ids(status_by_teacher_id)
    teachers = Teacher.objects.in_bulk(list(status_by_id))
    saved, write_failures = _upsert_batch(
        model=TeacherAttendance,
        person_field='teacher',
        people=teachers,
        status_by_id=status_by_id,
        target_date=target_date,
        marked_by=marked_by,
    )
    failed.update(write_failures)

    log_audit_event(
        action='attendance.teachers_marked',
        user=marked_by,
        details=f"Date={target_date}, Saved={len(saved)}, Failed={len(failed)}",
    )
    if failed:
        raise PartialBatchFailure(
            'Teacher attendance',
            succeeded=[record.teacher_id for record in saved],
            failed=failed,
        )
    return saved
