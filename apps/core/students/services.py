from __future__ import annotations

from django.core.exceptions import ValidationError
from django.db import DatabaseError, transaction
from django.utils import timezone

from apps.core.users.audit import log_audit_event
from apps.core.utils.exceptions import PartialBatchFailure
from apps.core.utils.parsing import parse_report_date

from .models import Student


def next_admission_number() -> str:
    highest = 0
    for value in Student.objects.values_list('admission_number', flat=True):
        try:
            highest = max(highest, int(value))
        except (TypeError, ValueError):
            continue
    return str(highest + 1).zfill(5)


def _apply_promotion(student: Student, to_class: str) -> None:
    # The caller's copy only changes once the row is written.
    with transaction.atomic():
        Student.objects.filter(pk=student.pk).update(
            class_name=to_class,
            section='',
            updated_at=timezone.now(),
        )
    student.class_name = to_class
    student.section = ''


def promote_students(*, from_class: str, to_class: str, actor=None):
    """
    Move every student of `from_class` into `to_class` and clear the section.

    Each student is written on its own; a failure part way leaves earlier
    students promoted and is reported through PartialBatchFailure.
    """
    from_class = (from_class or '').strip()
    to_class = (to_class or '').strip()
    if not from_class or not to_class:
        raise ValidationError('Both source and destination classes are required.')
    if from_class == to_class:
        raise ValidationError('Source and destination classes must be different.')

    students = list(Student.objects.filter(class_name=from_class).order_by('admission_number', 'id'))
    if not students:
        raise ValidationError(f"No students found in class {from_class}.")

    promoted = []
    failed = {}
    for student in students:
        try:
            _apply_promotion(student, to_class)
        except (DatabaseError, ValidationError) as exc:
            failed[student.id] = str(exc)
            continue
        promoted.append(student)

    log_audit_event(
        action='students.promoted',
        user=actor,
        details=f"From={from_class}, To={to_class}, Promoted={len(promoted)}, Failed={len(failed)}",
    )

    if failed:
        raise PartialBatchFailure(
            'Promotion',
            succeeded=[student.id for student in promoted],
            failed=failed,
        )
    return promoted


def alphabetical_roll_numbers(students) -> dict:
    ordered = sorted(students, key=lambda student: (student.name.lower(), student.id))
    return {student.id: str(index) for index, student in enumerate(ordered, start=1)}


def _save_roll_number(student: Student, roll_number: str) -> None:
    with transaction.atomic():
        Student.objects.filter(pk=student.pk).update(roll_number=roll_number, updated_at=timezone.now())
    student.roll_number = roll_number


def assign_roll_numbers(*, roll_by_student_id, actor=None):
    """Save a class roster. Only rows whose roll number changed are written."""
    cleaned = {}
    seen = set()
    for student_id, roll_number in roll_by_student_id.items():
        try:
            parsed_id = int(student_id)
        except (TypeError, ValueError):
            raise ValidationError(f"Invalid student id: {student_id!r}.")
        value = (roll_number or '').strip()
        if value:
            if value in seen:
                raise ValidationError('Please ensure all new roll numbers are unique before saving.')
            seen.add(value)
        cleaned[parsed_id] = value

    students = Student.objects.in_bulk(list(cleaned))
    missing = [student_id for student_id in cleaned if student_id not in students]
    if missing:
        raise ValidationError(f"Unknown students: {', '.join(str(item) for item in missing)}.")

    updated = []
    failed = {}
    for student_id, roll_number in cleaned.items():
        student = students[student_id]
        if (student.roll_number or '') == roll_number:
            continue
        try:
            _save_roll_number(student, roll_number)
        except DatabaseError as exc:
            failed[student_id] = str(exc)
            continue
        updated.append(student)

    if updated:
        log_audit_event(
            action='students.roll_numbers_assigned',
            user=actor,
            details=f"Updated={len(updated)}",
        )
    if failed:
        raise PartialBatchFailure(
            'Roll number assignment',
            succeeded=[student.id for student in updated],
            failed=failed,
        )
    return updated


@transaction.atomic
def issue_leaving_certificate(student: Student, actor=None, *, leaving_date=None, reason=''):
    """
    Mark the student as having left. Returns (student, duplicate) where
    duplicate is True when the certificate had already been issued; the
    leaving date and reason recorded the first time are kept.
    """
    student = Student.objects.select_for_update().get(pk=student.pk)
    pending = student.pending_fees
    if pending > 0:
        raise ValidationError(
            f"{student.name} has pending fees of {pending}. Please clear the dues before issuing an LC."
        )

    if student.status == Student.STATUS_LC_ISSUED:
        return student, True

    student.status = Student.STATUS_LC_ISSUED
    student.leaving_date = parse_report_date(leaving_date, 'leaving_date') if leaving_date else timezone.localdate()
    student.leaving_reason = (reason or '').strip()
    student.save(update_fields=['status', 'leaving_date', 'leaving_reason', 'updated_at'])
    log_audit_event(
        action='students.lc_issued',
        user=actor,
        target=student,
        details=f"GR={student.admission_number}",
    )
    return student, False
