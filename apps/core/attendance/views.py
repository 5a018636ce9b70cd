from urllib.parse import urlencode

from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.core.exceptions import ValidationError
from django.shortcuts import redirect, render
from django.urls import reverse

from apps.core.hr.models import Teacher
from apps.core.reports.aggregation import class_options, roll_sort_key, split_class_label
from apps.core.students.models import Student
from apps.core.users.decorators import role_required
from apps.core.utils.exceptions import UpstreamUnavailable

from .forms import StudentAttendanceSelectionForm, TeacherAttendanceDateForm
from .models import AttendanceRecord, StudentAttendance, TeacherAttendance
from .services import mark_student_attendance, mark_teacher_attendance


def _status_from_post(request, prefix, pk):
    return request.POST.get(f'{prefix}_{pk}', AttendanceRecord.STATUS_PRESENT)


def _students_in(class_label):
    class_name, section = split_class_label(class_label)
    students = [
        student
        for student in Student.objects.filter(class_name=class_name, section=section)
        if student.is_active
    ]
    return sorted(students, key=roll_sort_key)


@login_required
@role_required(['schooladmin', 'teacher'])
def attendance_student_mark(request):
    data = request.POST if request.method == 'POST' else (request.GET or None)
    form = StudentAttendanceSelectionForm(
        data,
        class_choices=class_options(Student.objects.all()),
    )
    rows = []

    if form.is_valid():
        class_label = form.cleaned_data['class_label']
        target_date = form.cleaned_data['target_date']
        students = _students_in(class_label)

        if request.method == 'POST':
            status_by_student_id = {
                student.id: _status_from_post(request, 'status', student.id)
                for student in students
            }
            try:
                mark_student_attendance(
                    target_date=target_date,
                    status_by_student_id=status_by_student_id,
                    marked_by=request.user,
                )
            except ValidationError as exc:
                form.add_error(None, '; '.join(exc.messages))
            except UpstreamUnavailable as exc:
                messages.error(request, str(exc))
            else:
                messages.success(request, f'Attendance for {class_label} saved.')
                query = urlencode({'class_label': class_label, 'target_date': target_date.isoformat()})
                return redirect(f"{reverse('attendance_student_mark')}?{query}")

        existing = {
            record.student_id: record.status
            for record in StudentAttendance.objects.filter(
                date=target_date,
                student_id__in=[student.id for student in students],
            )
        }
        rows = [
            {'person': student, 'status': existing.get(student.id, AttendanceRecord.STATUS_PRESENT)}
            for student in students
        ]

    return render(request, 'attendance/student_mark.html', {
        'form': form,
        'rows': rows,
        'status_choices': AttendanceRecord.STATUS_CHOICES,
    })


@login_required
@role_required(['schooladmin'])
def attendance_teacher_mark(request):
    data = request.POST if request.method == 'POST' else (request.GET or None)
    form = TeacherAttendanceDateForm(data)
    rows = []

    if form.is_valid():
        target_date = form.cleaned_data['target_date']
        teachers = list(Teacher.objects.filter(status=Teacher.STATUS_ACTIVE))

        if request.method == 'POST':
            try:
                mark_teacher_attendance(
                    target_date=target_date,
                    status_by_teacher_id={
                        teacher.id: _status_from_post(request, 'status', teacher.id)
                        for teacher in teachers
                    },
                    marked_by=request.user,
                )
            except ValidationError as exc:
                form.add_error(None, '; '.join(exc.messages))
            except UpstreamUnavailable as exc:
                messages.error(request, str(exc))
            else:
                messages.success(request, 'Teacher attendance saved.')
                return redirect(f"{reverse('attendance_teacher_mark')}?target_date={target_date.isoformat()}")

        existing = {
            record.teacher_id: record.status
            for record in TeacherAttendance.objects.filter(date=target_date)
        }
        rows = [
            {'person': teacher, 'status': existing.get(teacher.id, AttendanceRecord.STATUS_PRESENT)}
            for teacher in teachers
        ]

    return render(request, 'attendance/teacher_mark.html', {
        'form': form,
        'rows': rows,
        'status_choices': AttendanceRecord.STATUS_CHOICES,
    })
