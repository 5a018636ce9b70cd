from urllib.parse import urlencode

from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.core.exceptions import ValidationError
from django.db.models import Q
from django.http import HttpResponse
from django.shortcuts import get_object_or_404, redirect, render
from django.utils.text import slugify
from django.views.decorators.http import require_POST

from apps.core.reports.aggregation import class_options, roll_sort_key, split_class_label
from apps.core.schools.services import get_school_profile
from apps.core.users.audit import log_audit_event
from apps.core.users.decorators import role_required
from apps.core.utils.exceptions import UpstreamUnavailable

from .documents import (
    bonafide_certificate_data,
    build_certificate_pdf,
    build_id_cards_pdf,
    build_marksheet,
    build_marksheet_pdf,
    leaving_certificate_data,
    letterhead_for,
    subject_marks,
)
from .forms import (
    DEFAULT_SUBJECTS,
    BonafideForm,
    LeavingCertificateForm,
    MarksheetForm,
    PromoteStudentsForm,
    StudentFilterForm,
    SubjectMarksFormSet,
)
from .models import Student
from .services import (
    alphabetical_roll_numbers,
    assign_roll_numbers,
    issue_leaving_certificate,
    promote_students,
)


def _active_filter():
    return Q(status=Student.STATUS_ACTIVE) | Q(status='')


@login_required
@role_required(['schooladmin', 'accountant', 'teacher'])
def student_list(request):
    form = StudentFilterForm(request.GET or None)
    students = Student.objects.all()

    status = Student.STATUS_ACTIVE
    query = ''
    if form.is_valid():
        status = form.cleaned_data.get('status') or Student.STATUS_ACTIVE
        query = (form.cleaned_data.get('q') or '').strip()

    if status == Student.STATUS_ACTIVE:
        students = students.filter(_active_filter())
    elif status != StudentFilterForm.STATUS_ALL:
        students = students.filter(status=status)

    if query:
        students = students.filter(
            Q(name__icontains=query)
            | Q(roll_number__icontains=query)
            | Q(admission_number__icontains=query)
        )

    return render(request, 'students/student_list.html', {
        'students': students,
        'filter_form': form,
    })


@login_required
@role_required('schooladmin')
def student_promote(request):
    if request.method == 'POST':
        form = PromoteStudentsForm(request.POST)
        if form.is_valid():
            try:
                promoted = promote_students(
                    from_class=form.cleaned_data['from_class'],
                    to_class=form.cleaned_data['to_class'],
                    actor=request.user,
                )
            except ValidationError as exc:
                messages.error(request, ' '.join(exc.messages))
            else:
                messages.success(
                    request,
                    f"{len(promoted)} student(s) promoted to Class {form.cleaned_data['to_class']}. "
                    'Assign sections again from the student records.',
                )
                return redirect('student_list')
    else:
        form = PromoteStudentsForm()

    return render(request, 'students/promote.html', {'form': form})


@login_required
@role_required(['schooladmin', 'teacher'])
def class_roster(request):
    all_students = list(Student.objects.filter(_active_filter()))
    options = class_options(all_students)
    selected = request.POST.get('class_label') or request.GET.get('class_label') or ''

    roster = []
    if selected in options:
        class_name, section = split_class_label(selected)
        roster = sorted(
            (s for s in all_students if s.class_name == class_name and s.section == section),
            key=roll_sort_key,
        )

    proposed = {}
    if request.method == 'POST' and roster:
        if request.POST.get('action') == 'alphabetical':
            proposed = alphabetical_roll_numbers(roster)
            messages.info(request, 'Roll numbers have been assigned alphabetically. Click Save to apply.')
        else:
            submitted = {
                student.id: request.POST.get(f'roll_{student.id}', student.roll_number)
                for student in roster
            }
            try:
                updated = assign_roll_numbers(roll_by_student_id=submitted, actor=request.user)
            except ValidationError as exc:
                messages.error(request, ' '.join(exc.messages))
                proposed = submitted
            else:
                if updated:
                    messages.success(request, f'{len(updated)} student(s) have been updated.')
                else:
                    messages.info(request, 'No roll numbers were changed.')
                return redirect(f"{request.path}?{urlencode({'class_label': selected})}")

    rows = [
        {'student': student, 'new_roll': proposed.get(student.id, student.roll_number)}
        for student in roster
    ]
    return render(request, 'students/class_roster.html', {
        'class_options': options,
        'selected': selected,
        'rows': rows,
    })


def _pdf_response(pdf_bytes, filename):
    response = HttpResponse(pdf_bytes, content_type='application/pdf')
    response['Content-Disposition'] = f'attachment; filename="{filename}"'
    return response


def _log_document(request, document, student=None, details=''):
    if not details and student is not None:
        details = f"GR={student.admission_number}"
    log_audit_event(
        request=request,
        action='students.document_generated',
        target=student,
        details=f"Document={document}, {details}",
    )


@login_required
@role_required('schooladmin')
@require_POST
def student_leaving_certificate(request, pk):
    student = get_object_or_404(Student, pk=pk)
    form = LeavingCertificateForm(request.POST)
    if not form.is_valid():
        messages.error(request, 'Enter a valid leaving date.')
        return redirect('student_list')

    try:
        profile = get_school_profile()
        student, duplicate = issue_leaving_certificate(
            student,
            actor=request.user,
            leaving_date=form.cleaned_data['leaving_date'],
            reason=form.cleaned_data['reason'],
        )
    except ValidationError as exc:
        messages.error(request, ' '.join(exc.messages))
        return redirect('student_list')
    except UpstreamUnavailable as exc:
        messages.error(request, str(exc))
        return redirect('student_list')

    pdf_bytes = build_certificate_pdf(leaving_certificate_data(student, profile, duplicate=duplicate))
    if duplicate:
        _log_document(request, 'Leaving Certificate (Duplicate)', student)
        return _pdf_response(pdf_bytes, f"LC-{student.admission_number}-duplicate.pdf")
    _log_document(request, 'Leaving Certificate', student)
    return _pdf_response(pdf_bytes, f"LC-{student.admission_number}.pdf")


@login_required
@role_required(['schooladmin', 'accountant'])
def student_bonafide_certificate(request, pk):
    student = get_object_or_404(Student, pk=pk)
    form = BonafideForm(request.GET)
    purpose = form.cleaned_data['purpose'] if form.is_valid() else ''
    try:
        data = bonafide_certificate_data(student, get_school_profile(), purpose=purpose)
    except ValidationError as exc:
        messages.error(request, ' '.join(exc.messages))
        return redirect('student_list')
    except UpstreamUnavailable as exc:
        messages.error(request, str(exc))
        return redirect('student_list')

    _log_document(request, 'Bonafide Certificate', student)
    return _pdf_response(build_certificate_pdf(data), f"Bonafide-{student.admission_number}.pdf")


def _subjects_from(formset):
    subjects = []
    for form in formset:
        cleaned = form.cleaned_data
        if not (cleaned.get('subject') or '').strip():
            continue
        subjects.append(subject_marks(
            cleaned['subject'],
            theory_max=cleaned.get('theory_max'),
            theory_obtained=cleaned.get('theory_obtained'),
            practical_max=cleaned.get('practical_max'),
            practical_obtained=cleaned.get('practical_obtained'),
        ))
    return subjects


@login_required
@role_required(['schooladmin', 'teacher'])
def student_marksheet(request, pk):
    student = get_object_or_404(Student, pk=pk)
    if request.method == 'POST':
        form = MarksheetForm(request.POST)
        formset = SubjectMarksFormSet(request.POST, prefix='subjects')
        if form.is_valid() and formset.is_valid():
            try:
                data = build_marksheet(
                    student,
                    get_school_profile(),
                    exam_name=form.cleaned_data['exam_name'],
                    subjects=_subjects_from(formset),
                )
            except ValidationError as exc:
                messages.error(request, ' '.join(exc.messages))
            except UpstreamUnavailable as exc:
                messages.error(request, str(exc))
            else:
                _log_document(
                    request,
                    'Marksheet',
                    student,
                    f"GR={student.admission_number}, Exam={data.exam_name}, Result={data.result}",
                )
                filename = f"Marksheet-{student.admission_number}-{slugify(data.exam_name)}.pdf"
                return _pdf_response(build_marksheet_pdf(data), filename)
    else:
        form = MarksheetForm()
        formset = SubjectMarksFormSet(prefix='subjects', initial=list(DEFAULT_SUBJECTS))

    return render(request, 'students/marksheet.html', {
        'student': student,
        'form': form,
        'formset': formset,
    })


@login_required
@role_required(['schooladmin', 'teacher'])
def student_id_card(request, pk):
    student = get_object_or_404(Student, pk=pk)
    try:
        letterhead = letterhead_for(get_school_profile())
    except UpstreamUnavailable as exc:
        messages.error(request, str(exc))
        return redirect('student_list')

    _log_document(request, 'ID Card', student)
    return _pdf_response(build_id_cards_pdf([student], letterhead), f"ID-{student.admission_number}.pdf")


@login_required
@role_required(['schooladmin', 'teacher'])
def class_id_cards(request):
    selected = request.GET.get('class_label') or ''
    class_name, section = split_class_label(selected)
    if not class_name:
        messages.error(request, 'Select a class first.')
        return redirect('class_roster')
    students = sorted(
        Student.objects.filter(_active_filter(), class_name=class_name, section=section),
        key=roll_sort_key,
    )
    if not students:
        messages.error(request, 'There are no students in the selected class to generate ID cards for.')
        return redirect('class_roster')
    try:
        letterhead = letterhead_for(get_school_profile())
    except UpstreamUnavailable as exc:
        messages.error(request, str(exc))
        return redirect('class_roster')

    _log_document(request, 'Class ID Cards', details=f"Class={selected}, Cards={len(students)}")
    return _pdf_response(build_id_cards_pdf(students, letterhead), f"ID-Cards-{slugify(selected)}.pdf")
