from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.core.exceptions import ValidationError
from django.http import HttpResponse
from django.shortcuts import redirect, render
from django.utils.text import slugify

from apps.core.academics.models import SchoolClass
from apps.core.schools.services import get_school_profile
from apps.core.students.models import Student
from apps.core.users.audit import log_audit_event
from apps.core.users.decorators import role_required
from apps.core.utils.exceptions import UpstreamUnavailable

from .aggregation import class_section_labels
from .forms import BalanceSheetForm, ClassFilterForm, ClassMonthForm, ClassRegisterForm, MonthYearForm
from .renderers import format_amount, render_csv, render_html, render_pdf
from .services import (
    balance_sheet_report,
    class_register_report,
    dashboard_summary,
    dead_stock_report,
    due_fees_report,
    expense_report,
    fee_status_report,
    muster_report,
    student_attendance_report,
)

REPORT_ROLES = ['schooladmin', 'accountant']
EXPORT_FORMATS = {'html', 'csv', 'pdf'}


def _class_names():
    return sorted({name for name in Student.objects.values_list('class_name', flat=True) if name})


def _class_labels():
    return class_section_labels(SchoolClass.objects.all())


def _response_for_export(request, table, *, filename_base):
    export_type = request.GET.get('format') or 'html'
    if export_type not in EXPORT_FORMATS:
        export_type = 'html'
    profile = get_school_profile()

    log_audit_event(
        request=request,
        action='reports.generated',
        details=f"Report={table.title}, Format={export_type}, Rows={len(table.rows)}",
    )

    if export_type == 'csv':
        response = HttpResponse(render_csv(table), content_type='text/csv')
        response['Content-Disposition'] = f'attachment; filename="{filename_base}.csv"'
        return response

    if export_type == 'pdf':
        response = HttpResponse(render_pdf(table, profile), content_type='application/pdf')
        response['Content-Disposition'] = f'attachment; filename="{filename_base}.pdf"'
        return response

    return HttpResponse(render_html(table, profile))


def _generate(request, form, build, filename_base):
    if not form.is_valid():
        messages.error(request, '; '.join(
            f"{field}: {', '.join(errors)}" if field != '__all__' else ', '.join(errors)
            for field, errors in form.errors.items()
        ))
        return redirect('report_index')
    try:
        table = build(form.cleaned_data)
    except ValidationError as exc:
        messages.error(request, '; '.join(exc.messages))
        return redirect('report_index')
    except UpstreamUnavailable as exc:
        messages.error(request, str(exc))
        return redirect('report_index')
    return _response_for_export(request, table, filename_base=filename_base)


@login_required
def dashboard(request):
    try:
        summary = dashboard_summary()
    except UpstreamUnavailable as exc:
        messages.error(request, str(exc))
        summary = None

    fee_rows = []
    if summary is not None:
        fee_rows = [
            {
                'name': f"Class {class_name}",
                'collected': format_amount(values.collected, currency=True),
                'pending': format_amount(values.pending, currency=True),
            }
            for class_name, values in summary.fees_by_class.items()
        ]

    return render(request, 'reports/dashboard.html', {
        'summary': summary,
        'fee_rows': fee_rows,
        'fees_collected': format_amount(summary.fees.collected, currency=True) if summary else '',
        'fees_pending': format_amount(summary.fees.pending, currency=True) if summary else '',
    })


@login_required
@role_required(REPORT_ROLES + ['teacher'])
def report_index(request):
    class_names = _class_names()
    class_labels = _class_labels()
    return render(request, 'reports/index.html', {
        'due_form': ClassFilterForm(class_names=class_names),
        'status_form': ClassFilterForm(class_names=class_names),
        'attendance_form': ClassMonthForm(class_labels=class_labels),
        'muster_form': MonthYearForm(),
        'expense_form': MonthYearForm(),
        'balance_form': BalanceSheetForm(),
        'register_form': ClassRegisterForm(class_labels=class_labels),
    })


@login_required
@role_required(REPORT_ROLES)
def due_fees_report_view(request):
    form = ClassFilterForm(request.GET, class_names=_class_names())
    return _generate(
        request,
        form,
        lambda data: due_fees_report(class_filter=data['class_name'] or 'all', orientation=data['orientation']),
        'due-fees-report',
    )


@login_required
@role_required(REPORT_ROLES)
def fee_status_report_view(request):
    form = ClassFilterForm(request.GET, class_names=_class_names())
    return _generate(
        request,
        form,
        lambda data: fee_status_report(class_filter=data['class_name'] or 'all', orientation=data['orientation']),
        'all-fees-status-report',
    )


@login_required
@role_required(REPORT_ROLES + ['teacher'])
def student_attendance_report_view(request):
    form = ClassMonthForm(request.GET, class_labels=_class_labels())
    return _generate(
        request,
        form,
        lambda data: student_attendance_report(
            selected_class=data['selected_class'],
            year=data['year'],
            month=data['month'],
        ),
        f"attendance-{slugify(request.GET.get('selected_class', ''))}",
    )


@login_required
@role_required(REPORT_ROLES)
def muster_report_view(request):
    form = MonthYearForm(request.GET)
    return _generate(
        request,
        form,
        lambda data: muster_report(year=data['year'], month=data['month']),
        'teacher-muster-report',
    )


@login_required
@role_required(REPORT_ROLES)
def expense_report_view(request):
    form = MonthYearForm(request.GET)
    return _generate(
        request,
        form,
        lambda data: expense_report(year=data['year'], month=data['month']),
        'expense-report',
    )


@login_required
@role_required(REPORT_ROLES)
def dead_stock_report_view(request):
    try:
        table = dead_stock_report()
    except UpstreamUnavailable as exc:
        messages.error(request, str(exc))
        return redirect('report_index')
    return _response_for_export(request, table, filename_base='dead-stock-report')


@login_required
@role_required(REPORT_ROLES)
def balance_sheet_report_view(request):
    form = BalanceSheetForm(request.GET)
    return _generate(
        request,
        form,
        lambda data: balance_sheet_report(mode=data['mode'], year=data['year'], month=data['month']),
        'balance-sheet',
    )


@login_required
@role_required(REPORT_ROLES + ['teacher'])
def class_register_report_view(request):
    form = ClassRegisterForm(request.GET, class_labels=_class_labels())
    return _generate(
        request,
        form,
        lambda data: class_register_report(selected_class=data['selected_class']),
        f"class-register-{slugify(request.GET.get('selected_class', ''))}",
    )
