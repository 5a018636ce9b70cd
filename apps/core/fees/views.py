from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.core.exceptions import ValidationError
from django.db.models import Q
from django.http import HttpResponse
from django.shortcuts import get_object_or_404, redirect, render
from django.views.decorators.http import require_POST

from apps.core.reports.aggregation import due_students, fee_status, fee_totals
from apps.core.students.models import Student
from apps.core.users.decorators import role_required
from apps.core.utils.exceptions import UpstreamUnavailable

from .forms import FeeCollectionForm, FeeSearchForm
from .models import FeePayment
from .services import build_fee_receipt_pdf, collect_fee, receipt_for_payment, whatsapp_reminder_link


@login_required
@role_required(['schooladmin', 'accountant'])
def fee_overview(request):
    students = list(Student.objects.all())
    form = FeeSearchForm(request.GET or None, class_choices=sorted({s.class_name for s in students if s.class_name}))

    queryset = Student.objects.all()
    class_filter = 'all'
    if form.is_valid():
        query = form.cleaned_data.get('q')
        if query:
            queryset = queryset.filter(
                Q(name__icontains=query) | Q(admission_number__icontains=query)
            )
        class_filter = form.cleaned_data.get('class_name') or 'all'

    if request.GET.get('include_paid'):
        listed = [s for s in queryset if class_filter == 'all' or s.class_name == class_filter]
    else:
        listed = due_students(queryset, class_filter)

    return render(request, 'fees/fee_overview.html', {
        'form': form,
        'rows': [(student, fee_status(student)) for student in listed],
        'totals': fee_totals(students),
        'recent_payments': FeePayment.objects.select_related('student')[:20],
    })


@login_required
@role_required(['schooladmin', 'accountant'])
def fee_collect(request, pk):
    student = get_object_or_404(Student, pk=pk)
    form = FeeCollectionForm(
        request.POST or None,
        initial={'expected_fees_paid': student.fees_paid, 'amount': student.pending_fees},
    )

    if request.method == 'POST' and form.is_valid():
        # Collect against the fees_paid the clerk was looking at.
        student.fees_paid = form.cleaned_data['expected_fees_paid']
        try:
            result = collect_fee(
                student=student,
                amount=form.cleaned_data['amount'],
                payment_date=form.cleaned_data['payment_date'],
                receipt_number=form.cleaned_data['receipt_number'],
                received_by=request.user,
            )
        except ValidationError as exc:
            form.add_error(None, '; '.join(exc.messages))
        except UpstreamUnavailable as exc:
            messages.error(request, str(exc))
        else:
            messages.success(
                request,
                f"Payment recorded. Receipt {result.payment.receipt_number}, balance {result.new_balance}.",
            )
            return redirect('fee_collect', pk=student.pk)

    student.refresh_from_db()
    return render(request, 'fees/fee_collect.html', {
        'student': student,
        'form': form,
        'status': fee_status(student),
        'payments': student.fee_payments.all(),
    })


@login_required
@role_required(['schooladmin', 'accountant'])
def fee_receipt_pdf(request, payment_id):
    payment = get_object_or_404(FeePayment.objects.select_related('student'), pk=payment_id)
    pdf_bytes = build_fee_receipt_pdf(receipt_for_payment(payment))
    response = HttpResponse(pdf_bytes, content_type='application/pdf')
    response['Content-Disposition'] = f'attachment; filename="{payment.receipt_number}.pdf"'
    return response


@login_required
@role_required(['schooladmin', 'accountant'])
@require_POST
def fee_reminder(request, pk):
    student = get_object_or_404(Student, pk=pk)
    try:
        link = whatsapp_reminder_link(student)
    except ValidationError as exc:
        messages.error(request, '; '.join(exc.messages))
        return redirect('fee_overview')
    return redirect(link)
