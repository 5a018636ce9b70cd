from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from urllib.parse import quote

from PIL import Image, ImageDraw
from django.core.exceptions import ValidationError
from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import DecimalField, Sum, Value
from django.db.models.functions import Coalesce
from django.utils import timezone

from apps.core.reports.renderers import format_amount, image_to_pdf_bytes
from apps.core.schools.services import get_school_profile
from apps.core.students.models import Student
from apps.core.users.audit import log_audit_event
from apps.core.utils.exceptions import ConflictError, OverpaymentError, UpstreamUnavailable
from apps.core.utils.parsing import parse_report_date, quantize, to_decimal

from .models import FeePayment


@dataclass(frozen=True)
class FeeReceiptData:
    receipt_number: str
    payment_date: date
    school_name: str
    school_address: str
    student_name: str
    admission_number: str
    class_label: str
    amount: Decimal
    total_fees: Decimal
    fees_paid: Decimal
    balance: Decimal


@dataclass(frozen=True)
class FeeCollectionResult:
    payment: FeePayment
    new_balance: Decimal
    receipt: FeeReceiptData


@dataclass(frozen=True)
class FeeDrift:
    student: Student
    recorded: Decimal
    ledger: Decimal


def _next_receipt_number(payment_date: date) -> str:
    prefix = f"RCP-{payment_date.strftime('%Y%m%d')}-"
    numbers = FeePayment.objects.filter(receipt_number__startswith=prefix).values_list('receipt_number', flat=True)
    highest = 0
    for number in numbers:
        suffix = number[len(prefix):]
        if suffix.isdigit():
            highest = max(highest, int(suffix))
    return f"{prefix}{highest + 1:04d}"


def _receipt_for(payment: FeePayment, student: Student) -> FeeReceiptData:
    profile = get_school_profile()
    return FeeReceiptData(
        receipt_number=payment.receipt_number,
        payment_date=payment.date,
        school_name=profile.name,
        school_address=profile.address,
        student_name=student.name,
        admission_number=student.admission_number,
        class_label=student.class_label,
        amount=payment.amount,
        total_fees=student.total_fees,
        fees_paid=student.fees_paid,
        balance=student.pending_fees,
    )


def collect_fee(*, student: Student, amount, payment_date=None, receipt_number=None, received_by=None):
    """
    Record one payment against a student.

    The payment row and the student's `fees_paid` are written in one
    transaction. `student` is the caller's copy; if the stored `fees_paid`
    no longer matches it, the payment is refused with ConflictError so the
    caller can re-read and retry.
    """
    amount = to_decimal(amount)
    if quantize(amount) != amount:
        raise ValidationError({'amount': 'Payment amount cannot have more than 2 decimal places.'})
    amount = quantize(amount)
    if amount <= 0:
        raise ValidationError({'amount': 'Payment amount must be greater than zero.'})

    payment_date = parse_report_date(payment_date, 'payment_date') if payment_date else timezone.localdate()
    receipt_number = (receipt_number or '').strip()

    outstanding = student.total_fees - student.fees_paid
    if amount > outstanding:
        raise OverpaymentError(student_id=student.pk, amount=amount, outstanding=outstanding)

    expected_paid = student.fees_paid
    try:
        with transaction.atomic():
            locked = Student.objects.select_for_update().get(pk=student.pk)
            if locked.fees_paid != expected_paid or locked.total_fees != student.total_fees:
                raise ConflictError(
                    'Student fees were modified by another user. Reload and try again.',
                    entity='Student',
                    entity_id=student.pk,
                    field='fees_paid',
                )

            if receipt_number:
                if FeePayment.objects.filter(receipt_number=receipt_number).exists():
                    raise ConflictError(
                        f"Receipt number {receipt_number} is already in use.",
                        entity='FeePayment',
                        field='receipt_number',
                    )
            else:
                receipt_number = _next_receipt_number(payment_date)

            try:
                payment = FeePayment.objects.create(
                    student=locked,
                    amount=amount,
                    date=payment_date,
                    receipt_number=receipt_number,
                    received_by=received_by,
                )
            except IntegrityError as exc:
                raise ConflictError(
                    f"Receipt number {receipt_number} is already in use.",
                    entity='FeePayment',
                    field='receipt_number',
                ) from exc

            locked.fees_paid = quantize(locked.fees_paid + amount)
            locked.save(update_fields=['fees_paid', 'updated_at'])
    except DatabaseError as exc:
        raise UpstreamUnavailable('fee ledger', exc) from exc

    student.fees_paid = locked.fees_paid
    new_balance = locked.total_fees - locked.fees_paid

    log_audit_event(
        action='fees.payment_collected',
        user=received_by,
        target=payment,
        details=f"GR={locked.admission_number}, Amount={amount}, Receipt={receipt_number}",
    )

    return FeeCollectionResult(
        payment=payment,
        new_balance=new_balance,
        receipt=_receipt_for(payment, locked),
    )


def receipt_for_payment(payment: FeePayment) -> FeeReceiptData:
    return _receipt_for(payment, payment.student)


def ledger_fees_paid(student: Student) -> Decimal:
    try:
        total = student.fee_payments.aggregate(total=Sum('amount')).get('total')
    except DatabaseError as exc:
        raise UpstreamUnavailable('fee ledger', exc) from exc
    return to_decimal(total)


def find_fee_drift(student=None):
    """Students whose stored fees_paid no longer equals their payment ledger."""
    try:
        queryset = Student.objects.all()
        if student is not None:
            queryset = queryset.filter(pk=student.pk)
        students = list(
            queryset.annotate(
                ledger_total=Coalesce(
                    Sum('fee_payments__amount'),
                    Value(Decimal('0.00')),
                    output_field=DecimalField(max_digits=14, decimal_places=2),
                )
            ).order_by('admission_number', 'id')
        )
    except DatabaseError as exc:
        raise UpstreamUnavailable('fee ledger', exc) from exc

    drift = []
    for student in students:
        ledger = quantize(student.ledger_total)
        if quantize(student.fees_paid) != ledger:
            drift.append(FeeDrift(student=student, recorded=student.fees_paid, ledger=ledger))
    return drift


def reconcile_fees_paid(student=None, *, actor=None, dry_run=False):
    drift = find_fee_drift(student)
    if dry_run:
        return drift

    for item in drift:
        try:
            with transaction.atomic():
                Student.objects.filter(pk=item.student.pk).update(fees_paid=item.ledger)
        except DatabaseError as exc:
            raise UpstreamUnavailable('student fees', exc) from exc
        item.student.fees_paid = item.ledger
        log_audit_event(
            action='fees.ledger_reconciled',
            user=actor,
            target=item.student,
            details=f"Recorded={item.recorded}, Ledger={item.ledger}",
        )
    return drift


def whatsapp_reminder_link(student: Student, profile=None) -> str:
    pending = student.pending_fees
    if pending <= 0:
        raise ValidationError(f"{student.name} has no pending fees.")

    mobile = ''.join(ch for ch in (student.mobile or '') if ch.isdigit())
    if len(mobile) > 10:
        mobile = mobile[-10:]
    if len(mobile) != 10:
        raise ValidationError(f"Cannot send reminder to {student.name}. The number is invalid.")

    profile = profile or get_school_profile()
    message = (
        f"Dear Parent of {student.name},\n"
        f"This is a friendly reminder from {profile.name} that your pending fee amount is "
        f"{format_amount(pending, currency=True)}.\n"
        'Please clear the dues at your earliest convenience.\n'
        'Thank you.'
    )
    return f"https://wa.me/91{mobile}?text={quote(message)}"


def build_fee_receipt_image(receipt: FeeReceiptData):
    width = 1240
    height = 1000
    page = Image.new('RGB', (width, height), color='white')
    draw = ImageDraw.Draw(page)

    draw.rectangle((30, 30, width - 30, height - 30), outline='black', width=3)
    draw.text((60, 60), f"{receipt.school_name or 'School'} - Fee Receipt", fill='black')
    if receipt.school_address:
        draw.text((60, 95), receipt.school_address.replace('\n', ', '), fill='black')
    draw.text((60, 150), f"Receipt No: {receipt.receipt_number}", fill='black')
    draw.text((60, 190), f"Date: {receipt.payment_date.strftime('%d-%m-%Y')}", fill='black')
    draw.text((60, 230), f"Student: {receipt.student_name} (GR {receipt.admission_number})", fill='black')
    draw.text((60, 270), f"Class: {receipt.class_label}", fill='black')

    y = 350
    draw.line((60, y, width - 60, y), fill='black')
    y += 30
    for label, value in (
        ('Amount Received', receipt.amount),
        ('Total Fees', receipt.total_fees),
        ('Total Paid', receipt.fees_paid),
        ('Balance', receipt.balance),
    ):
        draw.text((60, y), label, fill='black')
        draw.text((860, y), f"Rs. {format_amount(value)}", fill='black')
        y += 40

    draw.line((60, y + 10, width - 60, y + 10), fill='black')
    draw.text((900, height - 120), 'Authorized Signatory', fill='black')
    return page


def build_fee_receipt_pdf(receipt: FeeReceiptData) -> bytes:
    return image_to_pdf_bytes([build_fee_receipt_image(receipt)])
