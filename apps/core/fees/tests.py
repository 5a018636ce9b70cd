from datetime import date
from decimal import Decimal
from io import StringIO
from unittest import mock

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.core.management import call_command
from django.core.management.base import CommandError
from django.db import DatabaseError
from django.test import TestCase
from django.urls import reverse

from apps.core.students.models import Student
from apps.core.users.models import AuditLog
from apps.core.utils.exceptions import ConflictError, OverpaymentError, UpstreamUnavailable

from .models import FeePayment
from .services import (
    build_fee_receipt_pdf,
    collect_fee,
    find_fee_drift,
    ledger_fees_paid,
    reconcile_fees_paid,
    whatsapp_reminder_link,
)


class FeesBaseTestCase(TestCase):
    def setUp(self):
        user_model = get_user_model()
        self.accountant = user_model.objects.create_user(
            username='fees_accountant',
            password='pass12345',
            role='accountant',
        )
        self.teacher_user = user_model.objects.create_user(
            username='fees_teacher',
            password='pass12345',
            role='teacher',
        )
        self.student = Student.objects.create(
            admission_number='00001',
            name='Riya',
            class_name='8',
            section='A',
            roll_number='1',
            mobile='+91 98765-43210',
            total_fees=Decimal('5000.00'),
        )


class CollectFeeTests(FeesBaseTestCase):
    def test_partial_then_full_settlement_is_exact(self):
        first = collect_fee(student=self.student, amount='1500', payment_date=date(2024, 6, 1))
        second = collect_fee(
            student=self.student,
            amount=self.student.total_fees - self.student.fees_paid,
            payment_date=date(2024, 6, 2),
            received_by=self.accountant,
        )

        self.student.refresh_from_db()
        self.assertEqual(first.new_balance, Decimal('3500.00'))
        self.assertEqual(second.new_balance, Decimal('0.00'))
        self.assertEqual(self.student.fees_paid, self.student.total_fees)
        self.assertEqual(ledger_fees_paid(self.student), Decimal('5000.00'))
        self.assertEqual(second.receipt.balance, Decimal('0.00'))
        self.assertEqual(second.payment.received_by, self.accountant)
        self.assertEqual(AuditLog.objects.filter(action='fees.payment_collected').count(), 2)

    def test_overpayment_is_rejected_without_write(self):
        collect_fee(student=self.student, amount='4000', payment_date=date(2024, 6, 1))

        with self.assertRaises(OverpaymentError) as ctx:
            collect_fee(student=self.student, amount='1000.01', payment_date=date(2024, 6, 2))

        self.student.refresh_from_db()
        self.assertEqual(ctx.exception.outstanding, Decimal('1000.00'))
        self.assertEqual(self.student.fees_paid, Decimal('4000.00'))
        self.assertEqual(FeePayment.objects.count(), 1)

    def test_invalid_amounts(self):
        for amount in ('0', '-10', 'abc', None):
            with self.subTest(amount=amount):
                with self.assertRaises(ValidationError):
                    collect_fee(student=self.student, amount=amount)
        self.assertFalse(FeePayment.objects.exists())

    def test_sub_paisa_amount_is_rejected(self):
        with self.assertRaises(ValidationError):
            collect_fee(student=self.student, amount='100.005')

        self.student.refresh_from_db()
        self.assertEqual(self.student.fees_paid, Decimal('0.00'))
        self.assertFalse(FeePayment.objects.exists())

    def test_invalid_payment_date(self):
        with self.assertRaises(ValidationError):
            collect_fee(student=self.student, amount='100', payment_date='31-02-2024')

    def test_generated_receipt_numbers_are_sequential_per_day(self):
        first = collect_fee(student=self.student, amount='100', payment_date=date(2024, 6, 1))
        second = collect_fee(student=self.student, amount='100', payment_date=date(2024, 6, 1))

        self.assertEqual(first.payment.receipt_number, 'RCP-20240601-0001')
        self.assertEqual(second.payment.receipt_number, 'RCP-20240601-0002')

    def test_duplicate_receipt_number_conflicts(self):
        collect_fee(student=self.student, amount='100', receipt_number='R-1')

        with self.assertRaises(ConflictError):
            collect_fee(student=self.student, amount='100', receipt_number='R-1')

        self.student.refresh_from_db()
        self.assertEqual(self.student.fees_paid, Decimal('100.00'))

    def test_stale_copy_conflicts(self):
        stale = Student.objects.get(pk=self.student.pk)
        collect_fee(student=self.student, amount='1000')

        with self.assertRaises(ConflictError):
            collect_fee(student=stale, amount='1000')

        self.student.refresh_from_db()
        self.assertEqual(self.student.fees_paid, Decimal('1000.00'))
        self.assertEqual(FeePayment.objects.count(), 1)


class FeePaymentLedgerTests(FeesBaseTestCase):
    def test_payments_are_immutable(self):
        payment = collect_fee(student=self.student, amount='100').payment

        payment.amount = Decimal('50')
        with self.assertRaises(ValidationError):
            payment.save()
        with self.assertRaises(ValidationError):
            payment.delete()

    def test_drift_detection_and_repair(self):
        collect_fee(student=self.student, amount='700')
        Student.objects.filter(pk=self.student.pk).update(fees_paid=Decimal('900'))

        drift = find_fee_drift()
        self.assertEqual(len(drift), 1)
        self.assertEqual(drift[0].recorded, Decimal('900.00'))
        self.assertEqual(drift[0].ledger, Decimal('700.00'))

        reconcile_fees_paid(dry_run=True)
        self.student.refresh_from_db()
        self.assertEqual(self.student.fees_paid, Decimal('900.00'))

        repaired = reconcile_fees_paid(actor=self.accountant)
        self.student.refresh_from_db()
        self.assertEqual(len(repaired), 1)
        self.assertEqual(self.student.fees_paid, Decimal('700.00'))
        self.assertEqual(find_fee_drift(), [])
        self.assertTrue(AuditLog.objects.filter(action='fees.ledger_reconciled').exists())

    def test_reconcile_command(self):
        Student.objects.filter(pk=self.student.pk).update(fees_paid=Decimal('250'))

        out = StringIO()
        call_command('reconcile_fees', '--dry-run', stdout=out)
        self.assertIn('00001 Riya: recorded 250.00, ledger 0.00', out.getvalue())
        self.student.refresh_from_db()
        self.assertEqual(self.student.fees_paid, Decimal('250.00'))

        out = StringIO()
        call_command('reconcile_fees', stdout=out)
        self.assertIn('Reconciled 1 student(s).', out.getvalue())
        self.student.refresh_from_db()
        self.assertEqual(self.student.fees_paid, Decimal('0.00'))

    def test_drift_read_failure_is_upstream_unavailable(self):
        with mock.patch.object(Student.objects, 'all', side_effect=DatabaseError('down')):
            with self.assertRaises(UpstreamUnavailable):
                find_fee_drift()
            with self.assertRaises(CommandError):
                call_command('reconcile_fees', '--dry-run', stdout=StringIO())

    def test_reconcile_write_failure_is_upstream_unavailable(self):
        Student.objects.filter(pk=self.student.pk).update(fees_paid=Decimal('250'))

        with mock.patch('django.db.models.query.QuerySet.update', side_effect=DatabaseError('down')):
            with self.assertRaises(UpstreamUnavailable):
                reconcile_fees_paid(actor=self.accountant)

        self.student.refresh_from_db()
        self.assertEqual(self.student.fees_paid, Decimal('250.00'))
        self.assertFalse(AuditLog.objects.filter(action='fees.ledger_reconciled').exists())

    def test_receipt_pdf(self):
        result = collect_fee(student=self.student, amount='1200')
        self.assertTrue(build_fee_receipt_pdf(result.receipt).startswith(b'%PDF'))


class WhatsAppReminderTests(FeesBaseTestCase):
    def test_link_uses_last_ten_digits(self):
        link = whatsapp_reminder_link(self.student)

        self.assertTrue(link.startswith('https://wa.me/919876543210?text='))
        self.assertIn('Riya', link)

    def test_no_dues_or_bad_number(self):
        settled = Student.objects.create(
            admission_number='00002',
            name='Kabir',
            mobile='9876543210',
            total_fees=Decimal('100'),
            fees_paid=Decimal('100'),
        )
        bad_number = Student.objects.create(
            admission_number='00003',
            name='Meena',
            mobile='12345',
            total_fees=Decimal('100'),
        )

        with self.assertRaises(ValidationError):
            whatsapp_reminder_link(settled)
        with self.assertRaises(ValidationError):
            whatsapp_reminder_link(bad_number)


class FeeViewTests(FeesBaseTestCase):
    def test_accountant_collects_fee(self):
        self.client.login(username='fees_accountant', password='pass12345')
        response = self.client.post(reverse('fee_collect', args=[self.student.pk]), {
            'amount': '2000',
            'payment_date': '',
            'receipt_number': '',
            'expected_fees_paid': '0.00',
        })

        self.assertRedirects(response, reverse('fee_collect', args=[self.student.pk]))
        self.student.refresh_from_db()
        self.assertEqual(self.student.fees_paid, Decimal('2000.00'))
        payment = FeePayment.objects.get()
        self.assertEqual(payment.received_by, self.accountant)

        pdf = self.client.get(reverse('fee_receipt_pdf', args=[payment.pk]))
        self.assertEqual(pdf['Content-Type'], 'application/pdf')

    def test_overpayment_shows_form_error(self):
        self.client.login(username='fees_accountant', password='pass12345')
        response = self.client.post(reverse('fee_collect', args=[self.student.pk]), {
            'amount': '6000',
            'expected_fees_paid': '0.00',
        })

        self.assertEqual(response.status_code, 200)
        self.assertContains(response, 'only 5000.00 is outstanding')
        self.assertFalse(FeePayment.objects.exists())

    def test_fee_overview_lists_due_students(self):
        self.client.login(username='fees_accountant', password='pass12345')
        response = self.client.get(reverse('fee_overview'))

        self.assertContains(response, 'Riya')
        self.assertEqual(response.context['totals'].pending, Decimal('5000.00'))

    def test_reminder_redirects_to_whatsapp(self):
        self.client.login(username='fees_accountant', password='pass12345')
        response = self.client.post(reverse('fee_reminder', args=[self.student.pk]))

        self.assertEqual(response.status_code, 302)
        self.assertTrue(response['Location'].startswith('https://wa.me/919876543210'))

    def test_teacher_is_forbidden(self):
        self.client.login(username='fees_teacher', password='pass12345')
        response = self.client.get(reverse('fee_overview'))
        self.assertEqual(response.status_code, 403)
