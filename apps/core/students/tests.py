import re
from datetime import date
from decimal import Decimal
from unittest import mock

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.db import DatabaseError
from django.test import TestCase, override_settings
from django.urls import reverse

from apps.core.schools.services import get_school_profile
from apps.core.users.models import AuditLog
from apps.core.utils.exceptions import PartialBatchFailure

from .documents import (
    RESULT_FAIL,
    RESULT_PASS,
    bonafide_certificate_data,
    build_certificate_pdf,
    build_id_cards_pdf,
    build_marksheet,
    build_marksheet_pdf,
    leaving_certificate_data,
    letterhead_for,
    marks_text,
    subject_marks,
)
from .models import Student
from .services import (
    alphabetical_roll_numbers,
    assign_roll_numbers,
    issue_leaving_certificate,
    next_admission_number,
    promote_students,
)


class StudentsBaseTestCase(TestCase):
    def setUp(self):
        user_model = get_user_model()
        self.school_admin = user_model.objects.create_user(
            username='students_admin',
            password='pass12345',
            role='schooladmin',
        )
        self.teacher_user = user_model.objects.create_user(
            username='students_teacher',
            password='pass12345',
            role='teacher',
        )
        self.asha = Student.objects.create(
            admission_number='00007', name='Asha', class_name='5', section='A', roll_number='2'
        )
        self.bala = Student.objects.create(
            admission_number='00012', name='Bala', class_name='5', section='B', roll_number='1'
        )
        self.chetan = Student.objects.create(
            admission_number='GR-OLD', name='Chetan', class_name='6', section='A', roll_number='1'
        )


class PromotionTests(StudentsBaseTestCase):
    def test_promotes_whole_class_and_clears_section(self):
        promoted = promote_students(from_class='5', to_class='6', actor=self.school_admin)

        self.assertEqual({student.id for student in promoted}, {self.asha.id, self.bala.id})
        self.assertEqual({(student.class_name, student.section) for student in promoted}, {('6', '')})
        for student in Student.objects.filter(pk__in=[self.asha.id, self.bala.id]):
            self.assertEqual(student.class_name, '6')
            self.assertEqual(student.section, '')
        self.assertFalse(Student.objects.filter(class_name='5').exists())
        self.assertTrue(AuditLog.objects.filter(action='students.promoted', user=self.school_admin).exists())

    def test_same_class_is_rejected_without_writes(self):
        with self.assertRaises(ValidationError):
            promote_students(from_class='5', to_class='5')

        self.asha.refresh_from_db()
        self.assertEqual((self.asha.class_name, self.asha.section), ('5', 'A'))

    def test_blank_or_empty_source_is_rejected(self):
        with self.assertRaises(ValidationError):
            promote_students(from_class=' ', to_class='6')
        with self.assertRaises(ValidationError):
            promote_students(from_class='9', to_class='10')

    def test_partial_failure_reports_remaining_students(self):
        from . import services

        original = services._apply_promotion

        def flaky(student, to_class):
            if student.pk == self.bala.pk:
                raise DatabaseError('write failed')
            original(student, to_class)

        with mock.patch.object(services, '_apply_promotion', side_effect=flaky):
            with self.assertRaises(PartialBatchFailure) as ctx:
                promote_students(from_class='5', to_class='6')

        self.assertEqual(ctx.exception.succeeded, [self.asha.id])
        self.assertIn(self.bala.id, ctx.exception.failed)
        self.bala.refresh_from_db()
        self.assertEqual(self.bala.class_name, '5')

    def test_failed_write_leaves_student_copy_unchanged(self):
        from . import services

        with mock.patch('django.db.models.query.QuerySet.update', side_effect=DatabaseError('write failed')):
            with self.assertRaises(DatabaseError):
                services._apply_promotion(self.asha, '6')
            with self.assertRaises(PartialBatchFailure) as ctx:
                promote_students(from_class='5', to_class='6')

        self.assertEqual((self.asha.class_name, self.asha.section), ('5', 'A'))
        self.assertEqual(ctx.exception.succeeded, [])
        self.assertEqual(set(ctx.exception.failed), {self.asha.id, self.bala.id})
        self.asha.refresh_from_db()
        self.assertEqual((self.asha.class_name, self.asha.section), ('5', 'A'))


class RosterTests(StudentsBaseTestCase):
    def test_alphabetical_proposal(self):
        zara = Student.objects.create(admission_number='00020', name='zara', class_name='5', section='A')
        proposal = alphabetical_roll_numbers([zara, self.asha])
        self.assertEqual(proposal, {self.asha.id: '1', zara.id: '2'})

    def test_duplicate_roll_numbers_are_rejected(self):
        with self.assertRaises(ValidationError):
            assign_roll_numbers(roll_by_student_id={self.asha.id: '3', self.bala.id: ' 3 '})

        self.asha.refresh_from_db()
        self.assertEqual(self.asha.roll_number, '2')

    def test_only_changed_rows_are_written(self):
        updated = assign_roll_numbers(
            roll_by_student_id={self.asha.id: '2', self.bala.id: '4', self.chetan.id: ''},
        )

        self.assertEqual({student.id for student in updated}, {self.bala.id, self.chetan.id})
        self.chetan.refresh_from_db()
        self.assertEqual(self.chetan.roll_number, '')

    def test_unknown_student(self):
        with self.assertRaises(ValidationError):
            assign_roll_numbers(roll_by_student_id={99999: '1'})

    def test_next_admission_number_skips_non_numeric(self):
        self.assertEqual(next_admission_number(), '00013')
        Student.objects.all().delete()
        self.assertEqual(next_admission_number(), '00001')


class LeavingCertificateTests(StudentsBaseTestCase):
    def test_pending_fees_block_lc(self):
        Student.objects.filter(pk=self.asha.pk).update(total_fees=Decimal('1000'), fees_paid=Decimal('400'))

        with self.assertRaises(ValidationError) as ctx:
            issue_leaving_certificate(self.asha)

        self.assertIn('600.00', ' '.join(ctx.exception.messages))
        self.asha.refresh_from_db()
        self.assertEqual(self.asha.status, Student.STATUS_ACTIVE)

    def test_issue_then_duplicate(self):
        student, duplicate = issue_leaving_certificate(self.asha, actor=self.school_admin)
        self.assertFalse(duplicate)
        self.assertEqual(student.status, Student.STATUS_LC_ISSUED)

        _, duplicate = issue_leaving_certificate(self.asha)
        self.assertTrue(duplicate)
        self.assertEqual(AuditLog.objects.filter(action='students.lc_issued').count(), 1)


class StudentViewTests(StudentsBaseTestCase):
    def test_list_hides_lc_issued_by_default(self):
        Student.objects.filter(pk=self.chetan.pk).update(status=Student.STATUS_LC_ISSUED)
        self.client.login(username='students_teacher', password='pass12345')

        response = self.client.get(reverse('student_list'))
        names = [student.name for student in response.context['students']]
        self.assertEqual(names, ['Asha', 'Bala'])

        response = self.client.get(reverse('student_list'), {'status': 'All', 'q': 'chet'})
        self.assertEqual([student.name for student in response.context['students']], ['Chetan'])

    def test_promote_view(self):
        self.client.login(username='students_admin', password='pass12345')
        response = self.client.post(reverse('student_promote'), {'from_class': '5', 'to_class': '6'})

        self.assertRedirects(response, reverse('student_list'))
        self.assertEqual(Student.objects.filter(class_name='6').count(), 3)

    def test_teacher_cannot_promote(self):
        self.client.login(username='students_teacher', password='pass12345')
        response = self.client.get(reverse('student_promote'))
        self.assertEqual(response.status_code, 403)

    def test_roster_save(self):
        self.client.login(username='students_teacher', password='pass12345')
        response = self.client.post(reverse('class_roster'), {
            'class_label': "5 'A'",
            'action': 'save',
            f'roll_{self.asha.id}': '7',
        })

        self.assertEqual(response.status_code, 302)
        self.asha.refresh_from_db()
        self.assertEqual(self.asha.roll_number, '7')

    def test_lc_view_returns_certificate_then_duplicate(self):
        self.client.login(username='students_admin', password='pass12345')
        url = reverse('student_leaving_certificate', args=[self.asha.pk])

        response = self.client.post(url, {'leaving_date': '2024-04-10', 'reason': 'Transfer'})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response['Content-Type'], 'application/pdf')
        self.assertIn('LC-00007.pdf', response['Content-Disposition'])
        self.assertTrue(response.content.startswith(b'%PDF'))

        response = self.client.post(url, {'leaving_date': '2024-06-01'})
        self.assertIn('LC-00007-duplicate.pdf', response['Content-Disposition'])

        self.asha.refresh_from_db()
        self.assertEqual(self.asha.status, Student.STATUS_LC_ISSUED)
        self.assertEqual(self.asha.leaving_date, date(2024, 4, 10))
        self.assertEqual(self.asha.leaving_reason, 'Transfer')
        self.assertEqual(AuditLog.objects.filter(action='students.document_generated').count(), 2)

    def test_lc_view_with_pending_fees_redirects(self):
        Student.objects.filter(pk=self.asha.pk).update(total_fees=Decimal('1000'))
        self.client.login(username='students_admin', password='pass12345')

        response = self.client.post(reverse('student_leaving_certificate', args=[self.asha.pk]))

        self.assertRedirects(response, reverse('student_list'))
        self.asha.refresh_from_db()
        self.assertEqual(self.asha.status, Student.STATUS_ACTIVE)

    def test_bonafide_view(self):
        self.client.login(username='students_admin', password='pass12345')

        response = self.client.get(
            reverse('student_bonafide_certificate', args=[self.asha.pk]),
            {'purpose': 'bank account'},
        )
        self.assertEqual(response['Content-Type'], 'application/pdf')
        self.assertIn('Bonafide-00007.pdf', response['Content-Disposition'])

        Student.objects.filter(pk=self.bala.pk).update(status=Student.STATUS_LC_ISSUED)
        response = self.client.get(reverse('student_bonafide_certificate', args=[self.bala.pk]))
        self.assertRedirects(response, reverse('student_list'))

    def test_marksheet_view(self):
        self.client.login(username='students_teacher', password='pass12345')
        url = reverse('student_marksheet', args=[self.asha.pk])

        response = self.client.get(url)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.context['formset'].forms), 8)

        data = {
            'exam_name': 'Annual Examination 2024-25',
            'subjects-TOTAL_FORMS': '3',
            'subjects-INITIAL_FORMS': '0',
            'subjects-MIN_NUM_FORMS': '0',
            'subjects-MAX_NUM_FORMS': '1000',
            'subjects-0-subject': 'English',
            'subjects-0-theory_obtained': '78',
            'subjects-0-theory_max': '100',
            'subjects-1-subject': 'Science',
            'subjects-1-theory_obtained': '50',
            'subjects-1-theory_max': '70',
            'subjects-1-practical_obtained': '28',
            'subjects-1-practical_max': '30',
        }
        response = self.client.post(url, data)
        self.assertEqual(response['Content-Type'], 'application/pdf')
        self.assertIn('Marksheet-00007-annual-examination-2024-25.pdf', response['Content-Disposition'])
        self.assertTrue(
            AuditLog.objects.filter(action='students.document_generated', details__contains='Result=PASS').exists()
        )

        data['subjects-1-practical_obtained'] = '31'
        response = self.client.post(url, data)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response['Content-Type'], 'text/html; charset=utf-8')

    def test_accountant_cannot_open_marksheet(self):
        get_user_model().objects.create_user(username='students_accountant', password='pass12345', role='accountant')
        self.client.login(username='students_accountant', password='pass12345')

        response = self.client.get(reverse('student_marksheet', args=[self.asha.pk]))
        self.assertEqual(response.status_code, 403)

    def test_id_cards(self):
        self.client.login(username='students_teacher', password='pass12345')

        response = self.client.get(reverse('student_id_card', args=[self.asha.pk]))
        self.assertEqual(response['Content-Type'], 'application/pdf')

        response = self.client.get(reverse('class_id_cards'), {'class_label': "5 'A'"})
        self.assertEqual(response['Content-Type'], 'application/pdf')
        self.assertTrue(AuditLog.objects.filter(details="Document=Class ID Cards, Class=5 'A', Cards=1").exists())

        response = self.client.get(reverse('class_id_cards'), {'class_label': "9 'Z'"})
        self.assertRedirects(response, reverse('class_roster'))


class DocumentBuilderTests(StudentsBaseTestCase):
    def setUp(self):
        super().setUp()
        self.profile = get_school_profile()
        self.profile.name = 'Saraswati Vidyalaya'
        self.profile.principal_name = 'R. Kulkarni'
        self.profile.udise_code = '27251234567'
        self.profile.academic_year = '2024-25'
        self.profile.save()

        self.asha.father_name = 'Mohan'
        self.asha.gender = 'Female'
        self.asha.date_of_birth = date(2014, 7, 9)
        self.asha.save()

    def test_leaving_certificate_particulars(self):
        student, _ = issue_leaving_certificate(self.asha, leaving_date='2024-04-30', reason='Relocation')
        data = leaving_certificate_data(student, self.profile, duplicate=True)
        fields = dict(data.fields)

        self.assertTrue(data.duplicate)
        self.assertEqual(fields['Date of Birth'], '09-07-2014')
        self.assertEqual(fields['Date of Leaving'], '30-04-2024')
        self.assertEqual(fields['Reason for Leaving'], 'Relocation')
        self.assertEqual(fields['Class Last Studied'], "5 'A'")
        self.assertEqual(fields['Date of Admission'], 'N/A')
        self.assertEqual(data.letterhead.school_codes, 'UDISE: 27251234567')
        self.assertTrue(build_certificate_pdf(data).startswith(b'%PDF'))

    def test_bonafide_statement(self):
        data = bonafide_certificate_data(self.asha, self.profile, purpose='a scholarship application')

        self.assertIn('Asha, daughter of Mohan, is a bonafide student of Saraswati Vidyalaya', data.statement)
        self.assertIn("Class 5 'A' during the academic year 2024-25", data.statement)
        self.assertIn('Her date of birth as per the school records is 09-07-2014.', data.statement)
        self.assertTrue(data.statement.endswith('issued on request for a scholarship application.'))

        self.bala.section = ''
        self.assertIn('Bala is a bonafide student', bonafide_certificate_data(self.bala, self.profile).statement)
        self.assertEqual(dict(bonafide_certificate_data(self.bala, self.profile).fields)['Class'], '5')

        self.chetan.status = Student.STATUS_LC_ISSUED
        with self.assertRaises(ValidationError):
            bonafide_certificate_data(self.chetan, self.profile)

    def test_subject_marks_validation(self):
        row = subject_marks('Science', theory_max='70', theory_obtained='45.5', practical_max='30', practical_obtained='')
        self.assertEqual(row.obtained_total, Decimal('45.50'))
        self.assertEqual(row.max_total, Decimal('100.00'))
        self.assertEqual(marks_text(row.theory_obtained), '45.5')
        self.assertEqual(marks_text(row.theory_max), '70')

        bad_rows = (
            {'subject': ' ', 'theory_max': '100', 'theory_obtained': '10'},
            {'subject': 'Hindi', 'theory_max': '100', 'theory_obtained': '101'},
            {'subject': 'Hindi', 'theory_max': '0', 'theory_obtained': '0'},
            {'subject': 'Hindi', 'theory_max': '100', 'theory_obtained': '-1'},
            {'subject': 'Hindi', 'theory_max': '80', 'theory_obtained': '40', 'practical_max': '20', 'practical_obtained': '21'},
            {'subject': 'Hindi', 'theory_max': 'abc', 'theory_obtained': '40'},
        )
        for values in bad_rows:
            with self.subTest(values=values):
                subject = values.pop('subject')
                with self.assertRaises(ValidationError):
                    subject_marks(subject, **values)

    def test_marksheet_totals_and_result(self):
        subjects = [
            subject_marks('English', theory_max='100', theory_obtained='80'),
            subject_marks('Mathematics', theory_max='100', theory_obtained='30'),
            subject_marks('Science', theory_max='70', theory_obtained='20', practical_max='30', practical_obtained='25'),
        ]

        sheet = build_marksheet(self.asha, self.profile, exam_name=' Annual Examination ', subjects=subjects)

        self.assertEqual(sheet.exam_name, 'Annual Examination')
        self.assertEqual(sheet.obtained_total, Decimal('155.00'))
        self.assertEqual(sheet.max_total, Decimal('300.00'))
        self.assertEqual(sheet.percentage, Decimal('51.67'))
        self.assertEqual(sheet.failed_subjects, ('Mathematics',))
        self.assertEqual(sheet.result, RESULT_FAIL)
        self.assertTrue(build_marksheet_pdf(sheet).startswith(b'%PDF'))

        with override_settings(MARKSHEET_PASS_PERCENTAGE='30'):
            sheet = build_marksheet(self.asha, self.profile, exam_name='Annual Examination', subjects=subjects)
        self.assertEqual(sheet.result, RESULT_PASS)

    def test_marksheet_rejects_bad_subject_lists(self):
        english = subject_marks('English', theory_max='100', theory_obtained='80')
        for subjects in ([], [english, subject_marks('english', theory_max='50', theory_obtained='40')]):
            with self.subTest(count=len(subjects)):
                with self.assertRaises(ValidationError):
                    build_marksheet(self.asha, self.profile, exam_name='Unit Test', subjects=subjects)
        with self.assertRaises(ValidationError):
            build_marksheet(self.asha, self.profile, exam_name=' ', subjects=[english])

    def test_id_cards_pdf_has_page_per_student(self):
        pdf = build_id_cards_pdf([self.asha, self.bala], letterhead_for(self.profile))
        self.assertTrue(pdf.startswith(b'%PDF'))
        self.assertEqual(len(re.findall(rb'/Type\s*/Page\b', pdf)), 2)
