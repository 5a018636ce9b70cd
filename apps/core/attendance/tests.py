from datetime import date, timedelta
from urllib.parse import urlencode

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.test import TestCase
from django.urls import reverse
from django.utils import timezone

from apps.core.hr.models import Teacher
from apps.core.students.models import Student
from apps.core.users.models import AuditLog
from apps.core.utils.exceptions import PartialBatchFailure

from .models import StudentAttendance, TeacherAttendance
from .services import mark_student_attendance, mark_teacher_attendance, student_class_label


class AttendanceBaseTestCase(TestCase):
    def setUp(self):
        user_model = get_user_model()
        self.teacher_user = user_model.objects.create_user(
            username='attendance_teacher',
            password='pass12345',
            role='teacher',
        )
        self.admin_user = user_model.objects.create_user(
            username='attendance_admin',
            password='pass12345',
            role='schooladmin',
        )
        self.asha = Student.objects.create(
            admission_number='00001', name='Asha', class_name='5', section='A', roll_number='1'
        )
        self.bala = Student.objects.create(
            admission_number='00002', name='Bala', class_name='5', section='A', roll_number='2'
        )
        self.meera = Teacher.objects.create(name='Meera', subject='Maths')
        self.target_date = date(2024, 6, 3)


class MarkStudentAttendanceTests(AttendanceBaseTestCase):
    def test_records_carry_class_label(self):
        mark_student_attendance(
            target_date=self.target_date,
            status_by_student_id={self.asha.id: 'present', self.bala.id: 'absent'},
            marked_by=self.teacher_user,
        )

        record = StudentAttendance.objects.get(student=self.asha)
        self.assertEqual(record.class_label, "5 'A'")
        self.assertEqual(student_class_label(self.asha), "5 'A'")
        self.assertEqual(record.marked_by, self.teacher_user)
        self.assertTrue(AuditLog.objects.filter(action='attendance.students_marked').exists())

    def test_resubmission_overwrites_instead_of_duplicating(self):
        mark_student_attendance(target_date=self.target_date, status_by_student_id={self.asha.id: 'present'})
        mark_student_attendance(target_date=self.target_date, status_by_student_id={self.asha.id: 'absent'})

        records = StudentAttendance.objects.filter(student=self.asha, date=self.target_date)
        self.assertEqual(records.count(), 1)
        self.assertEqual(records.get().status, 'absent')

    def test_bad_records_fail_individually(self):
        with self.assertRaises(PartialBatchFailure) as ctx:
            mark_student_attendance(
                target_date=self.target_date,
                status_by_student_id={self.asha.id: 'present', self.bala.id: 'late', 9999: 'present'},
            )

        self.assertEqual(ctx.exception.succeeded, [self.asha.id])
        self.assertEqual(set(ctx.exception.failed), {self.bala.id, 9999})
        self.assertTrue(StudentAttendance.objects.filter(student=self.asha).exists())
        self.assertFalse(StudentAttendance.objects.filter(student=self.bala).exists())

    def test_invalid_input(self):
        with self.assertRaises(ValidationError):
            mark_student_attendance(target_date='not-a-date', status_by_student_id={self.asha.id: 'present'})
        with self.assertRaises(ValidationError):
            mark_student_attendance(target_date=self.target_date, status_by_student_id={})


class MarkTeacherAttendanceTests(AttendanceBaseTestCase):
    def test_upsert_per_teacher_and_date(self):
        mark_teacher_attendance(target_date='2024-06-03', status_by_teacher_id={self.meera.id: 'present'})
        mark_teacher_attendance(target_date='2024-06-03', status_by_teacher_id={str(self.meera.id): 'absent'})

        record = TeacherAttendance.objects.get()
        self.assertEqual(record.status, 'absent')
        self.assertEqual(record.date, self.target_date)


class AttendanceViewTests(AttendanceBaseTestCase):
    def test_teacher_marks_class(self):
        self.client.login(username='attendance_teacher', password='pass12345')
        today = timezone.localdate()
        url = reverse('attendance_student_mark')

        response = self.client.get(url, {'class_label': "5 'A'", 'target_date': today.isoformat()})
        self.assertEqual(len(response.context['rows']), 2)

        response = self.client.post(url, {
            'class_label': "5 'A'",
            'target_date': today.isoformat(),
            f'status_{self.asha.id}': 'present',
            f'status_{self.bala.id}': 'absent',
        })

        query = urlencode({'class_label': "5 'A'", 'target_date': today.isoformat()})
        expected = f"{url}?{query}"
        self.assertRedirects(response, expected)
        self.assertEqual(StudentAttendance.objects.get(student=self.bala).status, 'absent')

    def test_future_dates_are_rejected(self):
        self.client.login(username='attendance_teacher', password='pass12345')
        tomorrow = timezone.localdate() + timedelta(days=1)
        response = self.client.post(reverse('attendance_student_mark'), {
            'class_label': "5 'A'",
            'target_date': tomorrow.isoformat(),
            f'status_{self.asha.id}': 'present',
        })

        self.assertEqual(response.status_code, 200)
        self.assertFalse(StudentAttendance.objects.exists())

    def test_admin_marks_teachers(self):
        self.client.login(username='attendance_admin', password='pass12345')
        today = timezone.localdate()
        response = self.client.post(reverse('attendance_teacher_mark'), {
            'target_date': today.isoformat(),
            f'status_{self.meera.id}': 'absent',
        })

        self.assertEqual(response.status_code, 302)
        self.assertEqual(TeacherAttendance.objects.get(teacher=self.meera).status, 'absent')

    def test_teacher_cannot_mark_teachers(self):
        self.client.login(username='attendance_teacher', password='pass12345')
        response = self.client.get(reverse('attendance_teacher_mark'))
        self.assertEqual(response.status_code, 403)
