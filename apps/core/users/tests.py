from unittest import mock

from django.contrib.auth import get_user_model
from django.contrib.auth.models import AnonymousUser
from django.db import DatabaseError
from django.http import HttpResponse
from django.test import RequestFactory, TestCase

from apps.core.students.models import Student

from .audit import log_audit_event
from .decorators import role_required
from .models import AuditLog


class UserModelTests(TestCase):
    def test_superuser_is_school_admin(self):
        user = get_user_model().objects.create_superuser(username='root_admin', password='pass12345')
        self.assertEqual(user.role, 'schooladmin')

    def test_superuser_flag_overrides_role(self):
        user = get_user_model().objects.create_user(username='promoted', password='pass12345', role='staff')
        user.is_superuser = True
        user.save()
        user.refresh_from_db()
        self.assertEqual(user.role, 'schooladmin')


class AuditLogTests(TestCase):
    def setUp(self):
        self.factory = RequestFactory()
        self.user = get_user_model().objects.create_user(
            username='audit_accountant',
            password='pass12345',
            role='accountant',
        )
        self.student = Student.objects.create(admission_number='00001', name='Meera', class_name='3', section='A')

    def test_records_request_context(self):
        request = self.factory.post('/fees/', HTTP_X_FORWARDED_FOR='10.0.0.8, 172.16.0.1')
        request.user = self.user

        entry = log_audit_event(request=request, action='fees.payment_collected', target=self.student, details='x')

        self.assertEqual(entry.user, self.user)
        self.assertEqual(entry.method, 'POST')
        self.assertEqual(entry.ip_address, '10.0.0.8')
        self.assertEqual(entry.target_model, 'Student')
        self.assertEqual(entry.target_id, str(self.student.pk))

    def test_service_call_without_request(self):
        entry = log_audit_event(action='students.promoted', user=self.user)
        self.assertEqual(entry.user, self.user)
        self.assertEqual(entry.path, '')

    def test_anonymous_user_is_not_stored(self):
        entry = log_audit_event(action='reports.generated', user=AnonymousUser())
        self.assertIsNone(entry.user)

    def test_failures_are_swallowed(self):
        with mock.patch.object(AuditLog.objects, 'create', side_effect=DatabaseError('down')):
            self.assertIsNone(log_audit_event(action='fees.payment_collected', user=self.user))
        self.assertFalse(AuditLog.objects.exists())


class RoleRequiredTests(TestCase):
    def setUp(self):
        self.factory = RequestFactory()

        @role_required(['schooladmin', 'accountant'])
        def view(request):
            return HttpResponse('ok')

        self.view = view

    def test_allowed_role(self):
        request = self.factory.get('/')
        request.user = get_user_model().objects.create_user(username='acc', password='x', role='accountant')
        self.assertEqual(self.view(request).status_code, 200)

    def test_other_role_gets_forbidden_page(self):
        request = self.factory.get('/')
        request.user = get_user_model().objects.create_user(username='tch', password='x', role='teacher')
        self.assertEqual(self.view(request).status_code, 403)

    def test_superuser_always_passes(self):
        request = self.factory.get('/')
        user = get_user_model().objects.create_user(username='su', password='x', role='teacher')
        user.is_superuser = True
        request.user = user
        self.assertEqual(self.view(request).status_code, 200)

    def test_unknown_role_is_rejected_at_decoration(self):
        with self.assertRaises(ValueError):
            role_required('principal')

    def test_anonymous_redirects_to_login(self):
        request = self.factory.get('/')
        request.user = AnonymousUser()
        response = self.view(request)
        self.assertEqual(response.status_code, 302)
