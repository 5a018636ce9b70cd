from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.test import TestCase
from django.urls import reverse

from apps.core.users.models import AuditLog

from .models import SchoolProfile
from .services import get_school_profile


class SchoolProfileTests(TestCase):
    def test_profile_is_created_once(self):
        first = get_school_profile()
        second = get_school_profile()

        self.assertEqual(first.pk, second.pk)
        self.assertEqual(SchoolProfile.objects.count(), 1)

    def test_second_profile_is_rejected(self):
        get_school_profile()
        with self.assertRaises(ValidationError):
            SchoolProfile.objects.create(name='Another School')

    def test_profile_cannot_be_deleted(self):
        profile = get_school_profile()
        with self.assertRaises(ValidationError):
            profile.delete()
        self.assertTrue(SchoolProfile.objects.filter(pk=profile.pk).exists())

    def test_logo_url_is_blank_without_logo(self):
        self.assertEqual(get_school_profile().logo_url, '')


class SchoolProfileViewTests(TestCase):
    def setUp(self):
        user_model = get_user_model()
        self.admin = user_model.objects.create_user(
            username='profile_admin',
            password='pass12345',
            role='schooladmin',
        )
        user_model.objects.create_user(
            username='profile_accountant',
            password='pass12345',
            role='accountant',
        )

    def test_admin_updates_profile(self):
        self.client.login(username='profile_admin', password='pass12345')
        response = self.client.post(reverse('school_profile_update'), {
            'name': 'Vidya Mandir',
            'affiliation_number': 'AFF-11',
            'school_code': 'VM01',
            'udise_code': '27000000001',
            'address': 'Station Road, Pune',
            'principal_name': 'S. Kulkarni',
            'academic_year': '2026-27',
        })

        self.assertRedirects(response, reverse('school_profile_update'))
        profile = SchoolProfile.objects.get()
        self.assertEqual(profile.name, 'Vidya Mandir')
        self.assertEqual(profile.academic_year, '2026-27')
        self.assertTrue(AuditLog.objects.filter(action='schools.profile_updated', user=self.admin).exists())

    def test_missing_fields_keep_form_open(self):
        self.client.login(username='profile_admin', password='pass12345')
        response = self.client.post(reverse('school_profile_update'), {'name': 'Only Name'})

        self.assertEqual(response.status_code, 200)
        self.assertIn('principal_name', response.context['form'].errors)

    def test_accountant_is_forbidden(self):
        self.client.login(username='profile_accountant', password='pass12345')
        response = self.client.get(reverse('school_profile_update'))
        self.assertEqual(response.status_code, 403)

    def test_anonymous_user_is_sent_to_login(self):
        response = self.client.get(reverse('school_profile_update'))
        self.assertEqual(response.status_code, 302)
        self.assertIn(reverse('login'), response['Location'])
