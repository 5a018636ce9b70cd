from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.test import TestCase
from django.urls import reverse

from apps.core.users.models import AuditLog

from .models import SchoolClass, normalize_sections
from .services import save_school_class


class SectionNormalizationTests(TestCase):
    def test_string_and_list_inputs(self):
        self.assertEqual(normalize_sections('a, b ,A'), ['A', 'B'])
        self.assertEqual(normalize_sections(['c', ' ', 'a']), ['C', 'A'])
        self.assertEqual(normalize_sections(None), [])


class SchoolClassServiceTests(TestCase):
    def test_save_creates_class_with_labels(self):
        school_class = save_school_class(name=' 5 ', sections='b, a')

        self.assertEqual(school_class.name, '5')
        self.assertEqual(school_class.sections, ['B', 'A'])
        self.assertEqual(school_class.section_labels(), ["5 'B'", "5 'A'"])

    def test_save_requires_a_section(self):
        with self.assertRaises(ValidationError):
            save_school_class(name='6', sections=' , ')
        self.assertFalse(SchoolClass.objects.filter(name='6').exists())

    def test_update_existing_class(self):
        school_class = save_school_class(name='7', sections='A')
        save_school_class(name='7', sections='A, C', instance=school_class)

        school_class.refresh_from_db()
        self.assertEqual(school_class.sections, ['A', 'C'])


class SchoolClassViewTests(TestCase):
    def setUp(self):
        user_model = get_user_model()
        self.admin = user_model.objects.create_user(
            username='classes_admin',
            password='pass12345',
            role='schooladmin',
        )
        user_model.objects.create_user(
            username='classes_teacher',
            password='pass12345',
            role='teacher',
        )

    def test_admin_can_add_class(self):
        self.client.login(username='classes_admin', password='pass12345')
        response = self.client.post(reverse('class_list'), {'name': '9', 'sections': 'a,b'})

        self.assertRedirects(response, reverse('class_list'))
        self.assertEqual(SchoolClass.objects.get(name='9').sections, ['A', 'B'])
        self.assertTrue(AuditLog.objects.filter(action='academics.class_saved', user=self.admin).exists())

    def test_duplicate_name_is_rejected(self):
        SchoolClass.objects.create(name='9', sections=['A'])
        self.client.login(username='classes_admin', password='pass12345')

        response = self.client.post(reverse('class_list'), {'name': '9', 'sections': 'B'})

        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.context['form'].errors)
        self.assertEqual(SchoolClass.objects.count(), 1)

    def test_edit_class(self):
        school_class = SchoolClass.objects.create(name='10', sections=['A'])
        self.client.login(username='classes_admin', password='pass12345')

        response = self.client.post(
            reverse('class_update', args=[school_class.pk]),
            {'name': '10', 'sections': 'A, B'},
        )

        self.assertRedirects(response, reverse('class_list'))
        school_class.refresh_from_db()
        self.assertEqual(school_class.sections, ['A', 'B'])

    def test_teacher_is_forbidden(self):
        self.client.login(username='classes_teacher', password='pass12345')
        response = self.client.get(reverse('class_list'))
        self.assertEqual(response.status_code, 403)
