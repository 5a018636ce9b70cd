import random
from datetime import timedelta
from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone
from faker import Faker

from apps.core.academics.models import SchoolClass
from apps.core.academics.services import save_school_class
from apps.core.attendance.models import AttendanceRecord
from apps.core.attendance.services import mark_student_attendance, mark_teacher_attendance
from apps.core.expenses.models import Expense
from apps.core.fees.services import collect_fee
from apps.core.hr.models import Teacher
from apps.core.inventory.models import DeadStockItem
from apps.core.schools.services import get_school_profile
from apps.core.students.models import Student
from apps.core.students.services import next_admission_number
from apps.core.users.models import User

EXPENSE_CATEGORIES = ['Electricity', 'Stationery', 'Maintenance', 'Salaries', 'Events', 'Transport']
DEAD_STOCK_ITEMS = ['Desk', 'Bench', 'Projector', 'Computer', 'Almirah', 'Water Cooler', 'Whiteboard']
SUBJECTS = ['English', 'Mathematics', 'Science', 'Social Studies', 'Hindi', 'Marathi']


class Command(BaseCommand):
    help = 'Seeds the database with demo data for the school.'

    def add_arguments(self, parser):
        parser.add_argument('--students-per-section', type=int, default=15)
        parser.add_argument('--seed', type=int, default=None, help='Random seed for repeatable data.')

    @transaction.atomic
    def handle(self, *args, **options):
        self.stdout.write('Seeding database...')

        fake = Faker('en_IN')
        if options['seed'] is not None:
            Faker.seed(options['seed'])
            random.seed(options['seed'])
        today = timezone.localdate()

        profile = get_school_profile()
        if not profile.name:
            profile.name = f"{fake.last_name()} Vidyalaya"
            profile.address = fake.address()
            profile.principal_name = fake.name()
            profile.affiliation_number = str(fake.random_number(digits=7, fix_len=True))
            profile.school_code = str(fake.random_number(digits=5, fix_len=True))
            profile.udise_code = str(fake.random_number(digits=11, fix_len=True))
            start_year = today.year if today.month >= 6 else today.year - 1
            profile.academic_year = f"{start_year}-{str(start_year + 1)[-2:]}"
            profile.save()
            self.stdout.write(self.style.SUCCESS(f'Created school profile: {profile.name}'))

        if not User.objects.filter(username='admin').exists():
            User.objects.create_superuser('admin', 'admin@example.com', 'password')
            self.stdout.write(self.style.SUCCESS('Created admin user.'))

        for username, role in [('accountant', User.ROLE_ACCOUNTANT), ('teacher', User.ROLE_TEACHER)]:
            user, created = User.objects.get_or_create(username=username, defaults={'role': role})
            if created:
                user.set_password('password')
                user.save()
                self.stdout.write(self.style.SUCCESS(f'Created {role} user.'))
        accountant = User.objects.get(username='accountant')
        teacher_user = User.objects.get(username='teacher')

        for number in range(1, 11):
            name = str(number)
            if not SchoolClass.objects.filter(name=name).exists():
                save_school_class(name=name, sections=['A', 'B'])
                self.stdout.write(self.style.SUCCESS(f'Created class {name}'))

        new_students = []
        for number in range(1, 11):
            class_name = str(number)
            for section in ['A', 'B']:
                existing = Student.objects.filter(class_name=class_name, section=section).count()
                for roll in range(existing + 1, options['students_per_section'] + 1):
                    total_fees = Decimal(random.choice([12000, 15000, 18000, 24000]))
                    student = Student.objects.create(
                        admission_number=next_admission_number(),
                        name=fake.name(),
                        father_name=fake.name_male(),
                        mother_name=fake.name_female(),
                        date_of_birth=fake.date_of_birth(minimum_age=5 + number, maximum_age=6 + number),
                        gender=random.choice(['Male', 'Female']),
                        admission_date=today - timedelta(days=random.randint(30, 365 * number)),
                        class_name=class_name,
                        section=section,
                        roll_number=str(roll),
                        mobile=f"9{fake.random_number(digits=9, fix_len=True)}",
                        address=fake.address(),
                        total_fees=total_fees,
                    )
                    new_students.append(student)
        self.stdout.write(self.style.SUCCESS(f'Created {len(new_students)} students.'))

        for student in new_students:
            for _ in range(random.randint(0, 3)):
                outstanding = student.total_fees - student.fees_paid
                if outstanding <= 0:
                    break
                amount = min(outstanding, Decimal(random.choice([2000, 3000, 4000, 6000])))
                collect_fee(
                    student=student,
                    amount=amount,
                    payment_date=today - timedelta(days=random.randint(0, 200)),
                    received_by=accountant,
                )
        self.stdout.write(self.style.SUCCESS('Recorded fee payments.'))

        while Teacher.objects.count() < 12:
            Teacher.objects.create(
                name=fake.name(),
                subject=random.choice(SUBJECTS),
                mobile=f"9{fake.random_number(digits=9, fix_len=True)}",
            )

        if not Expense.objects.exists():
            for _ in range(40):
                Expense.objects.create(
                    date=today - timedelta(days=random.randint(0, 365)),
                    category=random.choice(EXPENSE_CATEGORIES),
                    description=fake.sentence(nb_words=5),
                    amount=Decimal(random.randint(500, 25000)),
                )
            self.stdout.write(self.style.SUCCESS('Created expenses.'))

        if not DeadStockItem.objects.exists():
            for item_name in DEAD_STOCK_ITEMS:
                DeadStockItem.objects.create(
                    item_name=item_name,
                    quantity=random.randint(1, 40),
                    price=Decimal(random.randint(800, 45000)),
                    purchase_date=today - timedelta(days=random.randint(30, 365 * 8)),
                    description=fake.sentence(nb_words=6),
                )
            self.stdout.write(self.style.SUCCESS('Created dead stock register.'))

        students = list(Student.objects.all())
        teachers = list(Teacher.objects.all())
        day = today.replace(day=1)
        while day <= today:
            if day.weekday() != 6:
                mark_student_attendance(
                    target_date=day,
                    status_by_student_id={
                        student.id: _random_status() for student in students
                    },
                    marked_by=teacher_user,
                )
                mark_teacher_attendance(
                    target_date=day,
                    status_by_teacher_id={
                        teacher.id: _random_status() for teacher in teachers
                    },
                    marked_by=teacher_user,
                )
            day += timedelta(days=1)
        self.stdout.write(self.style.SUCCESS('Marked attendance for the current month.'))

        self.stdout.write(self.style.SUCCESS('Database seeding complete!'))


def _random_status():
    if random.random() < 0.9:
        return AttendanceRecord.STATUS_PRESENT
    return AttendanceRecord.STATUS_ABSENT
