from dataclasses import replace
from datetime import date
from decimal import Decimal
from types import SimpleNamespace
from unittest import mock

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.db import DatabaseError
from django.test import TestCase, override_settings
from django.urls import reverse
from django.utils import timezone

from apps.core.attendance.models import StudentAttendance, TeacherAttendance
from apps.core.expenses.models import Expense
from apps.core.fees.models import FeePayment
from apps.core.hr.models import Teacher
from apps.core.inventory.models import DeadStockItem
from apps.core.schools.models import SchoolProfile
from apps.core.students.models import Student
from apps.core.users.models import AuditLog
from apps.core.utils.exceptions import UpstreamUnavailable

from .aggregation import (
    age_in_years,
    attendance_summary,
    class_options,
    depreciated_asset_value,
    due_students,
    expenses_in_period,
    fee_status,
    fee_totals,
    fees_summary_by_class,
    roll_sort_key,
    split_class_label,
)
from .balance_sheet import compute_balance_sheet, period_bounds
from .renderers import (
    HEADER_HEIGHT,
    MARGIN,
    PAGE_LONG_SIDE,
    ROW_HEIGHT,
    TITLE_HEIGHT,
    format_amount,
    format_cell,
    render_csv,
    render_html,
    render_pdf,
    render_pdf_pages,
)
from .services import expense_report
from .snapshot import LedgerSnapshot, load_attendance, load_snapshot
from .tables import (
    Column,
    ReportTable,
    build_balance_sheet_table,
    build_class_register_table,
    build_dead_stock_table,
    build_due_fees_table,
    build_expense_table,
    build_fee_status_table,
    build_student_attendance_grid,
    build_teacher_muster,
)


def _student(pk, name, class_name='5', section='A', total='0', paid='0', status='Active', roll='', gr=None):
    return Student(
        id=pk,
        admission_number=gr or f'{pk:05d}',
        name=name,
        father_name=f'{name} Sr',
        class_name=class_name,
        section=section,
        roll_number=roll,
        total_fees=Decimal(total),
        fees_paid=Decimal(paid),
        status=status,
        mobile='9876543210',
        address='Pune',
    )


def _item(price, quantity, purchase_date):
    return DeadStockItem(item_name='Bench', price=Decimal(price), quantity=quantity, purchase_date=purchase_date)


def _mark(person_id, on_date, status):
    return SimpleNamespace(person_id=person_id, date=on_date, status=status)


class FeeAggregationTests(TestCase):
    def setUp(self):
        self.students = [
            _student(1, 'Asha', '5', total='3000', paid='1000'),
            _student(2, 'Bala', '5', total='500', paid='500'),
            _student(3, 'Chetan', '6', total='200', paid='100', status='LC Issued'),
            _student(4, 'Divya', '6', total='2000', paid='0', status=''),
        ]

    def test_summary_by_class_counts_active_students_only(self):
        summary = fees_summary_by_class(self.students)

        self.assertEqual(list(summary), ['5', '6'])
        self.assertEqual(summary['5'].collected, Decimal('1500'))
        self.assertEqual(summary['5'].pending, Decimal('2000'))
        self.assertEqual(summary['6'].collected, Decimal('0'))
        self.assertEqual(summary['6'].pending, Decimal('2000'))

    def test_summary_totals_match_active_student_fees(self):
        summary = fees_summary_by_class(self.students)
        active = [s for s in self.students if s.is_active]

        self.assertEqual(sum(v.collected for v in summary.values()), sum(s.fees_paid for s in active))
        self.assertEqual(
            sum(v.pending for v in summary.values()),
            sum(s.total_fees - s.fees_paid for s in active),
        )

    def test_overpaid_student_keeps_negative_pending(self):
        summary = fees_summary_by_class([_student(1, 'Asha', total='1000', paid='1200')])
        self.assertEqual(summary['5'].pending, Decimal('-200'))

    def test_fee_totals_include_every_student(self):
        totals = fee_totals(self.students)
        self.assertEqual(totals.collected, Decimal('1600'))
        self.assertEqual(totals.pending, Decimal('4100'))

    def test_due_students_is_ordered_exact_and_idempotent(self):
        due = due_students(self.students)

        self.assertEqual([s.id for s in due], [1, 3, 4])
        self.assertTrue(all(s.total_fees > s.fees_paid for s in due))
        self.assertEqual([s.id for s in due_students(due)], [1, 3, 4])

    def test_due_students_class_filter(self):
        self.assertEqual([s.id for s in due_students(self.students, '6')], [3, 4])
        self.assertEqual([s.id for s in due_students(self.students, '')], [1, 3, 4])

    def test_fee_status_labels(self):
        self.assertEqual(fee_status(_student(1, 'A', total='100', paid='100')), 'Paid')
        self.assertEqual(fee_status(_student(1, 'A', total='100', paid='150')), 'Paid')
        self.assertEqual(fee_status(_student(1, 'A', total='100', paid='40')), 'Partially Paid')
        self.assertEqual(fee_status(_student(1, 'A', total='100', paid='0')), 'Unpaid')

    def test_inputs_are_not_mutated(self):
        before = [(s.fees_paid, s.total_fees, s.status) for s in self.students]
        fees_summary_by_class(self.students)
        due_students(self.students)
        build_fee_status_table(self.students)
        self.assertEqual(before, [(s.fees_paid, s.total_fees, s.status) for s in self.students])


class AttendanceSummaryTests(TestCase):
    def test_counts_marks_for_active_people_on_date(self):
        today = date(2024, 6, 3)
        records = [
            _mark(1, today, 'present'),
            _mark(2, today, 'absent'),
            _mark(3, today, 'present'),
            _mark(1, date(2024, 6, 2), 'absent'),
        ]

        summary = attendance_summary(records, {1, 2}, today)

        self.assertEqual(summary.present, 1)
        self.assertEqual(summary.absent, 1)

    def test_duplicate_marks_are_each_counted(self):
        today = date(2024, 6, 3)
        records = [_mark(1, today, 'present'), _mark(1, today, 'present')]
        self.assertEqual(attendance_summary(records, {1}, today).present, 2)

    def test_string_dates_are_parsed(self):
        summary = attendance_summary([_mark(1, '2024-06-03', 'absent')], {1}, '2024-06-03')
        self.assertEqual(summary.absent, 1)


class PeriodAndDepreciationTests(TestCase):
    def test_expenses_in_period_is_inclusive_and_sorted(self):
        expenses = [
            Expense(id=1, date=date(2024, 3, 31), category='Rent', description='', amount=Decimal('10')),
            Expense(id=2, date=date(2024, 3, 1), category='Rent', description='', amount=Decimal('20')),
            Expense(id=3, date=date(2024, 4, 1), category='Rent', description='', amount=Decimal('30')),
            Expense(id=4, date=date(2024, 3, 1), category='Food', description='', amount=Decimal('40')),
        ]

        selected = expenses_in_period(expenses, date(2024, 3, 1), date(2024, 3, 31))

        self.assertEqual([expense.id for expense in selected], [2, 4, 1])

    def test_one_year_old_item(self):
        valuation = depreciated_asset_value([_item('1000', 2, date(2023, 6, 15))], date(2024, 6, 15))

        self.assertEqual(valuation.purchase_value, Decimal('2000'))
        self.assertEqual(valuation.depreciation, Decimal('200'))
        self.assertEqual(valuation.net_value, Decimal('1800'))

    def test_items_bought_after_as_of_are_ignored(self):
        valuation = depreciated_asset_value([_item('500', 1, date(2025, 1, 1))], date(2024, 12, 31))
        self.assertEqual(valuation.purchase_value, Decimal('0'))

    def test_item_bought_on_as_of_is_not_depreciated(self):
        valuation = depreciated_asset_value([_item('500', 1, date(2024, 12, 31))], date(2024, 12, 31))
        self.assertEqual(valuation.net_value, Decimal('500'))

    def test_net_value_never_negative_and_never_increases(self):
        items = [_item('1000', 1, date(2015, 1, 1)), _item('300', 3, date(2020, 5, 10))]
        previous = None
        for year in range(2021, 2040):
            valuation = depreciated_asset_value(items, date(year, 1, 1))
            self.assertGreaterEqual(valuation.net_value, 0)
            if previous is not None:
                self.assertLessEqual(valuation.net_value, previous)
            previous = valuation.net_value
        self.assertEqual(previous, Decimal('0'))

    def test_leap_day_purchase_reaches_one_year_on_28_february(self):
        self.assertEqual(age_in_years(date(2020, 2, 29), date(2021, 2, 28)), Decimal('1'))

    @override_settings(DEAD_STOCK_DEPRECIATION_RATE='0.20')
    def test_rate_comes_from_settings(self):
        valuation = depreciated_asset_value([_item('1000', 1, date(2023, 6, 15))], date(2024, 6, 15))
        self.assertEqual(valuation.depreciation, Decimal('200'))

    def test_malformed_date_raises_validation_error(self):
        with self.assertRaises(ValidationError):
            depreciated_asset_value([], 'not-a-date')
        with self.assertRaises(ValidationError):
            depreciated_asset_value([_item('10', 1, '2024-13-01')], date(2024, 1, 1))


class ClassHelpersTests(TestCase):
    def test_roll_sort_key_puts_numeric_rolls_first(self):
        students = [
            _student(1, 'Zara', roll='10'),
            _student(2, 'Mohan', roll=''),
            _student(3, 'Amit', roll='2'),
            _student(4, 'Bina', roll='X1'),
        ]
        self.assertEqual([s.id for s in sorted(students, key=roll_sort_key)], [3, 1, 4, 2])

    def test_class_options_and_split(self):
        students = [
            _student(1, 'A', '10', 'B'),
            _student(2, 'B', '5', 'A'),
            _student(3, 'C', '5', 'A'),
            _student(4, 'D', '7', 'C', status='LC Issued'),
        ]

        options = class_options(students)

        self.assertEqual(options, ["5 'A'", "10 'B'"])
        self.assertEqual(split_class_label("10 'B'"), ('10', 'B'))
        self.assertEqual(split_class_label('Nursery'), ('Nursery', ''))


class BalanceSheetTests(TestCase):
    def test_period_bounds(self):
        self.assertEqual(period_bounds('yearly', 2024), (date(2024, 1, 1), date(2024, 12, 31)))
        self.assertEqual(period_bounds('monthly', 2024, 2), (date(2024, 2, 1), date(2024, 2, 29)))
        with self.assertRaises(ValidationError):
            period_bounds('monthly', 2024, 13)
        with self.assertRaises(ValidationError):
            period_bounds('monthly', 2024)
        with self.assertRaises(ValidationError):
            period_bounds('weekly', 2024)

    def test_net_profit(self):
        start, end = period_bounds('yearly', 2024)
        sheet = compute_balance_sheet(
            start=start,
            end=end,
            fee_payments=[
                FeePayment(amount=Decimal('60000'), date=date(2024, 4, 10)),
                FeePayment(amount=Decimal('40000'), date=date(2024, 12, 31)),
                FeePayment(amount=Decimal('9999'), date=date(2025, 1, 1)),
            ],
            expenses=[Expense(amount=Decimal('40000'), date=date(2024, 1, 1))],
            dead_stock=[_item('20000', 1, date(2024, 12, 31))],
        )

        self.assertEqual(sheet.total_fees_collected, Decimal('100000'))
        self.assertEqual(sheet.total_expenses, Decimal('40000'))
        self.assertEqual(sheet.asset.net_value, Decimal('20000'))
        self.assertEqual(sheet.net_result, Decimal('80000'))
        self.assertEqual(sheet.label, 'Net Profit')
        self.assertEqual(sheet.magnitude, Decimal('80000'))

    def test_net_loss_reports_magnitude(self):
        start, end = period_bounds('monthly', 2024, 3)
        sheet = compute_balance_sheet(
            start=start,
            end=end,
            fee_payments=[],
            expenses=[Expense(amount=Decimal('1500'), date=date(2024, 3, 5))],
            dead_stock=[],
        )
        self.assertEqual(sheet.net_result, Decimal('-1500'))
        self.assertEqual(sheet.label, 'Net Loss')
        self.assertEqual(sheet.magnitude, Decimal('1500'))

        table = build_balance_sheet_table(sheet)
        self.assertEqual(table.footer, ('Net Loss', Decimal('1500')))
        self.assertEqual(table.rows[2][1], Decimal('-1500'))


class TableBuilderTests(TestCase):
    def test_due_fees_table(self):
        students = [
            _student(1, 'Asha', total='3000', paid='1000'),
            _student(2, 'Bala', total='500', paid='500'),
        ]
        table = build_due_fees_table(students)

        self.assertEqual(
            table.headers,
            ['Adm. No', 'Student Name', 'Class', 'Total Fees', 'Fees Paid', 'Pending Amount'],
        )
        self.assertEqual(table.rows, (('00001', 'Asha', "5 'A'", Decimal('3000'), Decimal('1000'), Decimal('2000')),))
        self.assertEqual(table.footer[-1], Decimal('2000'))
        self.assertEqual(table.subtitle, 'All Classes')

    def test_fee_status_table_clamps_row_pending_only(self):
        students = [
            _student(1, 'Zara', '6', total='100', paid='150', roll='1'),
            _student(2, 'Asha', '5', total='300', paid='0', roll='2'),
            _student(3, 'Bala', '5', total='300', paid='100', roll='1'),
        ]
        table = build_fee_status_table(students)

        self.assertEqual([row[1] for row in table.rows], ['Bala', 'Asha', 'Zara'])
        self.assertEqual(table.rows[2][5], Decimal('0'))
        self.assertEqual(table.rows[2][6], 'Paid')
        self.assertEqual(table.footer[5], Decimal('450'))

    def test_attendance_grid_has_one_column_per_day(self):
        students = [_student(1, 'Asha', roll='1'), _student(2, 'Bala', roll='2')]
        records = [
            _mark(1, date(2024, 4, 1), 'present'),
            _mark(1, date(2024, 4, 2), 'absent'),
            _mark(2, date(2024, 4, 30), 'present'),
            _mark(2, date(2024, 5, 1), 'absent'),
        ]

        table = build_student_attendance_grid(students, records, 2024, 4, "5 'A'")

        self.assertEqual(len(table.columns), 2 + 30 + 2)
        self.assertEqual(table.headers[:3], ['Roll', 'Name', '1'])
        self.assertEqual(table.headers[-2:], ['Total P', 'Total A'])
        self.assertEqual(table.rows[0][2:5], ('P', 'A', '-'))
        self.assertEqual(table.rows[0][-2:], (1, 1))
        self.assertEqual(table.rows[1][-3:], ('P', 1, 0))
        self.assertEqual(table.orientation, 'landscape')

    def test_attendance_grid_with_two_marks(self):
        students = [_student(1, 'Asha', roll='1'), _student(2, 'Bala', roll='2'), _student(3, 'Chetan', roll='3')]
        records = [_mark(1, date(2024, 6, 5), 'present'), _mark(1, date(2024, 6, 10), 'absent')]

        table = build_student_attendance_grid(students, records, 2024, 6, "5 'A'")

        day_cells = table.rows[0][2:-2]
        self.assertEqual(len(day_cells), 30)
        self.assertEqual((day_cells[4], day_cells[9]), ('P', 'A'))
        self.assertEqual([cell for index, cell in enumerate(day_cells) if index not in (4, 9)], ['-'] * 28)
        self.assertEqual(table.rows[0][-2:], (1, 1))
        for row in table.rows[1:]:
            self.assertEqual(row[2:], ('-',) * 30 + (0, 0))

    def test_muster_for_february(self):
        teachers = [Teacher(id=1, name='Meera', subject='Maths')]
        table = build_teacher_muster(teachers, [_mark(1, date(2024, 2, 29), 'absent')], 2024, 2)

        self.assertEqual(len(table.columns), 2 + 29 + 2)
        self.assertEqual(table.headers[:2], ['Teacher Name', 'Subject'])
        self.assertEqual(table.rows[0][-3:], ('A', 0, 1))

    def test_class_register(self):
        students = [
            _student(1, 'Zara', roll='2'),
            _student(2, 'Asha', roll=''),
            _student(3, 'Bala', roll='1'),
            _student(4, 'Chetan', roll='3', status='LC Issued'),
            _student(5, 'Dev', section='B', roll='1'),
        ]
        table = build_class_register_table(students, "5 'A'", '2024-25')

        self.assertEqual([row[2] for row in table.rows], ['Bala', 'Zara', 'Asha'])
        self.assertEqual(table.rows[2][0], 'N/A')
        self.assertEqual(table.subtitle, "Class: 5 'A' | Session: 2024-25")

        with self.assertRaises(ValidationError):
            build_class_register_table(students, "9 'Z'")

    def test_expense_table_keeps_month_rows_in_date_order(self):
        expenses = [
            Expense(id=1, date=date(2024, 3, 31), category='Rent', description='March rent', amount=Decimal('12000')),
            Expense(id=2, date=date(2024, 2, 29), category='Repairs', description='Leap day', amount=Decimal('999')),
            Expense(id=3, date=date(2024, 3, 15), category='Stationery', description='Chalk', amount=Decimal('250.50')),
            Expense(id=4, date=date(2024, 4, 1), category='Rent', description='April rent', amount=Decimal('12000')),
            Expense(id=5, date=date(2024, 3, 1), category='Electricity', description='Bill', amount=Decimal('1800.25')),
        ]

        table = build_expense_table(expenses, date(2024, 3, 1), date(2024, 3, 31), subtitle='Month: March 2024')

        self.assertEqual(table.headers, ['Date', 'Category', 'Description', 'Amount'])
        self.assertEqual(
            table.rows,
            (
                (date(2024, 3, 1), 'Electricity', 'Bill', Decimal('1800.25')),
                (date(2024, 3, 15), 'Stationery', 'Chalk', Decimal('250.50')),
                (date(2024, 3, 31), 'Rent', 'March rent', Decimal('12000')),
            ),
        )
        self.assertEqual(table.footer[0], 'Total Expenses')
        self.assertEqual(table.footer[-1], Decimal('14050.75'))

    def test_expense_report_uses_calendar_month(self):
        snapshot = LedgerSnapshot(expenses=(
            Expense(id=1, date=date(2024, 2, 29), category='Repairs', description='', amount=Decimal('500')),
            Expense(id=2, date=date(2024, 2, 1), category='Rent', description='', amount=Decimal('8000')),
            Expense(id=3, date=date(2024, 3, 1), category='Rent', description='', amount=Decimal('8000')),
        ))

        table = expense_report(year=2024, month=2, snapshot=snapshot)

        self.assertEqual(table.subtitle, 'Month: February 2024')
        self.assertEqual([row[0] for row in table.rows], [date(2024, 2, 1), date(2024, 2, 29)])
        self.assertEqual(table.footer[-1], Decimal('8500'))

    def test_expense_table_for_empty_month(self):
        table = build_expense_table([], date(2024, 3, 1), date(2024, 3, 31))

        self.assertEqual(table.rows, ())
        self.assertEqual(table.footer[-1], Decimal('0'))

    def test_dead_stock_table(self):
        items = [_item('100', 3, date(2024, 5, 1)), _item('50', 2, date(2023, 1, 1))]
        table = build_dead_stock_table(items, as_of=date(2024, 6, 1))

        self.assertEqual(table.rows[0][2], date(2023, 1, 1))
        self.assertEqual(table.rows[1][5], Decimal('300'))
        self.assertEqual(table.footer[5], Decimal('400'))


class RendererTests(TestCase):
    def setUp(self):
        self.table = build_due_fees_table([_student(1, 'Asha', total='1500000', paid='250000.5')])

    def test_amounts_use_indian_grouping(self):
        self.assertEqual(format_amount(Decimal('1234567.5')), '12,34,567.50')
        self.assertEqual(format_amount(Decimal('999')), '999.00')
        self.assertEqual(format_amount(Decimal('100000'), currency=True), '₹1,00,000.00')

    def test_accounting_column_shows_negative_in_parentheses(self):
        column = Column('amount', 'Amount', numeric=True, accounting=True)
        self.assertEqual(format_cell(Decimal('-40000'), column), '(40,000.00)')
        self.assertEqual(format_cell(date(2024, 3, 9)), '09-03-2024')
        self.assertEqual(format_cell(None), '')

    def test_render_csv(self):
        content = render_csv(self.table).decode('utf-8').splitlines()

        self.assertEqual(content[0], 'Adm. No,Student Name,Class,Total Fees,Fees Paid,Pending Amount')
        self.assertIn('"15,00,000.00"', content[1])
        self.assertTrue(content[-1].startswith('Total Pending Amount'))

    def test_render_pdf(self):
        self.assertTrue(render_pdf(self.table).startswith(b'%PDF'))

    def test_render_pdf_paginates_long_tables(self):
        students = [_student(pk, f'Student {pk}', total='10') for pk in range(1, 120)]
        self.assertTrue(render_pdf(build_due_fees_table(students)).startswith(b'%PDF'))

    def test_notes_move_to_new_page_when_last_page_is_full(self):
        def table_with(row_count):
            return ReportTable(
                title='Balance Sheet',
                subtitle='Year 2024',
                columns=(Column('item', 'Item'), Column('amount', 'Amount', numeric=True)),
                rows=tuple((f'Row {n}', Decimal('1')) for n in range(row_count)),
                footer=('Total', Decimal(row_count)),
                notes=(('Net Profit', Decimal('100')), ('Cash in Hand', Decimal('50'))),
            )

        rows_per_page = (PAGE_LONG_SIDE - TITLE_HEIGHT - HEADER_HEIGHT - 2 * MARGIN) // ROW_HEIGHT
        self.assertEqual(len(render_pdf_pages(table_with(rows_per_page - 4))), 1)
        self.assertEqual(len(render_pdf_pages(table_with(rows_per_page - 1))), 2)
        self.assertEqual(len(render_pdf_pages(replace(table_with(rows_per_page - 1), notes=()))), 1)

    def test_render_html(self):
        profile = SimpleNamespace(name='Sunrise School', address='Pune', logo_url='')
        html = render_html(self.table, profile)

        self.assertIn('Sunrise School', html)
        self.assertIn('Due Fees Report', html)
        self.assertIn('15,00,000.00', html)


class SnapshotTests(TestCase):
    def test_loads_requested_collections(self):
        Student.objects.create(admission_number='00002', name='Bala')
        Student.objects.create(admission_number='00001', name='Asha')

        snapshot = load_snapshot(include=('students', 'profile'))

        self.assertEqual([s.name for s in snapshot.students], ['Asha', 'Bala'])
        self.assertEqual(snapshot.expenses, ())
        self.assertIsNotNone(snapshot.profile)

    def test_unknown_collection(self):
        with self.assertRaises(ValidationError):
            load_snapshot(include=('payroll',))

    def test_database_errors_become_upstream_unavailable(self):
        with mock.patch.object(Student.objects, 'order_by', side_effect=DatabaseError('down')):
            with self.assertRaises(UpstreamUnavailable):
                load_snapshot(include=('students',))

    def test_profile_read_failure_becomes_upstream_unavailable(self):
        with mock.patch.object(SchoolProfile.objects, 'order_by', side_effect=DatabaseError('down')):
            with self.assertRaises(UpstreamUnavailable) as ctx:
                load_snapshot(include=('profile',))
        self.assertEqual(ctx.exception.collection, 'school profile')

    def test_load_attendance_range_is_inclusive(self):
        teacher = Teacher.objects.create(name='Meera')
        for day in (1, 15, 30):
            TeacherAttendance.objects.create(teacher=teacher, date=date(2024, 4, day), status='present')
        TeacherAttendance.objects.create(teacher=teacher, date=date(2024, 5, 1), status='absent')

        records = load_attendance(TeacherAttendance, date(2024, 4, 1), date(2024, 4, 30))

        self.assertEqual([record.date.day for record in records], [1, 15, 30])


class ReportViewTests(TestCase):
    def setUp(self):
        user_model = get_user_model()
        self.accountant = user_model.objects.create_user(
            username='report_accountant',
            password='pass12345',
            role='accountant',
        )
        self.teacher_user = user_model.objects.create_user(
            username='report_teacher',
            password='pass12345',
            role='teacher',
        )
        self.student = Student.objects.create(
            admission_number='00001',
            name='Asha',
            class_name='5',
            section='A',
            roll_number='1',
            total_fees=Decimal('5000'),
            fees_paid=Decimal('1000'),
        )
        Student.objects.create(admission_number='00002', name='Bala', class_name='5', section='A', roll_number='2')
        Teacher.objects.create(name='Meera', subject='Maths')
        StudentAttendance.objects.create(
            student=self.student,
            date=timezone.localdate(),
            status='present',
            class_label="5 'A'",
        )

    def test_due_fees_report_formats(self):
        self.client.login(username='report_accountant', password='pass12345')
        url = reverse('report_due_fees')

        html = self.client.get(url, {'class_name': 'all'})
        csv_response = self.client.get(url, {'class_name': '5', 'format': 'csv'})
        pdf_response = self.client.get(url, {'format': 'pdf'})

        self.assertEqual(html.status_code, 200)
        self.assertContains(html, 'Due Fees Report')
        self.assertContains(html, '4,000.00')
        self.assertEqual(csv_response['Content-Type'], 'text/csv')
        self.assertIn('attachment;', csv_response['Content-Disposition'])
        self.assertEqual(pdf_response['Content-Type'], 'application/pdf')
        self.assertTrue(AuditLog.objects.filter(action='reports.generated', user=self.accountant).exists())

    def test_teacher_cannot_open_fee_reports(self):
        self.client.login(username='report_teacher', password='pass12345')
        response = self.client.get(reverse('report_due_fees'))
        self.assertEqual(response.status_code, 403)

    def test_balance_sheet_requires_month_for_monthly_mode(self):
        self.client.login(username='report_accountant', password='pass12345')
        year = timezone.localdate().year
        response = self.client.get(reverse('report_balance_sheet'), {'mode': 'monthly', 'year': year})
        self.assertRedirects(response, reverse('report_index'))

        response = self.client.get(reverse('report_balance_sheet'), {'mode': 'yearly', 'year': year})
        self.assertContains(response, 'Balance Sheet')

    def test_dashboard_summary(self):
        self.client.login(username='report_teacher', password='pass12345')
        response = self.client.get(reverse('dashboard'))

        self.assertEqual(response.status_code, 200)
        summary = response.context['summary']
        self.assertEqual(summary.total_students, 2)
        self.assertEqual(summary.total_teachers, 1)
        self.assertEqual(summary.attendance.present, 1)
        self.assertEqual(summary.fees.pending, Decimal('4000'))

    def test_report_index(self):
        self.client.login(username='report_accountant', password='pass12345')
        response = self.client.get(reverse('report_index'))
        self.assertContains(response, 'Class Register')
