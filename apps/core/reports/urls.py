from django.urls import path

from .views import (
    balance_sheet_report_view,
    class_register_report_view,
    dashboard,
    dead_stock_report_view,
    due_fees_report_view,
    expense_report_view,
    fee_status_report_view,
    muster_report_view,
    report_index,
    student_attendance_report_view,
)

urlpatterns = [
    path('dashboard/', dashboard, name='dashboard'),
    path('reports/', report_index, name='report_index'),
    path('reports/due-fees/', due_fees_report_view, name='report_due_fees'),
    path('reports/fee-status/', fee_status_report_view, name='report_fee_status'),
    path('reports/student-attendance/', student_attendance_report_view, name='report_student_attendance'),
    path('reports/muster/', muster_report_view, name='report_muster'),
    path('reports/expenses/', expense_report_view, name='report_expenses'),
    path('reports/dead-stock/', dead_stock_report_view, name='report_dead_stock'),
    path('reports/balance-sheet/', balance_sheet_report_view, name='report_balance_sheet'),
    path('reports/class-register/', class_register_report_view, name='report_class_register'),
]
