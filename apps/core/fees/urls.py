from django.urls import path

from .views import fee_collect, fee_overview, fee_receipt_pdf, fee_reminder

urlpatterns = [
    path('', fee_overview, name='fee_overview'),
    path('students/<int:pk>/collect/', fee_collect, name='fee_collect'),
    path('students/<int:pk>/reminder/', fee_reminder, name='fee_reminder'),
    path('receipts/<int:payment_id>/pdf/', fee_receipt_pdf, name='fee_receipt_pdf'),
]
