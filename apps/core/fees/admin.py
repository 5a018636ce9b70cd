from django.contrib import admin

from .models import FeePayment


@admin.register(FeePayment)
class FeePaymentAdmin(admin.ModelAdmin):
    list_display = ('receipt_number', 'student', 'amount', 'date', 'received_by')
    list_filter = ('date',)
    search_fields = ('receipt_number', 'student__name', 'student__admission_number')
    readonly_fields = ('student', 'amount', 'date', 'receipt_number', 'received_by', 'created_at')

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
