from django.contrib import admin

from .models import Student


@admin.register(Student)
class StudentAdmin(admin.ModelAdmin):
    list_display = (
        'admission_number',
        'name',
        'class_name',
        'section',
        'roll_number',
        'total_fees',
        'fees_paid',
        'status',
    )
    list_filter = ('class_name', 'section', 'status')
    search_fields = ('admission_number', 'name', 'father_name', 'mobile')
    readonly_fields = ('fees_paid',)
