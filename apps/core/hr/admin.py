from django.contrib import admin

from .models import Teacher


@admin.register(Teacher)
class TeacherAdmin(admin.ModelAdmin):
    list_display = ('name', 'subject', 'mobile', 'status')
    list_filter = ('status', 'subject')
    search_fields = ('name', 'mobile')
