from django.contrib import admin

from .models import StudentAttendance, TeacherAttendance


@admin.register(StudentAttendance)
class StudentAttendanceAdmin(admin.ModelAdmin):
    list_display = ('student', 'date', 'status', 'class_label', 'marked_by')
    list_filter = ('status', 'date', 'class_label')
    search_fields = ('student__name', 'student__admission_number')


@admin.register(TeacherAttendance)
class TeacherAttendanceAdmin(admin.ModelAdmin):
    list_display = ('teacher', 'date', 'status', 'marked_by')
    list_filter = ('status', 'date')
    search_fields = ('teacher__name',)
