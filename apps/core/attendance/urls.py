from django.urls import path

from .views import attendance_student_mark, attendance_teacher_mark

urlpatterns = [
    path('students/', attendance_student_mark, name='attendance_student_mark'),
    path('teachers/', attendance_teacher_mark, name='attendance_teacher_mark'),
]
