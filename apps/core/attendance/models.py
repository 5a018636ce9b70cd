from django.conf import settings
from django.db import models

from apps.core.hr.models import Teacher
from apps.core.students.models import Student


class AttendanceRecord(models.Model):
    STATUS_PRESENT = 'present'
    STATUS_ABSENT = 'absent'
    STATUS_CHOICES = (
        (STATUS_PRESENT, 'Present'),
        (STATUS_ABSENT, 'Absent'),
    )

    date = models.DateField()
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_PRESENT)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class StudentAttendance(AttendanceRecord):
    student = models.ForeignKey(
        Student,
        on_delete=models.CASCADE,
        related_name='attendance_records',
    )
    class_label = models.CharField(max_length=70, blank=True)
    marked_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='marked_student_attendance',
    )

    class Meta:
        ordering = ['-date', 'student_id']
        constraints = [
            models.UniqueConstraint(
                fields=['student', 'date'],
                name='unique_student_attendance_per_date',
            ),
        ]
        indexes = [
            models.Index(fields=['date', 'status'], name='att_student_date_status_idx'),
            models.Index(fields=['class_label', 'date'], name='att_student_class_date_idx'),
        ]

    @property
    def person_id(self):
        return self.student_id

    def __str__(self):
        return f"{self.student_id} {self.date} {self.status}"


class TeacherAttendance(AttendanceRecord):
    teacher = models.ForeignKey(
        Teacher,
        on_delete=models.CASCADE,
        related_name='attendance_records',
    )
    marked_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='marked_teacher_attendance',
    )

    class Meta:
        ordering = ['-date', 'teacher_id']
        constraints = [
            models.UniqueConstraint(
                fields=['teacher', 'date'],
                name='unique_teacher_attendance_per_date',
            ),
        ]
        indexes = [
            models.Index(fields=['date', 'status'], name='att_teacher_date_status_idx'),
        ]

    @property
    def person_id(self):
        return self.teacher_id

    def __str__(self):
        return f"{self.teacher_id} {self.date} {self.status}"
