from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as DjangoUserAdmin

from .models import AuditLog, User


@admin.register(User)
class UserAdmin(DjangoUserAdmin):
    list_display = ('username', 'role', 'is_staff', 'is_active')
    list_filter = ('role', 'is_staff')
    fieldsets = DjangoUserAdmin.fieldsets + (('School', {'fields': ('role',)}),)


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ('created_at', 'action', 'user', 'target_model', 'target_id')
    list_filter = ('action', 'method', 'created_at')
    search_fields = ('details', 'path', 'target_model', 'target_id', 'user__username')
