from apps.core.users.models import AuditLog


def _extract_ip(request):
    forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR', '')
    if forwarded_for:
        return forwarded_for.split(',')[0].strip()
    return request.META.get('REMOTE_ADDR')


def log_audit_event(request=None, action='', target=None, details='', user=None):
    """Record a business action. Services call it without a request."""
    try:
        target_model = ''
        target_id = ''

        if target is not None:
            target_model = target.__class__.__name__
            target_id = str(getattr(target, 'pk', ''))

        method = ''
        path = ''
        ip_address = None
        if request is not None:
            if user is None and request.user.is_authenticated:
                user = request.user
            method = request.method
            path = request.path[:255]
            ip_address = _extract_ip(request)

        if user is not None and not getattr(user, 'is_authenticated', False):
            user = None

        return AuditLog.objects.create(
            user=user,
            action=action,
            target_model=target_model,
            target_id=target_id,
            details=details,
            method=method,
            path=path,
            ip_address=ip_address,
        )
    except Exception:
        # Logging must never break business actions.
        return None
