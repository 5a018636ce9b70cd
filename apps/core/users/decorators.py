from functools import wraps

from django.shortcuts import redirect, render

from .models import User

ALL_ROLES = frozenset(role for role, _ in User.ROLE_CHOICES)


def _allowed_roles(roles):
    allowed = {roles} if isinstance(roles, str) else set(roles)
    unknown = allowed - ALL_ROLES
    if unknown:
        raise ValueError(f"Unknown roles: {', '.join(sorted(unknown))}")
    return frozenset(allowed)


def role_required(roles):
    """
    Let the view run only for users holding one of `roles`.

    Anonymous users go to the login page; other roles get the 403 page.
    Superusers always pass.
    """
    allowed = _allowed_roles(roles)

    def decorator(view_func):
        @wraps(view_func)
        def wrapper(request, *args, **kwargs):
            user = request.user
            if not user.is_authenticated:
                return redirect('login')

            if not (user.is_superuser or user.role in allowed):
                return render(request, 'forbidden.html', {'allowed_roles': sorted(allowed)}, status=403)

            return view_func(request, *args, **kwargs)

        return wrapper

    return decorator
