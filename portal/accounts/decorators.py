from functools import wraps
from urllib.parse import urlencode

from django.conf import settings
from django.contrib import messages
from django.shortcuts import redirect, resolve_url

from .models import Role


def login_required(view_func):
    """Send anonymous visitors to the login page, remembering where they were going."""
    @wraps(view_func)
    def _wrapped(request, *args, **kwargs):
        if getattr(request, "portal_user", None) is None:
            login_url = resolve_url(settings.LOGIN_URL)
            return redirect(f"{login_url}?{urlencode({'next': request.get_full_path()})}")
        return view_func(request, *args, **kwargs)
    return _wrapped


def role_required(role: str):
    """Ensure logged-in user has the given role."""
    def decorator(view_func):
        @login_required
        @wraps(view_func)
        def _wrapped(request, *args, **kwargs):
            if request.portal_user.role != role:
                messages.error(request, "Access denied.")
                return redirect("home")
            return view_func(request, *args, **kwargs)
        return _wrapped
    return decorator

hr_required = role_required(Role.HR)
admin_required = role_required(Role.ADMIN)
