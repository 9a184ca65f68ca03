import logging

from django.contrib import messages
from django.http import Http404
from django.shortcuts import render, redirect
from django.utils.http import url_has_allowed_host_and_scheme
from django.views.decorators.http import require_http_methods, require_POST

from portal.api_client import APIError, PortalAPIClient

from .decorators import admin_required
from .forms import LoginForm, UserForm
from .tokens import clear_token, decode_token, store_token

logger = logging.getLogger(__name__)


# -----------------------------
# Login / Logout
# -----------------------------
@require_http_methods(["GET", "POST"])
def user_login(request):
    if request.portal_user is not None:
        return redirect(request.portal_user.dashboard_url_name)

    next_url = request.POST.get("next") or request.GET.get("next")
    if next_url and not url_has_allowed_host_and_scheme(next_url, allowed_hosts={request.get_host()}):
        next_url = None

    if request.method == "POST":
        form = LoginForm(request.POST)
        if form.is_valid():
            email = form.cleaned_data["email"]
            try:
                data = PortalAPIClient().login(email, form.cleaned_data["password"])
            except APIError as exc:
                logger.info("Login failed: email=%s error=%s", email, exc.message)
                form.add_error(None, exc.message)
            else:
                user = decode_token(data["token"])
                if user is None:
                    logger.warning("Login returned an unreadable token: email=%s", email)
                    form.add_error(None, "Login failed")
                else:
                    store_token(request, data["token"])
                    logger.info("Login success: email=%s role=%s", user.email, user.role)
                    messages.success(request, f"Welcome, {user.name or user.email}!")
                    return redirect(next_url or user.dashboard_url_name)
    else:
        form = LoginForm()

    return render(request, "accounts/login.html", {"form": form, "next": next_url})


@require_POST
def user_logout(request):
    user = request.portal_user
    clear_token(request)
    if user:
        logger.info("Logout: email=%s", user.email)
    messages.info(request, "Logged out successfully.")
    return redirect("home")


# -----------------------------
# Admin: users + logs
# -----------------------------
@admin_required
def admin_dashboard(request):
    tab = request.GET.get("tab") or "users"
    if tab not in {"users", "logs"}:
        tab = "users"

    api = PortalAPIClient.for_request(request)
    users, logs = [], []
    try:
        users = api.list_users()
    except APIError as exc:
        messages.error(request, exc.message)
    try:
        logs = api.list_logs()
    except APIError as exc:
        messages.error(request, exc.message)

    return render(
        request,
        "accounts/admin_dashboard.html",
        {
            "tab": tab,
            "users": users,
            "logs": logs,
            "admin_count": sum(1 for u in users if u.is_admin),
            "hr_count": sum(1 for u in users if u.is_hr),
        },
    )


def _find_user(api, user_id):
    for user in api.list_users():
        if user.id == user_id:
            return user
    raise Http404("User not found")


@admin_required
def user_create(request):
    if request.method == "POST":
        form = UserForm(request.POST)
        if form.is_valid():
            try:
                PortalAPIClient.for_request(request).save_user(form.api_payload())
            except APIError as exc:
                form.add_error(None, exc.message)
            else:
                logger.info("User created: email=%s by=%s", form.cleaned_data["email"], request.portal_user.email)
                messages.success(request, "User created.")
                return redirect("admin_dashboard")
    else:
        form = UserForm()
    return render(request, "accounts/user_form.html", {"form": form})


@admin_required
def user_edit(request, user_id: int):
    api = PortalAPIClient.for_request(request)
    try:
        user = _find_user(api, user_id)
    except APIError as exc:
        messages.error(request, exc.message)
        return redirect("admin_dashboard")

    if request.method == "POST":
        form = UserForm(request.POST, user=user)
        if form.is_valid():
            try:
                api.save_user(form.api_payload(), user_id=user.id)
            except APIError as exc:
                form.add_error(None, exc.message)
            else:
                logger.info("User updated: user_id=%s by=%s", user.id, request.portal_user.email)
                messages.success(request, "User updated.")
                return redirect("admin_dashboard")
    else:
        form = UserForm(user=user)
    return render(request, "accounts/user_form.html", {"form": form, "edited_user": user})


@admin_required
@require_POST
def user_delete(request, user_id: int):
    try:
        PortalAPIClient.for_request(request).delete_user(user_id)
    except APIError as exc:
        messages.error(request, exc.message)
    else:
        logger.info("User deleted: user_id=%s by=%s", user_id, request.portal_user.email)
        messages.info(request, "User deleted.")
    return redirect("admin_dashboard")
