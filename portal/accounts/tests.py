import time
from unittest import mock

import jwt
from django.conf import settings
from django.test import SimpleTestCase
from django.urls import reverse

from portal.api_client import APIError, PortalAPIClient

from .forms import UserForm
from .models import LogEntry, Role, User
from .tokens import decode_token


def make_token(role="rh", **claims):
    payload = {"id": 3, "name": "Fatou Sall", "email": "fatou@example.com", "role": role}
    payload.update(claims)
    return jwt.encode(payload, "backend-secret", algorithm="HS256")


class TokenTests(SimpleTestCase):
    def test_decodes_user_without_checking_signature(self):
        user = decode_token(make_token(role="admin"))
        self.assertEqual(user, User(id=3, name="Fatou Sall", email="fatou@example.com", role="admin"))
        self.assertTrue(user.is_admin)
        self.assertEqual(user.dashboard_url_name, "admin_dashboard")

    def test_expired_token_is_rejected(self):
        self.assertIsNone(decode_token(make_token(exp=int(time.time()) - 60)))

    def test_future_expiry_is_accepted(self):
        self.assertIsNotNone(decode_token(make_token(exp=int(time.time()) + 3600)))

    def test_malformed_or_roleless_tokens_are_rejected(self):
        self.assertIsNone(decode_token("not-a-jwt"))
        self.assertIsNone(decode_token(""))
        self.assertIsNone(decode_token(make_token(role="candidate")))


class SessionRestoreTests(SimpleTestCase):
    def _store(self, token):
        session = self.client.session
        session[settings.SESSION_TOKEN_KEY] = token
        session.save()
        self.client.cookies[settings.SESSION_COOKIE_NAME] = session.session_key

    def test_valid_token_restores_role(self):
        self._store(make_token(role="rh"))
        resp = self.client.get(reverse("about"))
        self.assertEqual(resp.wsgi_request.portal_user.role, Role.HR)
        self.assertContains(resp, "Fatou Sall")

    def test_expired_token_is_discarded(self):
        self._store(make_token(exp=int(time.time()) - 60))
        resp = self.client.get(reverse("about"))
        self.assertIsNone(resp.wsgi_request.portal_user)
        self.assertNotIn(settings.SESSION_TOKEN_KEY, self.client.session)

    def test_malformed_token_is_discarded(self):
        self._store("garbage")
        resp = self.client.get(reverse("about"))
        self.assertIsNone(resp.wsgi_request.portal_user)
        self.assertNotIn(settings.SESSION_TOKEN_KEY, self.client.session)


class LoginViewTests(SimpleTestCase):
    def test_login_page_renders(self):
        resp = self.client.get(reverse("login"))
        self.assertEqual(resp.status_code, 200)
        self.assertContains(resp, "Login to OSS Platform")

    def test_successful_login_stores_token_and_redirects(self):
        token = make_token(role="rh")
        with mock.patch.object(PortalAPIClient, "login", return_value={"token": token, "user": {}}) as login:
            resp = self.client.post(reverse("login"), {"email": "fatou@example.com", "password": "secret1"})
        login.assert_called_once_with("fatou@example.com", "secret1")
        self.assertRedirects(resp, reverse("hr_dashboard"), fetch_redirect_response=False)
        self.assertEqual(self.client.session[settings.SESSION_TOKEN_KEY], token)

    def test_admin_login_goes_to_admin_dashboard(self):
        with mock.patch.object(PortalAPIClient, "login", return_value={"token": make_token(role="admin")}):
            resp = self.client.post(reverse("login"), {"email": "fatou@example.com", "password": "secret1"})
        self.assertRedirects(resp, reverse("admin_dashboard"), fetch_redirect_response=False)

    def test_login_honours_next(self):
        with mock.patch.object(PortalAPIClient, "login", return_value={"token": make_token(role="rh")}):
            resp = self.client.post(
                reverse("login"),
                {"email": "fatou@example.com", "password": "secret1", "next": "/hr-dashboard/?tab=applications"},
            )
        self.assertRedirects(resp, "/hr-dashboard/?tab=applications", fetch_redirect_response=False)

    def test_offsite_next_is_ignored(self):
        with mock.patch.object(PortalAPIClient, "login", return_value={"token": make_token(role="rh")}):
            resp = self.client.post(
                reverse("login"),
                {"email": "fatou@example.com", "password": "secret1", "next": "https://evil.example.com/"},
            )
        self.assertRedirects(resp, reverse("hr_dashboard"), fetch_redirect_response=False)

    def test_backend_error_is_shown(self):
        with mock.patch.object(PortalAPIClient, "login", side_effect=APIError("Invalid credentials", 401)):
            resp = self.client.post(reverse("login"), {"email": "fatou@example.com", "password": "wrong!"})
        self.assertEqual(resp.status_code, 200)
        self.assertContains(resp, "Invalid credentials")
        self.assertNotIn(settings.SESSION_TOKEN_KEY, self.client.session)

    def test_unreadable_token_fails_login(self):
        with mock.patch.object(PortalAPIClient, "login", return_value={"token": "garbage"}):
            resp = self.client.post(reverse("login"), {"email": "fatou@example.com", "password": "secret1"})
        self.assertContains(resp, "Login failed")

    def test_logout_clears_token(self):
        with mock.patch.object(PortalAPIClient, "login", return_value={"token": make_token(role="rh")}):
            self.client.post(reverse("login"), {"email": "fatou@example.com", "password": "secret1"})
        resp = self.client.post(reverse("logout"))
        self.assertRedirects(resp, reverse("home"), fetch_redirect_response=False)
        self.assertNotIn(settings.SESSION_TOKEN_KEY, self.client.session)

    def test_logout_link_does_not_log_out(self):
        token = make_token(role="rh")
        with mock.patch.object(PortalAPIClient, "login", return_value={"token": token}):
            self.client.post(reverse("login"), {"email": "fatou@example.com", "password": "secret1"})
        resp = self.client.get(reverse("logout"))
        self.assertEqual(resp.status_code, 405)
        self.assertEqual(self.client.session[settings.SESSION_TOKEN_KEY], token)


class AdminDashboardTests(SimpleTestCase):
    users = [
        User(id=1, name="Root Admin", email="root@example.com", role="admin"),
        User(id=5, name="Moussa Ba", email="moussa@example.com", role="rh"),
    ]
    logs = [LogEntry(id=1, message="User Moussa Ba created")]

    def setUp(self):
        for name, value in (("list_users", self.users), ("list_logs", self.logs)):
            patcher = mock.patch.object(PortalAPIClient, name, return_value=value)
            patcher.start()
            self.addCleanup(patcher.stop)

    def _login(self, role):
        with mock.patch.object(PortalAPIClient, "login", return_value={"token": make_token(role=role)}):
            self.client.post(reverse("login"), {"email": "fatou@example.com", "password": "secret1"})

    def test_hr_is_denied(self):
        self._login("rh")
        resp = self.client.get(reverse("admin_dashboard"), follow=False)
        self.assertRedirects(resp, reverse("home"), fetch_redirect_response=False)

    def test_admin_sees_users_and_logs(self):
        self._login("admin")
        resp = self.client.get(reverse("admin_dashboard"))
        self.assertContains(resp, "Moussa Ba")
        self.assertContains(resp, "1 administrators, 1 HR managers")

        resp = self.client.get(reverse("admin_dashboard"), {"tab": "logs"})
        self.assertContains(resp, "User Moussa Ba created")

    def test_create_user(self):
        self._login("admin")
        with mock.patch.object(PortalAPIClient, "save_user") as save_user:
            resp = self.client.post(
                reverse("user_create"),
                {
                    "name": "New Manager",
                    "email": "new@example.com",
                    "role": "rh",
                    "password": "secret1",
                    "confirm_password": "secret1",
                },
            )
        self.assertRedirects(resp, reverse("admin_dashboard"), fetch_redirect_response=False)
        save_user.assert_called_once_with(
            {"name": "New Manager", "email": "new@example.com", "role": "rh", "password": "secret1"}
        )

    def test_edit_without_password_keeps_it(self):
        self._login("admin")
        with mock.patch.object(PortalAPIClient, "save_user") as save_user:
            self.client.post(
                reverse("user_edit", args=[5]),
                {"name": "Moussa Ba", "email": "moussa@example.com", "role": "admin"},
            )
        save_user.assert_called_once_with(
            {"name": "Moussa Ba", "email": "moussa@example.com", "role": "admin", "password": "unchanged"},
            user_id=5,
        )

    def test_edit_unknown_user_is_404(self):
        self._login("admin")
        resp = self.client.get(reverse("user_edit", args=[42]))
        self.assertEqual(resp.status_code, 404)

    def test_delete_user(self):
        self._login("admin")
        with mock.patch.object(PortalAPIClient, "delete_user") as delete_user:
            resp = self.client.post(reverse("user_delete", args=[5]))
        self.assertRedirects(resp, reverse("admin_dashboard"), fetch_redirect_response=False)
        delete_user.assert_called_once_with(5)


class UserFormTests(SimpleTestCase):
    def test_new_user_requires_matching_password(self):
        form = UserForm({"name": "", "email": "bad", "role": "rh", "password": "abc", "confirm_password": "abd"})
        self.assertFalse(form.is_valid())
        self.assertEqual(form.errors["name"], ["Name is required"])
        self.assertEqual(form.errors["email"], ["Invalid email"])
        self.assertEqual(form.errors["password"], ["Min 6 chars"])
        self.assertEqual(form.errors["confirm_password"], ["Passwords must match"])

    def test_new_user_requires_password(self):
        form = UserForm({"name": "A", "email": "a@example.com", "role": "rh"})
        self.assertFalse(form.is_valid())
        self.assertIn("password", form.errors)

    def test_edit_with_new_password_is_validated(self):
        user = User(id=5, name="Moussa Ba", email="moussa@example.com", role="rh")
        form = UserForm(
            {"name": "Moussa Ba", "email": "moussa@example.com", "role": "rh", "password": "abc"},
            user=user,
        )
        self.assertFalse(form.is_valid())
        self.assertIn("password", form.errors)
