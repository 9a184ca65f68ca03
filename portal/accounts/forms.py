from django import forms

from .models import Role

# Sent to the backend when an admin edits a user without typing a new password.
UNCHANGED_PASSWORD = "unchanged"
MIN_PASSWORD_LENGTH = 6


class LoginForm(forms.Form):
    email = forms.EmailField(label="Email Address")
    password = forms.CharField(widget=forms.PasswordInput)


class UserForm(forms.Form):
    name = forms.CharField(label="Full Name", max_length=200, error_messages={"required": "Name is required"})
    email = forms.EmailField(error_messages={"required": "Email is required", "invalid": "Invalid email"})
    role = forms.ChoiceField(choices=Role.choices, initial=Role.HR)
    password = forms.CharField(widget=forms.PasswordInput, required=False, strip=False)
    confirm_password = forms.CharField(
        label="Confirm Password", widget=forms.PasswordInput, required=False, strip=False
    )

    def __init__(self, *args, user=None, **kwargs):
        self.user = user
        if user is not None:
            kwargs.setdefault("initial", {"name": user.name, "email": user.email, "role": user.role})
        super().__init__(*args, **kwargs)
        if user is not None:
            self.fields["password"].help_text = "Leave blank to keep the current password."

    @property
    def is_edit(self) -> bool:
        return self.user is not None

    def clean(self):
        cleaned = super().clean()
        password = cleaned.get("password") or ""
        confirm = cleaned.get("confirm_password") or ""
        if not self.is_edit or password:
            if len(password) < MIN_PASSWORD_LENGTH:
                self.add_error("password", f"Min {MIN_PASSWORD_LENGTH} chars")
            if password != confirm:
                self.add_error("confirm_password", "Passwords must match")
        return cleaned

    def api_payload(self) -> dict:
        password = self.cleaned_data.get("password") or ""
        if not password and self.is_edit:
            password = UNCHANGED_PASSWORD
        return {
            "name": self.cleaned_data["name"],
            "email": self.cleaned_data["email"],
            "role": self.cleaned_data["role"],
            "password": password,
        }
