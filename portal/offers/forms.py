from datetime import timedelta

from django import forms
from django.conf import settings
from django.core.validators import FileExtensionValidator
from django.utils import timezone

from .constants import ADDITIONAL_DOCUMENTS, BASE_DOCUMENTS, OfferType, requires_additional_documents

pdf_only = FileExtensionValidator(allowed_extensions=["pdf"], message="Only PDF files are accepted.")


def _key_label(key):
    """Document key as written in upload errors (`id_card` -> `id card`)."""
    return key.replace("_", " ")


def _default_deadline():
    return timezone.localdate() + timedelta(days=settings.OFFER_DEFAULT_DEADLINE_DAYS)


class OfferForm(forms.Form):
    type = forms.ChoiceField(choices=OfferType.choices, initial=OfferType.CANDIDATURE)
    title = forms.CharField(max_length=255)
    reference = forms.CharField(max_length=100)
    description = forms.CharField(widget=forms.Textarea(attrs={"rows": 4}), required=False)
    country = forms.CharField(max_length=100)
    projet = forms.CharField(label="Project", max_length=255, required=False)
    department = forms.CharField(max_length=100)
    deadline = forms.DateField(widget=forms.DateInput(attrs={"type": "date"}), initial=_default_deadline)
    tdr = forms.FileField(label="TDR (PDF)", required=False, validators=[pdf_only])

    @classmethod
    def initial_from_offer(cls, offer) -> dict:
        return {
            "type": offer.offer_type,
            "title": offer.title,
            "reference": offer.reference,
            "description": offer.description,
            "country": offer.country,
            "projet": offer.project,
            "department": offer.department,
            "deadline": offer.deadline,
        }

    def api_payload(self) -> dict:
        """Form fields as the backend's multipart fields (the TDR goes separately)."""
        data = {k: v for k, v in self.cleaned_data.items() if k != "tdr" and v is not None}
        data["deadline"] = self.cleaned_data["deadline"].isoformat()
        return data


class ApplicationForm(forms.Form):
    full_name = forms.CharField(max_length=200)
    email = forms.EmailField()
    tel_number = forms.CharField(label="Phone number", max_length=50)
    applicant_country = forms.CharField(label="Country", max_length=100)

    def __init__(self, *args, offer_type: str = OfferType.CANDIDATURE, **kwargs):
        super().__init__(*args, **kwargs)
        self.offer_type = offer_type

        for key, label in BASE_DOCUMENTS:
            self.fields[key] = forms.FileField(
                label=f"{label[0].upper()}{label[1:]} (PDF)",
                validators=[pdf_only],
                error_messages={"required": f"Please upload a {_key_label(key)} PDF"},
            )

        if requires_additional_documents(offer_type):
            for key, label in ADDITIONAL_DOCUMENTS:
                self.fields[key] = forms.FileField(
                    label=f"{label[0].upper()}{label[1:]} (PDF)",
                    validators=[pdf_only],
                    error_messages={"required": f"Please upload a {_key_label(key)} PDF for this offer type"},
                )

    @property
    def document_keys(self) -> list[str]:
        keys = [key for key, _ in BASE_DOCUMENTS]
        if requires_additional_documents(self.offer_type):
            keys += [key for key, _ in ADDITIONAL_DOCUMENTS]
        return keys

    def identity_payload(self) -> dict:
        return {
            "full_name": self.cleaned_data["full_name"],
            "email": self.cleaned_data["email"],
            "tel_number": self.cleaned_data["tel_number"],
            "applicant_country": self.cleaned_data["applicant_country"],
        }

    def documents(self) -> dict:
        return {key: self.cleaned_data.get(key) for key in self.document_keys}

    def document_fields(self):
        return [self[key] for key in self.document_keys]

    def identity_fields(self):
        return [self[name] for name in ("full_name", "email", "tel_number", "applicant_country")]
