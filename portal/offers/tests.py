from datetime import timedelta
from io import StringIO
from unittest import mock

import jwt
from django.conf import settings
from django.core.files.uploadedfile import SimpleUploadedFile
from django.core.management import call_command
from django.test import SimpleTestCase
from django.urls import reverse
from django.utils import timezone

from portal.api_client import APIError, PortalAPIClient

from .constants import ADDITIONAL_DOCUMENTS, BASE_DOCUMENTS, offer_type_info
from .filters import OfferFilters, filter_applications, filter_offers
from .forms import ApplicationForm
from .models import Application, Offer


def _offer(offer_id, title, offer_type="candidature", days_left=10, **extra):
    deadline = timezone.localdate() + timedelta(days=days_left)
    data = {
        "id": offer_id,
        "type": offer_type,
        "title": title,
        "description": extra.pop("description", f"{title} description"),
        "country": extra.pop("country", "Senegal"),
        "projet": extra.pop("projet", "Water access"),
        "department": extra.pop("department", "Engineering"),
        "reference": extra.pop("reference", f"REF-{offer_id:03d}"),
        "deadline": deadline.isoformat(),
        "created_at": "2025-01-10T09:30:00Z",
        "tdr_filename": None,
        "tdr_url": None,
    }
    data.update(extra)
    return Offer.from_api(data)


def _application(app_id, full_name, **extra):
    data = {
        "id": app_id,
        "offer_id": 1,
        "full_name": full_name,
        "email": f"{full_name.split()[0].lower()}@example.com",
        "tel_number": "+221 77 000 00 00",
        "applicant_country": "Senegal",
        "created_at": "2025-02-01 10:00:00",
        "offer_title": "Field Engineer",
        "offer_type": "candidature",
        "offer_department": "Engineering",
        "cv_url": f"/uploads/{app_id}/cv.pdf",
        "cv_filename": "cv.pdf",
    }
    data.update(extra)
    return Application.from_api(data)


def _pdf(name):
    return SimpleUploadedFile(name, b"%PDF-1.4 test document", content_type="application/pdf")


def _login_as(client, role="rh"):
    token = jwt.encode(
        {"id": 7, "name": "Awa Diop", "email": "awa@example.com", "role": role},
        "test-secret",
        algorithm="HS256",
    )
    session = client.session
    session[settings.SESSION_TOKEN_KEY] = token
    session.save()
    client.cookies[settings.SESSION_COOKIE_NAME] = session.session_key
    return token


class OfferModelTests(SimpleTestCase):
    def test_from_api_maps_backend_fields(self):
        offer = _offer(3, "Consultant", offer_type="consultation", projet="Solar", tdr_url="/uploads/tdr.pdf")
        self.assertEqual(offer.offer_type, "consultation")
        self.assertEqual(offer.project, "Solar")
        self.assertEqual(offer.tdr_url, "/uploads/tdr.pdf")
        self.assertIsNotNone(offer.created_at)

    def test_past_deadline_is_closed(self):
        today = timezone.localdate()
        self.assertEqual(_offer(1, "Old", days_left=-1).status(today), "closed")
        self.assertEqual(_offer(2, "Today", days_left=0).status(today), "closed")
        self.assertEqual(_offer(3, "Tomorrow", days_left=1).status(today), "ongoing")
        self.assertEqual(_offer(3, "Later", days_left=5).status(today), "ongoing")

    def test_unparseable_deadline_is_ongoing(self):
        offer = _offer(1, "No date", deadline="soon")
        self.assertIsNone(offer.deadline)
        self.assertFalse(offer.is_closed())

    def test_offer_type_info_falls_back_to_raw_value(self):
        self.assertEqual(offer_type_info("appel_d_offre")["name"], "Appel d'Offre")
        self.assertEqual(offer_type_info("internship"), {"name": "internship", "color": "gray"})

    def test_application_collects_attached_documents(self):
        app = _application(
            4,
            "Moussa Ba",
            diplome_url="/uploads/4/diplome.pdf",
            diplome_filename="diplome.pdf",
            offre_financiere_url="/uploads/4/offre.pdf",
        )
        self.assertEqual([d.key for d in app.documents], ["cv", "diplome", "offre_financiere"])
        self.assertEqual(app.document("offre_financiere").filename, "offre_financiere.pdf")
        self.assertIsNone(app.document("id_card"))


class OfferFilterTests(SimpleTestCase):
    def setUp(self):
        self.today = timezone.localdate()
        self.offers = [
            _offer(1, "Field Engineer", "candidature", country="Senegal", department="Engineering"),
            _offer(2, "Audit Consultation", "consultation", country="Mali", department="Finance"),
            _offer(3, "Road Works Tender", "appel_d_offre", country="Senegal", department="Works"),
            _offer(4, "Archived Engineer", "candidature", days_left=-3, country="Mali", department="Engineering"),
        ]

    def _titles(self, offers):
        return [o.title for o in offers]

    def test_filter_by_category_returns_only_that_category(self):
        result = filter_offers(self.offers, offer_type="candidature", today=self.today)
        self.assertTrue(all(o.offer_type == "candidature" for o in result))
        self.assertEqual(self._titles(result), ["Field Engineer", "Archived Engineer"])

    def test_ongoing_status_excludes_closed_offers(self):
        result = filter_offers(self.offers, status="ongoing", today=self.today)
        self.assertNotIn("Archived Engineer", self._titles(result))
        self.assertEqual(len(result), 3)

    def test_closed_status_keeps_only_closed_offers(self):
        result = filter_offers(self.offers, status="closed", today=self.today)
        self.assertEqual(self._titles(result), ["Archived Engineer"])

    def test_offer_closes_on_its_deadline_day(self):
        due_today = _offer(5, "Due Today", days_left=0)
        self.assertEqual(filter_offers([due_today], status="ongoing", today=self.today), [])
        self.assertEqual(filter_offers([due_today], status="closed", today=self.today), [due_today])

    def test_unlisted_offer_type_can_be_filtered(self):
        internship = _offer(6, "Summer Intern", "internship")
        result = filter_offers(self.offers + [internship], offer_type="internship", today=self.today)
        self.assertEqual(self._titles(result), ["Summer Intern"])

    def test_search_is_case_insensitive_on_title_and_description(self):
        self.assertEqual(self._titles(filter_offers(self.offers, search="ENGINEER", today=self.today)),
                         ["Field Engineer", "Archived Engineer"])
        self.assertEqual(self._titles(filter_offers(self.offers, search="tender description", today=self.today)),
                         ["Road Works Tender"])

    def test_predicates_combine(self):
        result = filter_offers(self.offers, country="Senegal", department="Engineering", status="ongoing", today=self.today)
        self.assertEqual(self._titles(result), ["Field Engineer"])

    def test_from_query_defaults_to_ongoing(self):
        self.assertEqual(OfferFilters.from_query({}).status, "ongoing")
        self.assertEqual(OfferFilters.from_query({"status": "all"}).status, "")
        self.assertEqual(OfferFilters.from_query({"status": ""}).status, "")
        self.assertEqual(OfferFilters.from_query({"status": "bogus"}).status, "ongoing")
        self.assertEqual(OfferFilters.from_query({"type": "internship"}).offer_type, "internship")
        self.assertEqual(OfferFilters.from_query({"search": "  field   engineer "}).search, "field engineer")

    def test_filter_applications(self):
        apps = [
            _application(1, "Awa Ndiaye", applicant_country="Senegal"),
            _application(2, "Jean Traore", applicant_country="Mali", offer_type="consultation",
                         offer_title="Audit", offer_department="Finance"),
        ]
        self.assertEqual([a.id for a in filter_applications(apps, search="audit")], [2])
        self.assertEqual([a.id for a in filter_applications(apps, search="AWA@")], [1])
        self.assertEqual([a.id for a in filter_applications(apps, offer_type="consultation")], [2])
        self.assertEqual([a.id for a in filter_applications(apps, department="Engineering")], [1])
        self.assertEqual([a.id for a in filter_applications(apps, applicant_country="Mali")], [2])


class ApplicationFormTests(SimpleTestCase):
    identity = {
        "full_name": "Awa Ndiaye",
        "email": "awa@example.com",
        "tel_number": "+221 77 000 00 00",
        "applicant_country": "Senegal",
    }

    def _files(self, keys):
        return {key: _pdf(f"{key}.pdf") for key in keys}

    def test_missing_cv_is_reported_inline(self):
        files = self._files(["diplome", "id_card", "cover_letter"])
        form = ApplicationForm(self.identity, files, offer_type="candidature")
        self.assertFalse(form.is_valid())
        self.assertEqual(form.errors["cv"], ["Please upload a cv PDF"])

    def test_missing_document_errors_name_the_field_key(self):
        form = ApplicationForm(self.identity, self._files(["cv", "diplome"]), offer_type="candidature")
        self.assertFalse(form.is_valid())
        self.assertEqual(form.errors["id_card"], ["Please upload a id card PDF"])
        self.assertEqual(form.errors["cover_letter"], ["Please upload a cover letter PDF"])

    def test_candidature_needs_only_base_documents(self):
        form = ApplicationForm(self.identity, self._files(k for k, _ in BASE_DOCUMENTS), offer_type="candidature")
        self.assertTrue(form.is_valid(), form.errors)
        self.assertNotIn("offre_financiere", form.fields)

    def test_other_offer_types_require_six_additional_documents(self):
        base_only = self._files(k for k, _ in BASE_DOCUMENTS)
        form = ApplicationForm(self.identity, base_only, offer_type="consultation")
        self.assertFalse(form.is_valid())
        self.assertEqual(sorted(form.errors), sorted(k for k, _ in ADDITIONAL_DOCUMENTS))
        self.assertEqual(
            form.errors["note_methodologique"],
            ["Please upload a note methodologique PDF for this offer type"],
        )

        everything = self._files(k for k, _ in BASE_DOCUMENTS + ADDITIONAL_DOCUMENTS)
        form = ApplicationForm(self.identity, everything, offer_type="consultation")
        self.assertTrue(form.is_valid(), form.errors)
        self.assertEqual(len(form.documents()), 10)

    def test_only_pdf_uploads_are_accepted(self):
        files = self._files(k for k, _ in BASE_DOCUMENTS)
        files["cv"] = SimpleUploadedFile("cv.docx", b"not a pdf", content_type="application/msword")
        form = ApplicationForm(self.identity, files, offer_type="candidature")
        self.assertFalse(form.is_valid())
        self.assertIn("cv", form.errors)


class PublicOfferViewTests(SimpleTestCase):
    def setUp(self):
        self.offers = [
            _offer(1, "Field Engineer", "candidature"),
            _offer(2, "Audit Consultation", "consultation", country="Mali"),
            _offer(3, "Archived Engineer", "candidature", days_left=-3),
        ]
        patcher = mock.patch.object(PortalAPIClient, "list_offers", return_value=self.offers)
        self.list_offers = patcher.start()
        self.addCleanup(patcher.stop)

    def test_home_lists_ongoing_offers_by_default(self):
        resp = self.client.get(reverse("home"))
        self.assertEqual(resp.status_code, 200)
        self.assertContains(resp, "Field Engineer")
        self.assertContains(resp, "Audit Consultation")
        self.assertNotContains(resp, "Archived Engineer")
        self.assertContains(resp, "Showing 2 of 3 opportunities")

    def test_home_filters_by_category(self):
        resp = self.client.get(reverse("home"), {"type": "consultation"})
        self.assertContains(resp, "Audit Consultation")
        self.assertNotContains(resp, "Field Engineer")

    def test_home_offers_backend_types_outside_the_usual_set(self):
        self.offers.append(_offer(4, "Summer Intern", "internship"))
        resp = self.client.get(reverse("home"))
        self.assertContains(resp, 'value="internship"')

        resp = self.client.get(reverse("home"), {"type": "internship"})
        self.assertContains(resp, "Summer Intern")
        self.assertNotContains(resp, "Audit Consultation")

    def test_home_closed_filter(self):
        resp = self.client.get(reverse("home"), {"status": "closed"})
        self.assertContains(resp, "Archived Engineer")
        self.assertContains(resp, "Expired")
        self.assertNotContains(resp, "Audit Consultation")

    def test_home_shows_empty_state(self):
        resp = self.client.get(reverse("home"), {"search": "astronaut"})
        self.assertContains(resp, "No opportunities match your filters")

    def test_home_surfaces_backend_failure(self):
        self.list_offers.side_effect = APIError("Failed to fetch offers")
        resp = self.client.get(reverse("home"))
        self.assertEqual(resp.status_code, 200)
        self.assertContains(resp, "Failed to fetch offers")

    def test_logged_in_user_is_sent_to_dashboard(self):
        _login_as(self.client, role="rh")
        resp = self.client.get(reverse("home"))
        self.assertRedirects(resp, reverse("hr_dashboard"), fetch_redirect_response=False)

    def test_unknown_url_redirects_home(self):
        resp = self.client.get("/no/such/page/")
        self.assertRedirects(resp, reverse("home"), fetch_redirect_response=False)

    def test_offer_detail_hides_apply_when_closed(self):
        with mock.patch.object(PortalAPIClient, "get_offer", return_value=self.offers[2]):
            resp = self.client.get(reverse("offer_detail", args=[3]))
        self.assertContains(resp, "This offer is closed.")
        self.assertNotContains(resp, reverse("apply_offer", args=[3]))

    def test_offer_detail_404(self):
        with mock.patch.object(PortalAPIClient, "get_offer", side_effect=APIError("Offer not found", 404)):
            resp = self.client.get(reverse("offer_detail", args=[99]))
        self.assertEqual(resp.status_code, 404)


class ApplyViewTests(SimpleTestCase):
    identity = ApplicationFormTests.identity

    def setUp(self):
        self.offer = _offer(5, "Audit Consultation", "consultation")
        patcher = mock.patch.object(PortalAPIClient, "get_offer", return_value=self.offer)
        patcher.start()
        self.addCleanup(patcher.stop)

    def test_submission_without_cv_is_blocked(self):
        data = dict(self.identity)
        for key, _ in BASE_DOCUMENTS + ADDITIONAL_DOCUMENTS:
            if key != "cv":
                data[key] = _pdf(f"{key}.pdf")
        with mock.patch.object(PortalAPIClient, "apply") as apply:
            resp = self.client.post(reverse("apply_offer", args=[5]), data)
        self.assertEqual(resp.status_code, 200)
        self.assertContains(resp, "Please upload a cv PDF")
        apply.assert_not_called()

    def test_successful_submission_posts_every_document(self):
        data = dict(self.identity)
        for key, _ in BASE_DOCUMENTS + ADDITIONAL_DOCUMENTS:
            data[key] = _pdf(f"{key}.pdf")
        with mock.patch.object(PortalAPIClient, "apply") as apply:
            resp = self.client.post(reverse("apply_offer", args=[5]), data)
        self.assertRedirects(resp, reverse("offer_detail", args=[5]), fetch_redirect_response=False)
        apply.assert_called_once()
        offer_id, identity, documents = apply.call_args.args
        self.assertEqual(offer_id, 5)
        self.assertEqual(identity, self.identity)
        self.assertEqual(len(documents), 10)

    def test_backend_error_is_shown_on_the_form(self):
        data = dict(self.identity)
        for key, _ in BASE_DOCUMENTS + ADDITIONAL_DOCUMENTS:
            data[key] = _pdf(f"{key}.pdf")
        with mock.patch.object(PortalAPIClient, "apply", side_effect=APIError("Applications are closed")):
            resp = self.client.post(reverse("apply_offer", args=[5]), data)
        self.assertEqual(resp.status_code, 200)
        self.assertContains(resp, "Applications are closed")

    def test_closed_offer_refuses_applications(self):
        self.offer.deadline = timezone.localdate() - timedelta(days=1)
        resp = self.client.get(reverse("apply_offer", args=[5]))
        self.assertRedirects(resp, reverse("offer_detail", args=[5]), fetch_redirect_response=False)

    def test_deadline_day_refuses_applications(self):
        self.offer.deadline = timezone.localdate()
        with mock.patch.object(PortalAPIClient, "apply") as apply:
            resp = self.client.post(reverse("apply_offer", args=[5]), dict(self.identity))
        self.assertRedirects(resp, reverse("offer_detail", args=[5]), fetch_redirect_response=False)
        apply.assert_not_called()


class HRDashboardTests(SimpleTestCase):
    def setUp(self):
        self.offers = [
            _offer(1, "Field Engineer", "candidature"),
            _offer(2, "Audit Consultation", "consultation", country="Mali"),
        ]
        self.apps = [
            _application(10, "Awa Ndiaye"),
            _application(11, "Jean Traore", applicant_country="Mali"),
        ]
        for name, value in (("list_offers", self.offers), ("list_applications", self.apps)):
            patcher = mock.patch.object(PortalAPIClient, name, return_value=value)
            patcher.start()
            self.addCleanup(patcher.stop)

    def test_anonymous_is_sent_to_login(self):
        resp = self.client.get(reverse("hr_dashboard"))
        self.assertEqual(resp.status_code, 302)
        self.assertTrue(resp["Location"].startswith(reverse("login")))

    def test_admin_is_denied(self):
        _login_as(self.client, role="admin")
        resp = self.client.get(reverse("hr_dashboard"))
        self.assertRedirects(resp, reverse("home"), fetch_redirect_response=False)

    def test_hr_sees_offers_and_applications(self):
        _login_as(self.client, role="rh")
        resp = self.client.get(reverse("hr_dashboard"))
        self.assertEqual(resp.status_code, 200)
        self.assertContains(resp, "Field Engineer")
        self.assertContains(resp, "Applications (2)")

        resp = self.client.get(reverse("hr_dashboard"), {"tab": "applications", "applicant_country": "Mali"})
        self.assertContains(resp, "Jean Traore")
        self.assertNotContains(resp, "Awa Ndiaye")

    def test_create_offer_posts_to_backend(self):
        _login_as(self.client, role="rh")
        deadline = (timezone.localdate() + timedelta(days=30)).isoformat()
        with mock.patch.object(PortalAPIClient, "save_offer") as save_offer:
            resp = self.client.post(
                reverse("offer_create"),
                {
                    "type": "manifestation",
                    "title": "Call for interest",
                    "reference": "AMI-2025-01",
                    "description": "Details",
                    "country": "Senegal",
                    "projet": "Water",
                    "department": "Works",
                    "deadline": deadline,
                    "tdr": _pdf("tdr.pdf"),
                },
            )
        self.assertRedirects(resp, reverse("hr_dashboard"), fetch_redirect_response=False)
        payload = save_offer.call_args.args[0]
        self.assertEqual(payload["type"], "manifestation")
        self.assertEqual(payload["deadline"], deadline)
        self.assertNotIn("tdr", payload)
        self.assertIsNotNone(save_offer.call_args.kwargs["tdr"])

    def test_edit_offer_uses_put_target(self):
        _login_as(self.client, role="rh")
        with mock.patch.object(PortalAPIClient, "get_offer", return_value=self.offers[0]):
            resp = self.client.get(reverse("offer_edit", args=[1]))
            self.assertContains(resp, "Field Engineer")
            with mock.patch.object(PortalAPIClient, "save_offer") as save_offer:
                self.client.post(
                    reverse("offer_edit", args=[1]),
                    {
                        "type": "candidature",
                        "title": "Senior Field Engineer",
                        "reference": "REF-001",
                        "country": "Senegal",
                        "department": "Engineering",
                        "deadline": "2030-01-01",
                    },
                )
        self.assertEqual(save_offer.call_args.kwargs["offer_id"], 1)

    def test_delete_requires_post(self):
        _login_as(self.client, role="rh")
        with mock.patch.object(PortalAPIClient, "delete_offer") as delete_offer:
            self.assertEqual(self.client.get(reverse("offer_delete", args=[1])).status_code, 405)
            resp = self.client.post(reverse("offer_delete", args=[1]))
        self.assertRedirects(resp, reverse("hr_dashboard"), fetch_redirect_response=False)
        delete_offer.assert_called_once_with(1)

    def test_application_detail_lists_documents(self):
        _login_as(self.client, role="rh")
        resp = self.client.get(reverse("application_detail", args=[10]))
        self.assertContains(resp, "Awa Ndiaye")
        self.assertContains(resp, reverse("application_document", args=[10, "cv"]))

    def test_application_detail_404(self):
        _login_as(self.client, role="rh")
        resp = self.client.get(reverse("application_detail", args=[999]))
        self.assertEqual(resp.status_code, 404)


class ListOffersCommandTests(SimpleTestCase):
    def test_lists_filtered_offers(self):
        offers = [
            _offer(1, "Field Engineer", "candidature"),
            _offer(2, "Audit Consultation", "consultation"),
            _offer(3, "Archived Engineer", "candidature", days_left=-3),
        ]
        out = StringIO()
        with mock.patch.object(PortalAPIClient, "list_offers", return_value=offers):
            call_command("list_offers", "--type", "candidature", "--status", "all", stdout=out)
        output = out.getvalue()
        self.assertIn("Field Engineer", output)
        self.assertIn("Archived Engineer", output)
        self.assertNotIn("Audit Consultation", output)
        self.assertIn("2 of 3 offers", output)
