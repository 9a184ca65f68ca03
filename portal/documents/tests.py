from unittest import mock

import jwt
from django.conf import settings
from django.test import SimpleTestCase
from django.urls import reverse

from offers.models import Application, Offer
from portal.api_client import APIError, PortalAPIClient

PDF = b"%PDF-1.4 stored file"


class OfferTDRTests(SimpleTestCase):
    offer = Offer.from_api(
        {
            "id": 8,
            "type": "appel_d_offre",
            "title": "Road Works",
            "deadline": "2099-12-31",
            "tdr_url": "/uploads/tdr/road.pdf",
            "tdr_filename": "road.pdf",
        }
    )

    def test_download_is_public_and_named_after_offer(self):
        with mock.patch.object(PortalAPIClient, "get_offer", return_value=self.offer), mock.patch.object(
            PortalAPIClient, "fetch_document", return_value=(PDF, "application/pdf")
        ) as fetch:
            resp = self.client.get(reverse("offer_tdr", args=[8]))
        fetch.assert_called_once_with("/uploads/tdr/road.pdf")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.content, PDF)
        self.assertEqual(resp["Content-Type"], "application/pdf")
        self.assertIn('filename="TDR_Road Works.pdf"', resp["Content-Disposition"])

    def test_failed_download_returns_to_offer(self):
        with mock.patch.object(PortalAPIClient, "get_offer", return_value=self.offer), mock.patch.object(
            PortalAPIClient, "fetch_document", side_effect=APIError("Failed to download document", 500)
        ):
            resp = self.client.get(reverse("offer_tdr", args=[8]))
        self.assertRedirects(resp, reverse("offer_detail", args=[8]), fetch_redirect_response=False)


class ApplicationDocumentTests(SimpleTestCase):
    application = Application.from_api(
        {
            "id": 12,
            "offer_id": 8,
            "full_name": "Awa Ndiaye",
            "email": "awa@example.com",
            "cv_url": "/uploads/12/cv.pdf",
            "cv_filename": "awa_cv.pdf",
        }
    )

    def setUp(self):
        patcher = mock.patch.object(PortalAPIClient, "list_applications", return_value=[self.application])
        patcher.start()
        self.addCleanup(patcher.stop)

    def _login_hr(self):
        token = jwt.encode({"id": 2, "name": "HR", "email": "hr@example.com", "role": "rh"}, "x", algorithm="HS256")
        session = self.client.session
        session[settings.SESSION_TOKEN_KEY] = token
        session.save()
        self.client.cookies[settings.SESSION_COOKIE_NAME] = session.session_key

    def test_requires_login(self):
        resp = self.client.get(reverse("application_document", args=[12, "cv"]))
        self.assertEqual(resp.status_code, 302)
        self.assertTrue(resp["Location"].startswith(reverse("login")))

    def test_hr_downloads_with_stored_filename(self):
        self._login_hr()
        with mock.patch.object(PortalAPIClient, "fetch_document", return_value=(PDF, "application/pdf")) as fetch:
            resp = self.client.get(reverse("application_document", args=[12, "cv"]))
        fetch.assert_called_once_with("/uploads/12/cv.pdf")
        self.assertEqual(resp.content, PDF)
        self.assertIn('attachment; filename="awa_cv.pdf"', resp["Content-Disposition"])

    def test_unknown_or_missing_document_is_404(self):
        self._login_hr()
        self.assertEqual(self.client.get(reverse("application_document", args=[12, "passport"])).status_code, 404)
        self.assertEqual(self.client.get(reverse("application_document", args=[12, "diplome"])).status_code, 404)
