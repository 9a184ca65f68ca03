import json
from unittest import mock

import requests
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import SimpleTestCase, override_settings

from .api_client import CONNECTION_ERROR, APIError, PortalAPIClient


def _response(status, body=None, content_type="application/json"):
    resp = requests.Response()
    resp.status_code = status
    resp._content = json.dumps(body).encode() if body is not None else b""
    resp.headers["Content-Type"] = content_type
    return resp


@override_settings(PORTAL_API_URL="http://backend.test/api/", PORTAL_API_TIMEOUT=5)
class PortalAPIClientTests(SimpleTestCase):
    def setUp(self):
        self.session = mock.Mock(spec=requests.Session)

    def _client(self, token=None):
        return PortalAPIClient(token, session=self.session)

    def test_bearer_token_and_base_url(self):
        self.session.request.return_value = _response(200, [])
        self._client("abc.def.ghi").list_applications()
        args, kwargs = self.session.request.call_args
        self.assertEqual(args, ("GET", "http://backend.test/api/applications"))
        self.assertEqual(kwargs["headers"], {"Authorization": "Bearer abc.def.ghi"})
        self.assertEqual(kwargs["timeout"], 5)

    def test_anonymous_calls_send_no_authorization(self):
        self.session.request.return_value = _response(200, [])
        self._client().list_offers()
        self.assertEqual(self.session.request.call_args.kwargs["headers"], {})

    def test_offers_are_parsed(self):
        self.session.request.return_value = _response(
            200,
            [{"id": 1, "type": "consultation", "title": "Audit", "projet": "Solar", "deadline": "2030-05-01"}],
        )
        (offer,) = self._client().list_offers()
        self.assertEqual(offer.title, "Audit")
        self.assertEqual(offer.project, "Solar")
        self.assertEqual(offer.deadline.isoformat(), "2030-05-01")

    def test_backend_error_message_is_used(self):
        self.session.request.return_value = _response(401, {"error": "Invalid credentials"})
        with self.assertRaises(APIError) as ctx:
            self._client().login("a@example.com", "nope")
        self.assertEqual(ctx.exception.message, "Invalid credentials")
        self.assertEqual(ctx.exception.status_code, 401)

    def test_fallback_message_without_body(self):
        self.session.request.return_value = _response(500, content_type="text/html")
        with self.assertRaises(APIError) as ctx:
            self._client().list_offers()
        self.assertEqual(ctx.exception.message, "Failed to fetch offers")

    def test_not_found(self):
        self.session.request.return_value = _response(404, {"error": "Offer not found"})
        with self.assertRaises(APIError) as ctx:
            self._client().get_offer(9)
        self.assertTrue(ctx.exception.is_not_found)

    def test_unreachable_backend(self):
        self.session.request.side_effect = requests.ConnectionError("refused")
        with self.assertRaises(APIError) as ctx:
            self._client().login("a@example.com", "secret1")
        self.assertEqual(ctx.exception.message, CONNECTION_ERROR)

        with self.assertRaises(APIError) as ctx:
            self._client().apply(1, {}, {})
        self.assertEqual(ctx.exception.message, "Failed to submit application")

    def test_login_without_token_fails(self):
        self.session.request.return_value = _response(200, {"user": {}})
        with self.assertRaises(APIError) as ctx:
            self._client().login("a@example.com", "secret1")
        self.assertEqual(ctx.exception.message, "Login failed")

    def test_apply_sends_multipart(self):
        self.session.request.return_value = _response(201, {"id": 4})
        cv = SimpleUploadedFile("cv.pdf", b"%PDF-1.4", content_type="application/pdf")
        self._client().apply(3, {"full_name": "Awa"}, {"cv": cv, "diplome": None})
        kwargs = self.session.request.call_args.kwargs
        self.assertEqual(kwargs["data"], {"offer_id": "3", "full_name": "Awa"})
        self.assertEqual(list(kwargs["files"]), ["cv"])
        self.assertEqual(kwargs["files"]["cv"][0], "cv.pdf")

    def test_non_list_payload_is_an_error(self):
        self.session.request.return_value = _response(200, {"error": "Database offline"})
        with self.assertRaises(APIError) as ctx:
            self._client().list_offers()
        self.assertEqual(ctx.exception.message, "Failed to fetch offers")

        with self.assertRaises(APIError) as ctx:
            self._client("t").list_users()
        self.assertEqual(ctx.exception.message, "Failed to fetch users")

    def test_non_object_offer_is_an_error(self):
        self.session.request.return_value = _response(200, ["not", "an", "offer"])
        with self.assertRaises(APIError):
            self._client().get_offer(1)

    def test_save_user_uses_put_when_editing(self):
        self.session.request.return_value = _response(200, {})
        self._client("t").save_user({"name": "A"}, user_id=7)
        args, kwargs = self.session.request.call_args
        self.assertEqual(args, ("PUT", "http://backend.test/api/users/7"))
        self.assertEqual(kwargs["json"], {"name": "A"})
