from django.conf import settings

from .tokens import clear_token, decode_token


class TokenUserMiddleware:
    """Expose the logged-in portal user as `request.portal_user`.

    A stored token that no longer decodes (expired, malformed) is dropped from
    the session so the visitor is simply logged out.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        token = request.session.get(settings.SESSION_TOKEN_KEY)
        user = decode_token(token)
        if token and user is None:
            clear_token(request)
        request.portal_user = user
        return self.get_response(request)
