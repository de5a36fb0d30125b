from __future__ import annotations

from django.conf import settings
from rest_framework import exceptions
from rest_framework.authentication import CSRFCheck
from rest_framework_simplejwt.authentication import JWTAuthentication


def access_cookie_name() -> str:
    return getattr(settings, "AUTH_COOKIE_ACCESS_NAME", "cne_access")


class CneJWTAuthentication(JWTAuthentication):
    """Bearer header first, then the httpOnly access cookie.

    Cookie-authenticated requests are browser requests, so they must also pass
    the CSRF check; header tokens are exempt.
    """

    def authenticate(self, request):
        from_header = super().authenticate(request)
        if from_header is not None:
            return from_header

        raw_token = request.COOKIES.get(access_cookie_name())
        if not raw_token:
            return None

        validated_token = self.get_validated_token(raw_token)
        self.enforce_csrf(request)
        return self.get_user(validated_token), validated_token

    def enforce_csrf(self, request) -> None:
        check = CSRFCheck(lambda _request: None)
        check.process_request(request)
        reason = check.process_view(request, None, (), {})
        if reason:
            raise exceptions.PermissionDenied(f"CSRF Failed: {reason}")
