"""Cookie based sign-in for the web client.

Tokens are SimpleJWT tokens stored in httpOnly cookies; the login response
also carries the signed-in identity so the client can decide which roster
actions to offer.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone as datetime_timezone

from django.conf import settings
from django.middleware.csrf import get_token
from django.utils.decorators import method_decorator
from django.views.decorators.csrf import ensure_csrf_cookie
from rest_framework import status
from rest_framework.exceptions import AuthenticationFailed
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer, TokenRefreshSerializer
from rest_framework_simplejwt.tokens import AccessToken, RefreshToken

from audit.services import log_event
from users.serializers import UserSerializer

from .authentication import access_cookie_name
from .throttles import AuthLoginIPRateThrottle, AuthLoginUserRateThrottle, AuthRefreshIPRateThrottle

logger = logging.getLogger(__name__)


def refresh_cookie_name() -> str:
    return getattr(settings, "AUTH_COOKIE_REFRESH_NAME", "cne_refresh")


def _expires_at(token) -> datetime:
    return datetime.fromtimestamp(int(token["exp"]), tz=datetime_timezone.utc)


def _cookie_scope() -> dict:
    return {
        "path": getattr(settings, "AUTH_COOKIE_PATH", "/"),
        "domain": getattr(settings, "AUTH_COOKIE_DOMAIN", None),
        "samesite": getattr(settings, "AUTH_COOKIE_SAMESITE", "Lax"),
    }


def set_session_cookies(response: Response, *, access: str, refresh: str | None = None) -> None:
    options = {**_cookie_scope(), "httponly": True, "secure": getattr(settings, "AUTH_COOKIE_SECURE", False)}
    response.set_cookie(access_cookie_name(), access, expires=_expires_at(AccessToken(access)), **options)
    if refresh:
        response.set_cookie(refresh_cookie_name(), refresh, expires=_expires_at(RefreshToken(refresh)), **options)


def clear_session_cookies(response: Response) -> None:
    response.delete_cookie(access_cookie_name(), **_cookie_scope())
    response.delete_cookie(refresh_cookie_name(), **_cookie_scope())


@method_decorator(ensure_csrf_cookie, name="dispatch")
class CsrfCookieAPIView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    def get(self, request, *args, **kwargs):
        return Response({"detail": "CSRF cookie set.", "csrfToken": get_token(request)}, status=status.HTTP_200_OK)


class CookieLoginAPIView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []
    throttle_classes = [AuthLoginIPRateThrottle, AuthLoginUserRateThrottle]

    def get_authenticate_header(self, request):
        # No authenticators here; keeps rejected credentials a 401 instead of 403.
        return 'Bearer realm="api"'

    def post(self, request, *args, **kwargs):
        serializer = TokenObtainPairSerializer(data=request.data)
        try:
            serializer.is_valid(raise_exception=True)
        except AuthenticationFailed:
            logger.warning("sign-in rejected", extra={"username": str(request.data.get("username", ""))[:150]})
            raise

        user = serializer.user
        response = Response(
            {"detail": "Inicio de sesión exitoso.", "user": UserSerializer(user).data},
            status=status.HTTP_200_OK,
        )
        set_session_cookies(
            response,
            access=serializer.validated_data["access"],
            refresh=serializer.validated_data["refresh"],
        )
        get_token(request)
        log_event(
            request,
            event_type="AUTH_LOGIN",
            object_type="User",
            object_id=user.pk,
            status_code=status.HTTP_200_OK,
            actor=user,
        )
        return response


class CookieRefreshAPIView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []
    throttle_classes = [AuthRefreshIPRateThrottle]

    def post(self, request, *args, **kwargs):
        refresh = request.COOKIES.get(refresh_cookie_name()) or request.data.get("refresh")
        if not refresh:
            return Response({"detail": "Refresh token requerido."}, status=status.HTTP_401_UNAUTHORIZED)

        serializer = TokenRefreshSerializer(data={"refresh": refresh})
        try:
            serializer.is_valid(raise_exception=True)
        except (InvalidToken, TokenError):
            response = Response({"detail": "Sesión expirada."}, status=status.HTTP_401_UNAUTHORIZED)
            clear_session_cookies(response)
            return response

        response = Response({"detail": "Token refrescado."}, status=status.HTTP_200_OK)
        set_session_cookies(
            response,
            access=serializer.validated_data["access"],
            refresh=serializer.validated_data.get("refresh"),
        )
        return response


class CookieLogoutAPIView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request, *args, **kwargs):
        log_event(
            request,
            event_type="AUTH_LOGOUT",
            object_type="User",
            object_id=request.user.pk,
            status_code=status.HTTP_200_OK,
        )
        response = Response({"detail": "Sesión cerrada."}, status=status.HTTP_200_OK)
        clear_session_cookies(response)
        return response
