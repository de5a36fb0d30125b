"""Rate limits for the sign-in endpoints.

Rates come from ``AUTH_*_THROTTLE_RATE`` when set, otherwise from
``REST_FRAMEWORK["DEFAULT_THROTTLE_RATES"]``.
"""

from __future__ import annotations

from django.conf import settings
from rest_framework.throttling import SimpleRateThrottle


class AuthRateThrottle(SimpleRateThrottle):
    rate_setting = ""
    by_username = False

    def get_rate(self):
        override = str(getattr(settings, self.rate_setting, "") or "").strip()
        return override or super().get_rate()

    def get_ident_value(self, request) -> str:
        if self.by_username:
            return str(request.data.get("username", "") or "").strip().lower()
        return self.get_ident(request) or ""

    def get_cache_key(self, request, view):
        ident = self.get_ident_value(request)
        if not ident:
            return None
        return self.cache_format % {"scope": self.scope, "ident": ident}


class AuthLoginIPRateThrottle(AuthRateThrottle):
    scope = "auth_login_ip"
    rate_setting = "AUTH_LOGIN_IP_THROTTLE_RATE"


class AuthLoginUserRateThrottle(AuthRateThrottle):
    scope = "auth_login_user"
    rate_setting = "AUTH_LOGIN_USER_THROTTLE_RATE"
    by_username = True


class AuthRefreshIPRateThrottle(AuthRateThrottle):
    scope = "auth_refresh_ip"
    rate_setting = "AUTH_REFRESH_IP_THROTTLE_RATE"
