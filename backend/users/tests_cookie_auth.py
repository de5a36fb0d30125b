from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.test import override_settings
from rest_framework.test import APITestCase

from audit.models import AuditLog


class CookieAuthFlowTests(APITestCase):
    def setUp(self):
        cache.clear()
        User = get_user_model()
        self.user = User.objects.create_user(username="operador_macas", password="pass1234", role=User.ROLE_OPERATOR)

    def _csrf(self) -> str:
        response = self.client.get("/api/auth/csrf/")
        self.assertEqual(response.status_code, 200)
        cookie = response.cookies.get("csrftoken")
        return cookie.value if cookie else ""

    def _login(self, password="pass1234", csrf_token=""):
        return self.client.post(
            "/api/auth/login/",
            {"username": "operador_macas", "password": password},
            format="json",
            HTTP_X_CSRFTOKEN=csrf_token,
        )

    def test_login_sets_cookies_and_returns_identity(self):
        response = self._login(csrf_token=self._csrf())
        self.assertEqual(response.status_code, 200)
        self.assertIn("cne_access", response.cookies)
        self.assertIn("cne_refresh", response.cookies)
        self.assertTrue(response.cookies["cne_access"]["httponly"])
        self.assertEqual(response.data["user"]["username"], "operador_macas")
        self.assertTrue(response.data["user"]["can_manage_roster"])

        me = self.client.get("/api/users/me/")
        self.assertEqual(me.status_code, 200)
        self.assertEqual(me.data["role"], "OPERATOR")

        entry = AuditLog.objects.get(event_type="AUTH_LOGIN")
        self.assertEqual(entry.actor, self.user)
        self.assertEqual(entry.object_id, str(self.user.id))

    def test_cookie_session_can_use_roster_api(self):
        self._login(csrf_token=self._csrf())
        self.assertEqual(self.client.get("/api/members/").status_code, 200)

    def test_refresh_uses_refresh_cookie(self):
        self._login(csrf_token=self._csrf())
        response = self.client.post("/api/auth/refresh/", {}, format="json")
        self.assertEqual(response.status_code, 200)
        self.assertIn("cne_access", response.cookies)

    def test_refresh_without_token(self):
        response = self.client.post("/api/auth/refresh/", {}, format="json")
        self.assertEqual(response.status_code, 401)

    def test_refresh_with_garbage_token_clears_cookies(self):
        self.client.cookies["cne_refresh"] = "no-es-un-token"
        response = self.client.post("/api/auth/refresh/", {}, format="json")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.cookies["cne_refresh"].value, "")

    def test_wrong_password(self):
        with self.assertLogs("cne_backend.auth_views", level="WARNING"):
            response = self._login(password="otra")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response["WWW-Authenticate"], 'Bearer realm="api"')
        self.assertNotIn("cne_access", response.cookies)
        self.assertFalse(AuditLog.objects.exists())

    def test_logout_clears_cookies_and_is_audited(self):
        csrf_token = self._csrf()
        self._login(csrf_token=csrf_token)

        response = self.client.post("/api/auth/logout/", {}, format="json", HTTP_X_CSRFTOKEN=csrf_token)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.cookies["cne_access"].value, "")
        self.assertTrue(AuditLog.objects.filter(event_type="AUTH_LOGOUT", actor=self.user).exists())

    @override_settings(AUTH_LOGIN_IP_THROTTLE_RATE="2/min", AUTH_LOGIN_USER_THROTTLE_RATE="2/min")
    def test_login_is_throttled(self):
        for _ in range(2):
            self._login(password="mal")
        response = self._login(password="mal")
        self.assertEqual(response.status_code, 429)
