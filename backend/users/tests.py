from django.test import TestCase
from rest_framework.test import APIClient
from rest_framework import status
from audit.models import AuditLog

from .models import User


class UserPermissionTests(TestCase):
    def setUp(self):
        self.client = APIClient()

        self.admin = User.objects.create_user(
            username="admin", password="password", role=User.ROLE_ADMIN
        )
        self.operator = User.objects.create_user(
            username="operador", password="password", role=User.ROLE_OPERATOR
        )
        self.viewer = User.objects.create_user(
            username="consulta", password="password", role=User.ROLE_VIEWER
        )

    def get_token(self, user):
        response = self.client.post(
            "/api/token/", {"username": user.username, "password": "password"}
        )
        return response.data["access"]

    def test_admin_can_list_users(self):
        token = self.get_token(self.admin)
        self.client.credentials(HTTP_AUTHORIZATION="Bearer " + token)
        response = self.client.get("/api/users/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_operator_cannot_list_users(self):
        token = self.get_token(self.operator)
        self.client.credentials(HTTP_AUTHORIZATION="Bearer " + token)
        response = self.client.get("/api/users/")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_anonymous_request_is_rejected(self):
        response = self.client.get("/api/users/me/")
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_me_returns_signed_in_identity(self):
        token = self.get_token(self.viewer)
        self.client.credentials(HTTP_AUTHORIZATION="Bearer " + token)
        response = self.client.get("/api/users/me/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["username"], "consulta")
        self.assertFalse(response.data["can_manage_roster"])

    def test_user_cannot_view_other_profile(self):
        token = self.get_token(self.viewer)
        self.client.credentials(HTTP_AUTHORIZATION="Bearer " + token)
        response = self.client.get(f"/api/users/{self.operator.id}/")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_user_can_change_own_password(self):
        token = self.get_token(self.operator)
        self.client.credentials(HTTP_AUTHORIZATION="Bearer " + token)
        response = self.client.post(
            "/api/users/change_password/",
            {"current_password": "password", "new_password": "Nuev4Clave#2026"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.operator.refresh_from_db()
        self.assertTrue(self.operator.check_password("Nuev4Clave#2026"))

    def test_change_password_rejects_wrong_current_password(self):
        token = self.get_token(self.operator)
        self.client.credentials(HTTP_AUTHORIZATION="Bearer " + token)
        response = self.client.post(
            "/api/users/change_password/",
            {"current_password": "incorrecta", "new_password": "Nuev4Clave#2026"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_admin_creates_operator_account(self):
        token = self.get_token(self.admin)
        self.client.credentials(HTTP_AUTHORIZATION="Bearer " + token)
        response = self.client.post(
            "/api/users/",
            {"username": "digitador", "password": "Clave#Segura2026", "role": User.ROLE_OPERATOR},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        created = User.objects.get(username="digitador")
        self.assertIsNone(created.email)
        self.assertTrue(created.can_manage_roster)
        self.assertTrue(AuditLog.objects.filter(event_type="USER_CREATED", object_id=str(created.id)).exists())
