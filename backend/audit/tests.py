from datetime import date

from django.contrib.auth import get_user_model
from django.test import RequestFactory, TestCase
from rest_framework.test import APITestCase

from members.models import Member

from .models import AuditLog
from .services import client_ip, log_event


class LogEventTests(TestCase):
	def setUp(self):
		User = get_user_model()
		self.user = User.objects.create_user(username="operador", password="pass1234")
		self.factory = RequestFactory()

	def test_records_request_context(self):
		request = self.factory.post(
			"/api/members/",
			HTTP_X_FORWARDED_FOR="10.0.0.7, 172.16.0.1",
			HTTP_USER_AGENT="pytest",
		)
		request.user = self.user

		entry = log_event(
			request,
			event_type="MEMBER_CREATED",
			object_type="Member",
			object_id=12,
			status_code=201,
			metadata={"cedula": "1400000001"},
		)

		self.assertEqual(entry.actor, self.user)
		self.assertEqual(entry.object_id, "12")
		self.assertEqual(entry.method, "POST")
		self.assertEqual(entry.ip_address, "10.0.0.7")
		self.assertEqual(entry.action, "CREATED")
		self.assertEqual(entry.metadata, {"cedula": "1400000001"})

	def test_anonymous_request_is_not_recorded(self):
		request = self.factory.get("/api/members/")
		self.assertIsNone(log_event(request, event_type="MEMBER_EXPORT_CSV"))
		self.assertFalse(AuditLog.objects.exists())

	def test_explicit_actor_wins(self):
		request = self.factory.post("/api/auth/login/")
		entry = log_event(request, event_type="AUTH_LOGIN", object_type="User", object_id=self.user.id, actor=self.user)
		self.assertEqual(entry.actor, self.user)
		self.assertEqual(entry.action, "AUTH_LOGIN")

	def test_remote_addr_fallback(self):
		request = self.factory.get("/", REMOTE_ADDR="192.168.1.20")
		self.assertEqual(client_ip(request), "192.168.1.20")


class AuditLogApiTests(APITestCase):
	def setUp(self):
		User = get_user_model()
		self.admin = User.objects.create_user(username="admin", password="pass1234", role=User.ROLE_ADMIN)
		self.operator = User.objects.create_user(username="operador", password="pass1234", role=User.ROLE_OPERATOR)

	def test_operator_cannot_read_trail(self):
		self.client.force_authenticate(user=self.operator)
		res = self.client.get("/api/audit-logs/")
		self.assertEqual(res.status_code, 403)

	def test_roster_write_shows_up_in_trail(self):
		self.client.force_authenticate(user=self.operator)
		created = self.client.post("/api/members/", {"cedula": "1400000001", "name": "Ana"}, format="json")
		self.assertEqual(created.status_code, 201)
		member = Member.objects.get()

		self.client.force_authenticate(user=self.admin)
		res = self.client.get("/api/audit-logs/", {"object_type": "Member", "object_id": member.id})
		self.assertEqual(res.status_code, 200)
		self.assertEqual(len(res.data), 1)
		self.assertEqual(res.data[0]["event_type"], "MEMBER_CREATED")
		self.assertEqual(res.data[0]["action"], "CREATED")
		self.assertEqual(res.data[0]["actor_username"], "operador")

	def test_event_prefix_filter(self):
		AuditLog.objects.create(actor=self.operator, event_type="MEMBER_EXPORT_CSV", object_type="Member")
		AuditLog.objects.create(actor=self.operator, event_type="ELECTORALPROCESS_CREATED", object_type="ElectoralProcess")
		AuditLog.objects.create(actor=None, event_type="MEMBER_DELETED", object_type="Member", object_id="3")

		self.client.force_authenticate(user=self.admin)
		res = self.client.get("/api/audit-logs/", {"event_prefix": "MEMBER_"})
		self.assertEqual(sorted(row["event_type"] for row in res.data), ["MEMBER_DELETED", "MEMBER_EXPORT_CSV"])
		orphan = next(row for row in res.data if row["event_type"] == "MEMBER_DELETED")
		self.assertIsNone(orphan["actor_username"])

	def test_date_filter(self):
		AuditLog.objects.create(actor=self.operator, event_type="MEMBER_CREATED", object_type="Member")
		self.client.force_authenticate(user=self.admin)
		res = self.client.get("/api/audit-logs/", {"created_before": f"{date(2000, 1, 1).isoformat()}T00:00:00Z"})
		self.assertEqual(res.data, [])
