from datetime import date
from io import BytesIO
from unittest.mock import patch

from django.contrib.auth import get_user_model
from django.db import DatabaseError
from openpyxl import load_workbook
from rest_framework.test import APITestCase

from audit.models import AuditLog
from core.exceptions import AuthenticationRequired, StoreError
from elections.models import Assignment, ElectoralProcess
from reports.weasyprint_utils import WeasyPrintUnavailableError

from .models import Member
from .services import create_member


class MemberApiTests(APITestCase):
    def setUp(self):
        User = get_user_model()
        self.operator = User.objects.create_user(username="operador", password="pass1234", role=User.ROLE_OPERATOR)
        self.viewer = User.objects.create_user(username="consulta", password="pass1234", role=User.ROLE_VIEWER)

        self.ana = Member.objects.create(
            cedula="1400000001", name="Ana Pérez", second_name="Ana", phone="0991111111", email="ana@cne.ec"
        )
        self.luis = Member.objects.create(cedula="1400000002", name="Luis Tsamarain", member_type=Member.MemberType.CDA)
        self.nube = Member.objects.create(cedula="1400000003", name="Ñusta Wampash", phone="0992222222")

    def test_requires_authentication(self):
        res = self.client.get("/api/members/")
        self.assertEqual(res.status_code, 401)

    def test_list_defaults_to_name_order(self):
        self.client.force_authenticate(user=self.viewer)
        res = self.client.get("/api/members/")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["state"], "NO_QUERY")
        self.assertEqual(res.data["ordering"], "name")
        self.assertEqual([row["cedula"] for row in res.data["results"]], ["1400000001", "1400000002", "1400000003"])

    def test_search_and_descending_order(self):
        self.client.force_authenticate(user=self.viewer)
        res = self.client.get("/api/members/", {"q": "099", "ordering": "-name"})
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["state"], "RESULTS")
        self.assertEqual(res.data["count"], 2)
        self.assertEqual(res.data["total"], 3)
        self.assertEqual([row["name"] for row in res.data["results"]], ["Ñusta Wampash", "Ana Pérez"])

    def test_search_without_matches(self):
        self.client.force_authenticate(user=self.viewer)
        res = self.client.get("/api/members/", {"q": "zzz"})
        self.assertEqual(res.data["state"], "NO_RESULTS")
        self.assertEqual(res.data["results"], [])

    def test_filter_by_type(self):
        self.client.force_authenticate(user=self.viewer)
        res = self.client.get("/api/members/", {"member_type": "CDA"})
        self.assertEqual([row["cedula"] for row in res.data["results"]], ["1400000002"])

    def test_viewer_cannot_create(self):
        self.client.force_authenticate(user=self.viewer)
        res = self.client.post("/api/members/", {"cedula": "1400000009", "name": "Nuevo"}, format="json")
        self.assertEqual(res.status_code, 403)
        self.assertFalse(Member.objects.filter(cedula="1400000009").exists())

    def test_operator_creates_member(self):
        self.client.force_authenticate(user=self.operator)
        res = self.client.post(
            "/api/members/",
            {"cedula": " 1400000009 ", "name": "Rosa Antun", "member_type": "CDA"},
            format="json",
        )
        self.assertEqual(res.status_code, 201)
        member = Member.objects.get(cedula="1400000009")
        self.assertEqual(member.created_by, self.operator)
        self.assertEqual(member.member_type, Member.MemberType.CDA)
        self.assertTrue(AuditLog.objects.filter(event_type="MEMBER_CREATED", object_id=str(member.id)).exists())

    def test_duplicate_cedula_is_rejected(self):
        self.client.force_authenticate(user=self.operator)
        res = self.client.post("/api/members/", {"cedula": "1400000001", "name": "Otra"}, format="json")
        self.assertEqual(res.status_code, 400)
        self.assertEqual(str(res.data["cedula"][0]), "Ya existe un miembro con esta cédula.")

    def test_blank_name_is_rejected(self):
        self.client.force_authenticate(user=self.operator)
        res = self.client.post("/api/members/", {"cedula": "1400000010", "name": "   "}, format="json")
        self.assertEqual(res.status_code, 400)
        self.assertIn("name", res.data)

    def test_update_member(self):
        self.client.force_authenticate(user=self.operator)
        res = self.client.patch(f"/api/members/{self.ana.id}/", {"phone": "0993333333"}, format="json")
        self.assertEqual(res.status_code, 200)
        self.ana.refresh_from_db()
        self.assertEqual(self.ana.phone, "0993333333")

    def test_member_type_is_locked_once_assigned(self):
        process = ElectoralProcess.objects.create(name="Seccionales 2027", start_date=date(2027, 1, 1), end_date=date(2027, 2, 1))
        Assignment.objects.create(process=process, member=self.ana, member_type="CPE", role=Assignment.CPERole.DIGITADOR)

        self.client.force_authenticate(user=self.operator)
        res = self.client.patch(f"/api/members/{self.ana.id}/", {"member_type": "CDA"}, format="json")
        self.assertEqual(res.status_code, 400)
        self.ana.refresh_from_db()
        self.assertEqual(self.ana.member_type, Member.MemberType.CPE)

    def test_delete_preview_and_cascade(self):
        process = ElectoralProcess.objects.create(name="Seccionales 2027", start_date=date(2027, 1, 1), end_date=date(2027, 2, 1))
        Assignment.objects.create(process=process, member=self.ana, member_type="CPE", role=Assignment.CPERole.SUPERVISOR)

        self.client.force_authenticate(user=self.operator)
        preview = self.client.get(f"/api/members/{self.ana.id}/delete-preview/")
        self.assertEqual(preview.status_code, 200)
        self.assertEqual(preview.data["cascades"], {"assignments": 1})
        self.assertIn("Ana Pérez", preview.data["message"])

        res = self.client.delete(f"/api/members/{self.ana.id}/")
        self.assertEqual(res.status_code, 204)
        self.assertFalse(Member.objects.filter(id=self.ana.id).exists())
        self.assertEqual(Assignment.objects.count(), 0)
        self.assertTrue(AuditLog.objects.filter(event_type="MEMBER_DELETED").exists())

    def test_store_failure_on_delete_keeps_member(self):
        self.client.force_authenticate(user=self.operator)
        with patch.object(Member, "delete", side_effect=DatabaseError("fk violation in store")):
            with self.assertLogs("core.views", level="ERROR"):
                res = self.client.delete(f"/api/members/{self.ana.id}/")
        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.data["detail"], "fk violation in store")
        self.assertTrue(Member.objects.filter(id=self.ana.id).exists())
        self.assertTrue(AuditLog.objects.filter(event_type="MEMBER_DELETE_FAILED").exists())

    def test_viewer_cannot_delete(self):
        self.client.force_authenticate(user=self.viewer)
        res = self.client.delete(f"/api/members/{self.ana.id}/")
        self.assertEqual(res.status_code, 403)
        self.assertTrue(Member.objects.filter(id=self.ana.id).exists())


class MemberExportTests(APITestCase):
    def setUp(self):
        User = get_user_model()
        self.viewer = User.objects.create_user(username="consulta", password="pass1234", role=User.ROLE_VIEWER)
        Member.objects.create(cedula="1400000002", name="Zoila Jimbicti", phone="0991111111")
        Member.objects.create(cedula="1400000001", name="Andrés Chumpi, Jr", email="andres@cne.ec")
        Member.objects.create(cedula="1400000003", name="Carmen Nantip", member_type=Member.MemberType.CDA)
        self.client.force_authenticate(user=self.viewer)

    def test_csv_uses_visible_rows_and_order(self):
        res = self.client.get("/api/members/export/csv/", {"ordering": "-cedula", "q": "14"})
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res["Content-Disposition"], 'attachment; filename="personal.csv"')
        self.assertEqual(
            res.content.decode("utf-8"),
            "Cédula,Nombre,Teléfono,Email\n"
            "1400000003,Carmen Nantip,-,-\n"
            "1400000002,Zoila Jimbicti,0991111111,-\n"
            '1400000001,"Andrés Chumpi, Jr",-,andres@cne.ec',
        )
        self.assertTrue(AuditLog.objects.filter(event_type="MEMBER_EXPORT_CSV").exists())

    def test_csv_respects_search(self):
        res = self.client.get("/api/members/export/csv/", {"q": "zoila"})
        lines = res.content.decode("utf-8").split("\n")
        self.assertEqual(len(lines), 2)
        self.assertTrue(lines[1].startswith("1400000002,"))

    def test_xlsx_sheet(self):
        res = self.client.get("/api/members/export/xlsx/")
        self.assertEqual(res.status_code, 200)
        workbook = load_workbook(filename=BytesIO(res.content))
        rows = list(workbook["Datos"].iter_rows(values_only=True))
        self.assertEqual(rows[0], ("Cédula", "Nombre", "Teléfono", "Email"))
        self.assertEqual([row[1] for row in rows[1:]], ["Andrés Chumpi, Jr", "Carmen Nantip", "Zoila Jimbicti"])

    def test_pdf_title(self):
        with patch("reports.exports.render_pdf_bytes_from_html", return_value=b"%PDF-1.4 mocked") as render:
            res = self.client.get("/api/members/export/pdf/")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res["Content-Type"], "application/pdf")
        self.assertEqual(res.content, b"%PDF-1.4 mocked")
        self.assertIn("Lista de Personal", render.call_args.kwargs["html"])

    def test_pdf_unavailable(self):
        with patch(
            "reports.exports.render_pdf_bytes_from_html",
            side_effect=WeasyPrintUnavailableError("WeasyPrint no está disponible en este servidor."),
        ):
            res = self.client.get("/api/members/export/pdf/")
        self.assertEqual(res.status_code, 503)
        self.assertTrue(AuditLog.objects.filter(event_type="MEMBER_EXPORT_PDF_FAILED").exists())


class MemberServiceTests(APITestCase):
    def test_create_requires_actor(self):
        with self.assertRaises(AuthenticationRequired):
            create_member(actor=None, data={"cedula": "1400000001", "name": "Ana"})
        self.assertFalse(Member.objects.exists())

    def test_store_failure_is_reported(self):
        User = get_user_model()
        actor = User.objects.create_user(username="operador", password="pass1234")
        with patch.object(Member.objects, "create", side_effect=DatabaseError("disk full")):
            with self.assertRaises(StoreError) as ctx:
                create_member(actor=actor, data={"cedula": "1400000001", "name": "Ana"})
        self.assertEqual(str(ctx.exception.detail), "disk full")
