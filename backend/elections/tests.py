import shutil
import tempfile
from datetime import date
from io import BytesIO
from unittest.mock import patch

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.core.files.storage import FileSystemStorage, default_storage
from django.core.files.uploadedfile import SimpleUploadedFile
from django.db import DatabaseError
from django.test import TestCase, override_settings
from PIL import Image
from rest_framework.test import APITestCase

from audit.models import AuditLog
from core.exceptions import AuthenticationRequired
from members.models import Member
from precincts.models import CDAPrecinct
from reports.credentials import load_logo
from reports.weasyprint_utils import WeasyPrintUnavailableError

from .assignment_detail import CDADetail, CPEDetail, build_detail
from .models import Assignment, ElectoralProcess
from .services import create_assignment, create_process


def _png_upload(name="logo.png", size=(200, 80)):
    buffer = BytesIO()
    Image.new("RGB", size, color=(21, 62, 92)).save(buffer, format="PNG")
    return SimpleUploadedFile(name, buffer.getvalue(), content_type="image/png")


class MediaRootMixin:
    def setUp(self):
        super().setUp()
        self.media_root = tempfile.mkdtemp()
        self.media_override = override_settings(MEDIA_ROOT=self.media_root)
        self.media_override.enable()

    def tearDown(self):
        self.media_override.disable()
        shutil.rmtree(self.media_root, ignore_errors=True)
        super().tearDown()


class ElectoralProcessApiTests(MediaRootMixin, APITestCase):
    def setUp(self):
        super().setUp()
        User = get_user_model()
        self.operator = User.objects.create_user(username="operador", password="pass1234", role=User.ROLE_OPERATOR)
        self.viewer = User.objects.create_user(username="consulta", password="pass1234", role=User.ROLE_VIEWER)

    def test_requires_authentication(self):
        res = self.client.get("/api/processes/")
        self.assertEqual(res.status_code, 401)

    def test_create_with_image(self):
        self.client.force_authenticate(user=self.operator)
        res = self.client.post(
            "/api/processes/",
            {"name": "Seccionales 2027", "start_date": "2027-01-10", "end_date": "2027-02-23", "image": _png_upload()},
            format="multipart",
        )
        self.assertEqual(res.status_code, 201)
        process = ElectoralProcess.objects.get(name="Seccionales 2027")
        self.assertEqual(process.created_by, self.operator)
        self.assertTrue(process.image.name.startswith("process-images/"))
        self.assertTrue(default_storage.exists(process.image.name))
        self.assertTrue(res.data["image_url"].startswith("http://testserver/media/process-images/"))
        self.assertTrue(AuditLog.objects.filter(event_type="ELECTORALPROCESS_CREATED").exists())

    def test_end_before_start_is_rejected(self):
        self.client.force_authenticate(user=self.operator)
        res = self.client.post(
            "/api/processes/",
            {"name": "Consulta", "start_date": "2027-03-10", "end_date": "2027-03-01"},
            format="json",
        )
        self.assertEqual(res.status_code, 400)
        self.assertIn("end_date", res.data)
        self.assertFalse(ElectoralProcess.objects.exists())

    def test_viewer_cannot_create(self):
        self.client.force_authenticate(user=self.viewer)
        res = self.client.post(
            "/api/processes/",
            {"name": "Consulta", "start_date": "2027-03-01", "end_date": "2027-03-10"},
            format="json",
        )
        self.assertEqual(res.status_code, 403)

    def test_replacing_image_discards_previous_file(self):
        process = ElectoralProcess.objects.create(
            name="Seccionales 2027", start_date=date(2027, 1, 1), end_date=date(2027, 2, 1), image=_png_upload("old.png")
        )
        old_name = process.image.name
        self.client.force_authenticate(user=self.operator)

        res = self.client.patch(f"/api/processes/{process.id}/", {"image": _png_upload("new.png")}, format="multipart")
        self.assertEqual(res.status_code, 200)
        process.refresh_from_db()
        self.assertNotEqual(process.image.name, old_name)
        self.assertTrue(default_storage.exists(process.image.name))
        self.assertFalse(default_storage.exists(old_name))

    def test_remove_image(self):
        process = ElectoralProcess.objects.create(
            name="Seccionales 2027", start_date=date(2027, 1, 1), end_date=date(2027, 2, 1), image=_png_upload()
        )
        name = process.image.name
        self.client.force_authenticate(user=self.operator)

        res = self.client.delete(f"/api/processes/{process.id}/image/")
        self.assertEqual(res.status_code, 200)
        self.assertIsNone(res.data["image_url"])
        process.refresh_from_db()
        self.assertFalse(process.image)
        self.assertFalse(default_storage.exists(name))

    def test_delete_cascades_assignments_and_image(self):
        process = ElectoralProcess.objects.create(
            name="Seccionales 2027", start_date=date(2027, 1, 1), end_date=date(2027, 2, 1), image=_png_upload()
        )
        member = Member.objects.create(cedula="1400000001", name="Ana")
        Assignment.objects.create(process=process, member=member, member_type="CPE", role=Assignment.CPERole.SUPERVISOR)
        name = process.image.name
        self.client.force_authenticate(user=self.operator)

        preview = self.client.get(f"/api/processes/{process.id}/delete-preview/")
        self.assertEqual(preview.data["cascades"], {"assignments": 1, "image": 1})

        res = self.client.delete(f"/api/processes/{process.id}/")
        self.assertEqual(res.status_code, 204)
        self.assertFalse(ElectoralProcess.objects.exists())
        self.assertFalse(Assignment.objects.exists())
        self.assertFalse(default_storage.exists(name))
        self.assertTrue(Member.objects.filter(id=member.id).exists())

    def test_delete_survives_image_removal_failure(self):
        process = ElectoralProcess.objects.create(
            name="Seccionales 2027", start_date=date(2027, 1, 1), end_date=date(2027, 2, 1), image=_png_upload()
        )
        self.client.force_authenticate(user=self.operator)

        with patch.object(FileSystemStorage, "delete", side_effect=OSError("permission denied")):
            with self.assertLogs("elections.services", level="ERROR"):
                res = self.client.delete(f"/api/processes/{process.id}/")

        self.assertEqual(res.status_code, 204)
        self.assertFalse(ElectoralProcess.objects.filter(id=process.id).exists())

    def test_store_failure_on_delete_keeps_process(self):
        process = ElectoralProcess.objects.create(name="Seccionales 2027", start_date=date(2027, 1, 1), end_date=date(2027, 2, 1))
        self.client.force_authenticate(user=self.operator)
        with patch.object(ElectoralProcess, "delete", side_effect=DatabaseError("process row locked")):
            with self.assertLogs("elections.services", level="ERROR"):
                res = self.client.delete(f"/api/processes/{process.id}/")
        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.data["detail"], "process row locked")
        self.assertTrue(ElectoralProcess.objects.filter(id=process.id).exists())
        self.assertTrue(AuditLog.objects.filter(event_type="ELECTORALPROCESS_DELETE_FAILED").exists())

    def test_export_formats_dates(self):
        ElectoralProcess.objects.create(name="Seccionales 2027", start_date=date(2027, 1, 5), end_date=date(2027, 2, 23))
        self.client.force_authenticate(user=self.viewer)
        res = self.client.get("/api/processes/export/csv/")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res["Content-Disposition"], 'attachment; filename="procesos-electorales.csv"')
        self.assertEqual(res.content.decode("utf-8"), "Nombre,Fecha Inicio,Fecha Fin\nSeccionales 2027,05/01/2027,23/02/2027")


class AssignmentDetailTests(TestCase):
    def setUp(self):
        self.precinct = CDAPrecinct.objects.create(code="CDA-01", name="Unidad Educativa Macas")

    def test_category_decides_detail(self):
        self.assertEqual(build_detail("CPE", role="Revisor", precinct=self.precinct), CPEDetail(role="Revisor"))
        self.assertEqual(build_detail("CDA", role="Revisor", precinct=self.precinct), CDADetail(precinct=self.precinct))

    def test_labels(self):
        self.assertEqual(CPEDetail(role="Revisor").label, "Revisor de Firmas")
        self.assertEqual(CDADetail(precinct=self.precinct).label, "Recinto: Unidad Educativa Macas (Morona / Macas)")
        self.assertEqual(CDADetail(precinct=self.precinct).credential_role, "CDA")

    def test_missing_detail(self):
        with self.assertRaises(ValidationError):
            build_detail("CPE", role="")
        with self.assertRaises(ValidationError):
            build_detail("CDA", precinct=None)
        with self.assertRaises(ValidationError):
            build_detail("CPE", role="Presidente")


class AssignmentApiTests(APITestCase):
    def setUp(self):
        User = get_user_model()
        self.operator = User.objects.create_user(username="operador", password="pass1234", role=User.ROLE_OPERATOR)
        self.viewer = User.objects.create_user(username="consulta", password="pass1234", role=User.ROLE_VIEWER)

        self.process = ElectoralProcess.objects.create(name="Seccionales 2027", start_date=date(2027, 1, 1), end_date=date(2027, 2, 1))
        self.other_process = ElectoralProcess.objects.create(name="Consulta Popular", start_date=date(2027, 5, 1), end_date=date(2027, 5, 2))
        self.cpe = Member.objects.create(cedula="1400000001", name="Ana Pérez", second_name="Ana")
        self.cda = Member.objects.create(cedula="1400000002", name="Luis Tsamarain", member_type=Member.MemberType.CDA)
        self.precinct = CDAPrecinct.objects.create(code="CDA-01", name="Unidad Educativa Macas")

    def test_cpe_requires_role(self):
        self.client.force_authenticate(user=self.operator)
        res = self.client.post("/api/assignments/", {"process": self.process.id, "member": self.cpe.id}, format="json")
        self.assertEqual(res.status_code, 400)
        self.assertEqual(str(res.data["role"][0]), "Seleccione un rol para miembros CPE.")
        self.assertFalse(Assignment.objects.exists())

    def test_cda_requires_precinct(self):
        self.client.force_authenticate(user=self.operator)
        res = self.client.post(
            "/api/assignments/",
            {"process": self.process.id, "member": self.cda.id, "role": "Supervisor"},
            format="json",
        )
        self.assertEqual(res.status_code, 400)
        self.assertEqual(str(res.data["cda_precinct"][0]), "Seleccione un recinto CDA para miembros CDA.")
        self.assertFalse(Assignment.objects.exists())

    def test_cpe_assignment_ignores_precinct(self):
        self.client.force_authenticate(user=self.operator)
        res = self.client.post(
            "/api/assignments/",
            {"process": self.process.id, "member": self.cpe.id, "role": "Revisor", "cda_precinct": self.precinct.id},
            format="json",
        )
        self.assertEqual(res.status_code, 201)
        self.assertEqual(res.data["member_type"], "CPE")
        self.assertEqual(res.data["role_label"], "Revisor de Firmas")
        self.assertIsNone(res.data["cda_precinct"])
        self.assertEqual(res.data["credential_role"], "Revisor de Firmas")

        assignment = Assignment.objects.get()
        self.assertEqual(assignment.created_by, self.operator)
        self.assertIsNone(assignment.cda_precinct)

    def test_cda_assignment_ignores_role(self):
        self.client.force_authenticate(user=self.operator)
        res = self.client.post(
            "/api/assignments/",
            {"process": self.process.id, "member": self.cda.id, "role": "Supervisor", "cda_precinct": self.precinct.id},
            format="json",
        )
        self.assertEqual(res.status_code, 201)
        self.assertEqual(res.data["role"], "")
        self.assertEqual(res.data["cda_precinct_detail"]["code"], "CDA-01")
        self.assertEqual(res.data["detail_label"], "Recinto: Unidad Educativa Macas (Morona / Macas)")
        self.assertEqual(res.data["credential_role"], "CDA")

    def test_duplicate_member_in_process(self):
        Assignment.objects.create(process=self.process, member=self.cpe, member_type="CPE", role="Supervisor")
        self.client.force_authenticate(user=self.operator)
        res = self.client.post(
            "/api/assignments/",
            {"process": self.process.id, "member": self.cpe.id, "role": "Digitador"},
            format="json",
        )
        self.assertEqual(res.status_code, 409)
        self.assertEqual(res.data["detail"], "El miembro ya tiene una asignación en este proceso electoral.")
        self.assertEqual(Assignment.objects.count(), 1)

    def test_same_member_in_another_process(self):
        Assignment.objects.create(process=self.process, member=self.cpe, member_type="CPE", role="Supervisor")
        self.client.force_authenticate(user=self.operator)
        res = self.client.post(
            "/api/assignments/",
            {"process": self.other_process.id, "member": self.cpe.id, "role": "Digitador"},
            format="json",
        )
        self.assertEqual(res.status_code, 201)

    def test_update_changes_role(self):
        assignment = Assignment.objects.create(process=self.process, member=self.cpe, member_type="CPE", role="Supervisor")
        self.client.force_authenticate(user=self.operator)
        res = self.client.patch(f"/api/assignments/{assignment.id}/", {"role": "Receptor"}, format="json")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["role_label"], "Receptor de Actas")
        assignment.refresh_from_db()
        self.assertEqual(assignment.role, "Receptor")

    def test_viewer_cannot_assign(self):
        self.client.force_authenticate(user=self.viewer)
        res = self.client.post(
            "/api/assignments/",
            {"process": self.process.id, "member": self.cpe.id, "role": "Supervisor"},
            format="json",
        )
        self.assertEqual(res.status_code, 403)

    def test_list_filters_by_process_and_searches_precinct(self):
        Assignment.objects.create(process=self.process, member=self.cpe, member_type="CPE", role="Supervisor")
        Assignment.objects.create(process=self.process, member=self.cda, member_type="CDA", cda_precinct=self.precinct)
        Assignment.objects.create(process=self.other_process, member=self.cpe, member_type="CPE", role="Digitador")
        self.client.force_authenticate(user=self.viewer)

        res = self.client.get("/api/assignments/", {"process": self.process.id})
        self.assertEqual(res.data["count"], 2)
        self.assertEqual([row["member_name"] for row in res.data["results"]], ["Ana Pérez", "Luis Tsamarain"])

        res = self.client.get("/api/assignments/", {"process": self.process.id, "q": "educativa"})
        self.assertEqual([row["member_cedula"] for row in res.data["results"]], ["1400000002"])

    def test_export_uses_label_per_category(self):
        Assignment.objects.create(process=self.process, member=self.cpe, member_type="CPE", role="Archivador")
        Assignment.objects.create(process=self.process, member=self.cda, member_type="CDA", cda_precinct=self.precinct)
        self.client.force_authenticate(user=self.viewer)

        res = self.client.get("/api/assignments/export/csv/", {"process": self.process.id})
        self.assertEqual(res.status_code, 200)
        self.assertEqual(
            res.content.decode("utf-8").split("\n"),
            [
                "Miembro,Cédula,Tipo,Rol/Recinto",
                "Ana Pérez,1400000001,CPE,Archivador de Actas",
                "Luis Tsamarain,1400000002,CDA,Recinto: Unidad Educativa Macas (Morona / Macas)",
            ],
        )

        with patch("reports.exports.render_pdf_bytes_from_html", return_value=b"%PDF-1.4 mocked") as render:
            res = self.client.get("/api/assignments/export/pdf/", {"process": self.process.id})
        self.assertEqual(res.status_code, 200)
        self.assertIn("Lista de Asignaciones: Seccionales 2027", render.call_args.kwargs["html"])

    def test_delete_assignment(self):
        assignment = Assignment.objects.create(process=self.process, member=self.cpe, member_type="CPE", role="Supervisor")
        self.client.force_authenticate(user=self.operator)
        preview = self.client.get(f"/api/assignments/{assignment.id}/delete-preview/")
        self.assertEqual(preview.data["label"], "Ana Pérez - Seccionales 2027")
        res = self.client.delete(f"/api/assignments/{assignment.id}/")
        self.assertEqual(res.status_code, 204)
        self.assertFalse(Assignment.objects.exists())

    def test_store_failure_on_delete_keeps_assignment(self):
        assignment = Assignment.objects.create(process=self.process, member=self.cpe, member_type="CPE", role="Supervisor")
        self.client.force_authenticate(user=self.operator)
        with patch.object(Assignment, "delete", side_effect=DatabaseError("assignment row locked")):
            with self.assertLogs("core.views", level="ERROR"):
                res = self.client.delete(f"/api/assignments/{assignment.id}/")
        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.data["detail"], "assignment row locked")
        self.assertTrue(Assignment.objects.filter(id=assignment.id).exists())
        self.assertTrue(AuditLog.objects.filter(event_type="ASSIGNMENT_DELETE_FAILED").exists())


class AssignmentCredentialsTests(MediaRootMixin, APITestCase):
    def setUp(self):
        super().setUp()
        User = get_user_model()
        self.viewer = User.objects.create_user(username="consulta", password="pass1234", role=User.ROLE_VIEWER)
        self.process = ElectoralProcess.objects.create(name="Seccionales 2027", start_date=date(2027, 1, 1), end_date=date(2027, 2, 1))
        precinct = CDAPrecinct.objects.create(code="CDA-01", name="Unidad Educativa Macas")
        for index in range(5):
            member = Member.objects.create(cedula=f"140000000{index}", name=f"Miembro {index}")
            Assignment.objects.create(process=self.process, member=member, member_type="CPE", role="Revisor")
        cda = Member.objects.create(cedula="1400000009", name="Zoila Wampash", member_type=Member.MemberType.CDA)
        Assignment.objects.create(process=self.process, member=cda, member_type="CDA", cda_precinct=precinct)
        self.client.force_authenticate(user=self.viewer)

    def test_requires_process(self):
        res = self.client.get("/api/assignments/credentials/")
        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.data["detail"], "Seleccione un proceso electoral.")

    def test_process_without_assignments(self):
        empty = ElectoralProcess.objects.create(name="Vacío", start_date=date(2027, 1, 1), end_date=date(2027, 1, 2))
        res = self.client.get("/api/assignments/credentials/", {"process": empty.id})
        self.assertEqual(res.status_code, 400)

    def test_pdf_for_visible_assignments(self):
        with patch("reports.credentials.render_pdf_bytes_from_html", return_value=b"%PDF-1.4 mocked") as render:
            res = self.client.get("/api/assignments/credentials/", {"process": self.process.id})

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res["Content-Type"], "application/pdf")
        self.assertIn("Credenciales_Seccionales 2027_", res["Content-Disposition"])
        self.assertEqual(res.content, b"%PDF-1.4 mocked")

        html = render.call_args.kwargs["html"]
        self.assertEqual(html.count('class="card"'), 6)
        self.assertEqual(html.count('class="sheet"'), 2)
        self.assertIn("REVISOR DE", html)
        self.assertIn("OPERADOR DE", html)
        self.assertIn("data:image/png;base64,", html)
        self.assertTrue(AuditLog.objects.filter(event_type="ASSIGNMENT_CREDENTIALS_PDF").exists())

    def test_search_narrows_credentials(self):
        with patch("reports.credentials.render_pdf_bytes_from_html", return_value=b"%PDF") as render:
            res = self.client.get("/api/assignments/credentials/", {"process": self.process.id, "q": "zoila"})
        self.assertEqual(res.status_code, 200)
        self.assertEqual(render.call_args.kwargs["html"].count('class="card"'), 1)

    def test_process_image_is_used_as_logo(self):
        self.process.image = _png_upload("proceso.png", size=(400, 100))
        self.process.save()
        with patch("reports.credentials.render_pdf_bytes_from_html", return_value=b"%PDF") as render:
            self.client.get("/api/assignments/credentials/", {"process": self.process.id})
        self.assertIn(load_logo(self.process.image).data_uri, render.call_args.kwargs["html"])

    def test_pdf_engine_unavailable(self):
        with patch(
            "reports.credentials.render_pdf_bytes_from_html",
            side_effect=WeasyPrintUnavailableError("WeasyPrint no está disponible en este servidor."),
        ):
            res = self.client.get("/api/assignments/credentials/", {"process": self.process.id})
        self.assertEqual(res.status_code, 503)


class ServiceActorTests(TestCase):
    def test_writes_require_signed_in_actor(self):
        member = Member.objects.create(cedula="1400000001", name="Ana")
        process = ElectoralProcess.objects.create(name="Seccionales 2027", start_date=date(2027, 1, 1), end_date=date(2027, 2, 1))

        with self.assertRaises(AuthenticationRequired):
            create_process(actor=None, data={"name": "X", "start_date": date(2027, 1, 1), "end_date": date(2027, 1, 2)})
        with self.assertRaises(AuthenticationRequired):
            create_assignment(actor=None, process=process, member=member, detail=CPEDetail(role="Supervisor"))
        self.assertEqual(ElectoralProcess.objects.count(), 1)
        self.assertFalse(Assignment.objects.exists())
