from datetime import date
from unittest.mock import patch

from django.contrib.auth import get_user_model
from django.db import DatabaseError
from django.test import SimpleTestCase
from rest_framework.test import APITestCase

from audit.models import AuditLog
from elections.models import Assignment, ElectoralProcess
from members.models import Member

from .geography import CANTON_PARISHES, catalogue, default_parish, is_valid_location, parishes_for
from .models import CDAPrecinct, PrecinctContact


class GeographyTests(SimpleTestCase):
    def test_default_parish_is_first_of_canton(self):
        self.assertEqual(default_parish("Morona"), "Macas")
        self.assertEqual(default_parish("Sucúa"), "Sucúa")
        self.assertEqual(default_parish("Desconocido"), "Macas")

    def test_parish_must_belong_to_canton(self):
        self.assertTrue(is_valid_location("Morona", "Sinaí"))
        self.assertFalse(is_valid_location("Morona", "Huambi"))
        self.assertFalse(is_valid_location("Desconocido", "Macas"))
        self.assertEqual(parishes_for("Desconocido"), ())

    def test_parishes_are_unique_per_canton(self):
        for canton, parishes in CANTON_PARISHES.items():
            self.assertEqual(len(parishes), len(set(parishes)), canton)

    def test_catalogue_lists_every_canton(self):
        self.assertEqual([entry["canton"] for entry in catalogue()], list(CANTON_PARISHES))


class PrecinctApiTests(APITestCase):
    def setUp(self):
        User = get_user_model()
        self.operator = User.objects.create_user(username="operador", password="pass1234", role=User.ROLE_OPERATOR)
        self.viewer = User.objects.create_user(username="consulta", password="pass1234", role=User.ROLE_VIEWER)

    def test_create_defaults_location_and_writes_contact(self):
        self.client.force_authenticate(user=self.operator)
        res = self.client.post(
            "/api/cda-precincts/",
            {
                "code": "CDA-01",
                "name": "Unidad Educativa Macas",
                "contact": {"rector_name": "Marcia Tiwi", "rector_phone": "0991111111"},
            },
            format="json",
        )
        self.assertEqual(res.status_code, 201)
        self.assertEqual(res.data["canton"], "Morona")
        self.assertEqual(res.data["parish"], "Macas")
        self.assertEqual(res.data["location"], "Morona / Macas")
        self.assertEqual(res.data["contact"]["rector_name"], "Marcia Tiwi")
        self.assertEqual(res.data["contact"]["keys_name"], "")

        precinct = CDAPrecinct.objects.get(code="CDA-01")
        self.assertEqual(precinct.created_by, self.operator)
        self.assertEqual(precinct.contact.rector_phone, "0991111111")
        self.assertTrue(AuditLog.objects.filter(event_type="CDAPRECINCT_CREATED").exists())

    def test_create_without_contact_still_creates_empty_row(self):
        self.client.force_authenticate(user=self.operator)
        res = self.client.post("/api/cda-precincts/", {"code": "CDA-02", "name": "Colegio"}, format="json")
        self.assertEqual(res.status_code, 201)
        self.assertTrue(PrecinctContact.objects.filter(precinct__code="CDA-02").exists())

    def test_parish_outside_canton_is_rejected(self):
        self.client.force_authenticate(user=self.operator)
        res = self.client.post(
            "/api/cda-precincts/",
            {"code": "CDA-03", "name": "Escuela", "canton": "Morona", "parish": "Huambi"},
            format="json",
        )
        self.assertEqual(res.status_code, 400)
        self.assertEqual(str(res.data["parish"][0]), "La parroquia no pertenece al cantón seleccionado.")
        self.assertFalse(CDAPrecinct.objects.filter(code="CDA-03").exists())

    def test_unknown_canton_is_rejected(self):
        self.client.force_authenticate(user=self.operator)
        res = self.client.post(
            "/api/cda-precincts/",
            {"code": "CDA-04", "name": "Escuela", "canton": "Quito"},
            format="json",
        )
        self.assertEqual(res.status_code, 400)
        self.assertIn("canton", res.data)

    def test_changing_canton_resets_parish_to_its_default(self):
        precinct = CDAPrecinct.objects.create(code="CDA-05", name="Escuela")
        self.client.force_authenticate(user=self.operator)
        res = self.client.patch(f"/api/cda-precincts/{precinct.id}/", {"canton": "Sucúa"}, format="json")
        self.assertEqual(res.status_code, 200)
        precinct.refresh_from_db()
        self.assertEqual((precinct.canton, precinct.parish), ("Sucúa", "Sucúa"))

    def test_duplicate_code(self):
        CDAPrecinct.objects.create(code="CDA-06", name="Escuela")
        self.client.force_authenticate(user=self.operator)
        res = self.client.post("/api/cda-precincts/", {"code": "CDA-06", "name": "Otra"}, format="json")
        self.assertEqual(res.status_code, 400)
        self.assertEqual(str(res.data["code"][0]), "Ya existe un CDA con este código.")

    def test_update_upserts_contact(self):
        precinct = CDAPrecinct.objects.create(code="CDA-07", name="Escuela")
        self.client.force_authenticate(user=self.operator)
        res = self.client.patch(
            f"/api/cda-precincts/{precinct.id}/",
            {"name": "Escuela Fiscal", "contact": {"keys_name": "Pedro Ankuash", "keys_phone": "0992222222"}},
            format="json",
        )
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["contact"]["keys_name"], "Pedro Ankuash")
        self.assertEqual(PrecinctContact.objects.get(precinct=precinct).keys_phone, "0992222222")

    def test_contact_failure_keeps_precinct_change(self):
        precinct = CDAPrecinct.objects.create(code="CDA-08", name="Escuela")
        PrecinctContact.objects.create(precinct=precinct, rector_name="Anterior")
        self.client.force_authenticate(user=self.operator)

        with patch.object(PrecinctContact.objects, "update_or_create", side_effect=DatabaseError("contact table locked")):
            res = self.client.patch(
                f"/api/cda-precincts/{precinct.id}/",
                {"name": "Escuela Renovada", "contact": {"rector_name": "Nuevo"}},
                format="json",
            )

        self.assertEqual(res.status_code, 400)
        self.assertEqual(str(res.data["detail"]), "contact table locked")
        precinct.refresh_from_db()
        self.assertEqual(precinct.name, "Escuela Renovada")
        self.assertEqual(PrecinctContact.objects.get(precinct=precinct).rector_name, "Anterior")

    def test_viewer_is_read_only(self):
        precinct = CDAPrecinct.objects.create(code="CDA-09", name="Escuela")
        self.client.force_authenticate(user=self.viewer)
        self.assertEqual(self.client.get("/api/cda-precincts/").status_code, 200)
        res = self.client.patch(f"/api/cda-precincts/{precinct.id}/", {"name": "X"}, format="json")
        self.assertEqual(res.status_code, 403)

    def test_cantons_endpoint(self):
        self.client.force_authenticate(user=self.viewer)
        res = self.client.get("/api/cda-precincts/cantons/")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["default_canton"], "Morona")
        self.assertEqual(res.data["default_parish"], "Macas")
        self.assertEqual(len(res.data["cantons"]), len(CANTON_PARISHES))


class PrecinctListTests(APITestCase):
    def setUp(self):
        User = get_user_model()
        self.viewer = User.objects.create_user(username="consulta", password="pass1234", role=User.ROLE_VIEWER)
        self.macas = CDAPrecinct.objects.create(code="CDA-02", name="Unidad Educativa Macas", address="Av. 29 de Mayo")
        self.sucua = CDAPrecinct.objects.create(
            code="CDA-01", name="Colegio Sucúa", canton="Sucúa", parish="Huambi", is_enabled=False
        )
        PrecinctContact.objects.create(precinct=self.sucua, rector_name="Marcia Tiwi")
        self.client.force_authenticate(user=self.viewer)

    def test_default_order_is_code(self):
        res = self.client.get("/api/cda-precincts/")
        self.assertEqual([row["code"] for row in res.data["results"]], ["CDA-01", "CDA-02"])

    def test_status_filter(self):
        enabled = self.client.get("/api/cda-precincts/", {"status": "ENABLED"})
        self.assertEqual([row["code"] for row in enabled.data["results"]], ["CDA-02"])
        disabled = self.client.get("/api/cda-precincts/", {"status": "DISABLED"})
        self.assertEqual([row["code"] for row in disabled.data["results"]], ["CDA-01"])
        everything = self.client.get("/api/cda-precincts/", {"status": "ALL"})
        self.assertEqual(everything.data["count"], 2)

    def test_search_reaches_contact_fields(self):
        res = self.client.get("/api/cda-precincts/", {"q": "tiwi"})
        self.assertEqual([row["code"] for row in res.data["results"]], ["CDA-01"])

    def test_sort_by_location(self):
        res = self.client.get("/api/cda-precincts/", {"ordering": "location"})
        self.assertEqual([row["code"] for row in res.data["results"]], ["CDA-02", "CDA-01"])

    def test_csv_export_marks_missing_contact(self):
        res = self.client.get("/api/cda-precincts/export/csv/")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res["Content-Disposition"], 'attachment; filename="recintos-cda.csv"')
        lines = res.content.decode("utf-8").split("\n")
        self.assertEqual(
            lines[0],
            "Código,Nombre,Cantón,Parroquia,Dirección,Habilitado,"
            "Rector - Nombre,Rector - Teléfono,Rector - Email,Llaves - Nombre,Llaves - Teléfono",
        )
        self.assertEqual(lines[1], "CDA-01,Colegio Sucúa,Sucúa,Huambi,,No,Marcia Tiwi,-,-,-,-")
        self.assertEqual(lines[2], "CDA-02,Unidad Educativa Macas,Morona,Macas,Av. 29 de Mayo,Sí,-,-,-,-,-")


class PrecinctDeleteTests(APITestCase):
    def setUp(self):
        User = get_user_model()
        self.operator = User.objects.create_user(username="operador", password="pass1234", role=User.ROLE_OPERATOR)
        self.precinct = CDAPrecinct.objects.create(code="CDA-01", name="Unidad Educativa Macas")
        PrecinctContact.objects.create(precinct=self.precinct, rector_name="Marcia Tiwi")
        self.client.force_authenticate(user=self.operator)

    def test_delete_removes_contact(self):
        preview = self.client.get(f"/api/cda-precincts/{self.precinct.id}/delete-preview/")
        self.assertEqual(preview.data["cascades"], {"contact": 1})
        self.assertEqual(preview.data["blocked_by"], {"assignments": 0})

        res = self.client.delete(f"/api/cda-precincts/{self.precinct.id}/")
        self.assertEqual(res.status_code, 204)
        self.assertFalse(PrecinctContact.objects.exists())

    def test_referenced_precinct_cannot_be_deleted(self):
        process = ElectoralProcess.objects.create(name="Seccionales 2027", start_date=date(2027, 1, 1), end_date=date(2027, 2, 1))
        member = Member.objects.create(cedula="1400000001", name="Luis", member_type=Member.MemberType.CDA)
        Assignment.objects.create(process=process, member=member, member_type="CDA", cda_precinct=self.precinct)

        preview = self.client.get(f"/api/cda-precincts/{self.precinct.id}/delete-preview/")
        self.assertEqual(preview.data["blocked_by"], {"assignments": 1})

        with self.assertLogs("core.views", level="WARNING"):
            res = self.client.delete(f"/api/cda-precincts/{self.precinct.id}/")
        self.assertEqual(res.status_code, 409)
        self.assertEqual(res.data["detail"], "Error al eliminar el CDA")
        self.assertTrue(CDAPrecinct.objects.filter(id=self.precinct.id).exists())
        self.assertTrue(AuditLog.objects.filter(event_type="CDAPRECINCT_DELETE_FAILED").exists())

    def test_store_failure_on_delete_keeps_precinct(self):
        with patch.object(CDAPrecinct, "delete", side_effect=DatabaseError("precinct row locked")):
            with self.assertLogs("core.views", level="ERROR"):
                res = self.client.delete(f"/api/cda-precincts/{self.precinct.id}/")
        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.data["detail"], "precinct row locked")
        self.assertTrue(CDAPrecinct.objects.filter(id=self.precinct.id).exists())
        self.assertTrue(PrecinctContact.objects.filter(precinct=self.precinct).exists())
        self.assertTrue(AuditLog.objects.filter(event_type="CDAPRECINCT_DELETE_FAILED").exists())
