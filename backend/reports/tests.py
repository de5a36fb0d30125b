import tempfile
from datetime import date
from io import BytesIO
from pathlib import Path
from unittest.mock import patch

from django.conf import settings
from django.test import SimpleTestCase
from openpyxl import load_workbook
from PIL import Image

from reports.credentials import (
	CARD_HEIGHT,
	CARD_WIDTH,
	DEFAULT_ROLE_COLOR,
	HORIZONTAL_MARGIN,
	VERTICAL_MARGIN,
	CredentialPerson,
	credentials_filename,
	footer_lines,
	load_logo,
	plan_credential_sheet,
	render_credentials_pdf,
	resolve_logo,
	role_color,
	role_display,
)
from reports.exports import build_export_response, rows_to_csv, rows_to_pdf, rows_to_xlsx
from reports.weasyprint_utils import pdf_url_fetcher


class CsvExportTests(SimpleTestCase):
	def test_values_with_delimiter_are_quoted(self):
		self.assertEqual(rows_to_csv([{"A": "1,2", "B": "x"}]), 'A,B\n"1,2",x')

	def test_embedded_quotes_are_not_escaped(self):
		self.assertEqual(rows_to_csv([{"A": 'dice "hola", adiós'}]), 'A\n"dice "hola", adiós"')

	def test_header_comes_from_first_row_and_none_is_empty(self):
		rows = [{"Nombre": "Ana", "Email": None}, {"Nombre": "Luis", "Email": "l@cne.ec", "Extra": "ignored"}]
		self.assertEqual(rows_to_csv(rows), "Nombre,Email\nAna,\nLuis,l@cne.ec")

	def test_empty_input_is_empty_document(self):
		self.assertEqual(rows_to_csv([]), "")

	def test_keeps_given_order(self):
		rows = [{"N": "b"}, {"N": "a"}, {"N": "c"}]
		self.assertEqual(rows_to_csv(rows).splitlines()[1:], ["b", "a", "c"])


class XlsxExportTests(SimpleTestCase):
	def test_single_sheet_named_datos_with_key_order(self):
		content = rows_to_xlsx([{"Cédula": "1400000001", "Nombre": "Ana"}, {"Cédula": "1400000002", "Nombre": "Luis"}])
		workbook = load_workbook(filename=BytesIO(content))
		self.assertEqual(workbook.sheetnames, ["Datos"])
		values = list(workbook["Datos"].iter_rows(values_only=True))
		self.assertEqual(values, [("Cédula", "Nombre"), ("1400000001", "Ana"), ("1400000002", "Luis")])


class PdfExportTests(SimpleTestCase):
	def test_table_html_has_title_date_and_columns(self):
		with patch("reports.exports.render_pdf_bytes_from_html", return_value=b"%PDF-1.4 mocked") as render:
			pdf = rows_to_pdf([{"Nombre": "Ana", "Tipo": "CPE"}], "Lista de Personal", generated_on=date(2026, 10, 19))

		self.assertEqual(pdf, b"%PDF-1.4 mocked")
		html = render.call_args.kwargs["html"]
		self.assertIn("Lista de Personal", html)
		self.assertIn("Fecha: 19/10/2026", html)
		self.assertIn("<th>Nombre</th>", html)
		self.assertIn("<td>Ana</td>", html)
		self.assertIn("#153E5C", html)
		self.assertIn("landscape", render.call_args.kwargs["extra_css"])

	def test_empty_input_renders_placeholder(self):
		with patch("reports.exports.render_pdf_bytes_from_html", return_value=b"%PDF") as render:
			rows_to_pdf([], "Recintos CDA")

		html = render.call_args.kwargs["html"]
		self.assertIn("No hay datos para exportar", html)
		self.assertNotIn("<table>", html)


class ExportResponseTests(SimpleTestCase):
	def test_attachment_names(self):
		rows = [{"A": "1"}]
		csv_response = build_export_response(rows, file_format="csv", filename="personal", title="t")
		self.assertEqual(csv_response["Content-Disposition"], 'attachment; filename="personal.csv"')
		self.assertTrue(csv_response["Content-Type"].startswith("text/csv"))

		xlsx_response = build_export_response(rows, file_format="xlsx", filename="personal", title="t")
		self.assertEqual(xlsx_response["Content-Disposition"], 'attachment; filename="personal.xlsx"')

	def test_unknown_format(self):
		with self.assertRaises(ValueError):
			build_export_response([], file_format="txt", filename="x", title="t")


def _person(index: int, role: str = "Supervisor") -> CredentialPerson:
	return CredentialPerson(name=f"Nombre {index}", second_name=f"Apellido {index}", cedula=f"14000000{index:02d}", role=role)


class CredentialLayoutTests(SimpleTestCase):
	def test_five_people_make_two_pages(self):
		pages = plan_credential_sheet([_person(i) for i in range(5)])
		self.assertEqual([len(page) for page in pages], [4, 1])
		self.assertEqual([(badge.column, badge.row) for badge in pages[0]], [(0, 0), (1, 0), (0, 1), (1, 1)])
		self.assertEqual(pages[1][0].slot, 0)
		self.assertEqual(pages[1][0].index, 4)

	def test_grid_origins_center_two_columns_and_rows(self):
		pages = plan_credential_sheet([_person(i) for i in range(4)])
		first, second, third, fourth = pages[0]
		self.assertAlmostEqual(HORIZONTAL_MARGIN, 1.0)
		self.assertAlmostEqual(VERTICAL_MARGIN, (29.7 - 26) / 3)
		self.assertAlmostEqual(first.x, HORIZONTAL_MARGIN)
		self.assertAlmostEqual(first.y, VERTICAL_MARGIN)
		self.assertAlmostEqual(second.x, HORIZONTAL_MARGIN * 2 + CARD_WIDTH)
		self.assertAlmostEqual(third.y, VERTICAL_MARGIN * 2 + CARD_HEIGHT)
		self.assertAlmostEqual(fourth.x, second.x)
		self.assertAlmostEqual(fourth.y, third.y)

	def test_empty_list_has_no_pages(self):
		self.assertEqual(plan_credential_sheet([]), [])

	def test_fields_stack_name_second_name_and_cedula(self):
		badge = plan_credential_sheet([CredentialPerson(name="Ana", second_name=None, cedula="1400000001", role="CDA")])[0][0]
		self.assertEqual([field.text for field in badge.fields], ["Ana", "", "1400000001"])
		self.assertAlmostEqual(badge.fields[0].top, 7.5)
		self.assertAlmostEqual(badge.fields[1].top, 8.8)
		self.assertAlmostEqual(badge.fields[2].top, 10.1)

	def test_footer_wraps_three_or_more_words(self):
		self.assertEqual(footer_lines("Revisor de Firmas"), ("REVISOR DE", "FIRMAS"))
		self.assertEqual(footer_lines("Administrador Técnico Provincial"), ("ADMINISTRADOR TÉCNICO", "PROVINCIAL"))
		self.assertEqual(footer_lines("Archivador de Actas Extra"), ("ARCHIVADOR DE", "ACTAS EXTRA"))
		self.assertEqual(footer_lines("Supervisor"), ("SUPERVISOR",))
		self.assertEqual(footer_lines("Operador Escáner"), ("OPERADOR ESCÁNER",))

	def test_cda_role_is_shown_as_scanner_operator(self):
		self.assertEqual(role_display("CDA"), "Operador de Escáner")
		self.assertEqual(footer_lines("CDA"), ("OPERADOR DE", "ESCÁNER"))
		self.assertEqual(role_color("CDA"), "#00b376")

	def test_unmapped_role_is_black(self):
		badge = plan_credential_sheet([_person(1, role="Administrador Técnico Provincial")])[0][0]
		self.assertEqual(badge.footer_color, DEFAULT_ROLE_COLOR)
		self.assertEqual(DEFAULT_ROLE_COLOR, "#000000")
		self.assertEqual(role_color("Revisor de Firmas"), "#f04e54")

	def test_filename(self):
		self.assertEqual(
			credentials_filename("Elecciones Seccionales 2027", date(2026, 10, 19)),
			"Credenciales_Elecciones Seccionales 2027_2026-10-19.pdf",
		)


class CredentialLogoTests(SimpleTestCase):
	def test_default_logo_loads_with_aspect_ratio(self):
		logo = load_logo(settings.CREDENTIALS_DEFAULT_LOGO_PATH)
		self.assertTrue(logo.data_uri.startswith("data:image/png;base64,"))
		self.assertAlmostEqual(logo.aspect_ratio, 2.5)
		self.assertAlmostEqual(logo.width, 4.5)
		self.assertAlmostEqual(logo.left, (CARD_WIDTH - 4.5) / 2)

	def test_raster_image_is_converted_to_png(self):
		with tempfile.TemporaryDirectory() as tmp:
			path = Path(tmp) / "proceso.jpg"
			Image.new("RGB", (400, 100), color=(41, 101, 171)).save(path, format="JPEG")
			logo = load_logo(path)
		self.assertTrue(logo.data_uri.startswith("data:image/png;base64,"))
		self.assertAlmostEqual(logo.aspect_ratio, 4.0)

	def test_broken_process_image_falls_back_to_default(self):
		with tempfile.TemporaryDirectory() as tmp:
			broken = Path(tmp) / "roto.png"
			broken.write_bytes(b"not an image")
			with self.assertLogs("reports.credentials", level="ERROR"):
				logo = resolve_logo(broken, settings.CREDENTIALS_DEFAULT_LOGO_PATH)
		self.assertIsNotNone(logo)
		self.assertTrue(logo.data_uri.startswith("data:image/png;base64,"))
		self.assertAlmostEqual(logo.aspect_ratio, 2.5)

	def test_both_images_failing_omits_logo(self):
		with self.assertLogs("reports.credentials", level="ERROR") as logs:
			logo = resolve_logo("/nonexistent/proceso.png", "/nonexistent/logo.png")
		self.assertIsNone(logo)
		self.assertEqual(len(logs.records), 2)

	def test_sheet_renders_without_logo(self):
		people = [_person(i) for i in range(5)]
		with patch("reports.credentials.render_pdf_bytes_from_html", return_value=b"%PDF-1.4 mocked") as render:
			pdf = render_credentials_pdf(people, logo=None)

		self.assertEqual(pdf, b"%PDF-1.4 mocked")
		html = render.call_args.kwargs["html"]
		self.assertEqual(html.count('class="sheet"'), 2)
		self.assertEqual(html.count('class="card"'), 5)
		self.assertEqual(html.count(">FOTO<"), 5)
		self.assertNotIn('class="logo"', html)
		self.assertIn("REVISOR DE", render_credentials_html_for("Revisor de Firmas"))


def render_credentials_html_for(role: str) -> str:
	with patch("reports.credentials.render_pdf_bytes_from_html", return_value=b"%PDF") as render:
		render_credentials_pdf([_person(1, role=role)], logo=load_logo(settings.CREDENTIALS_DEFAULT_LOGO_PATH))
	return render.call_args.kwargs["html"]


class PdfUrlFetcherTests(SimpleTestCase):
	def test_remote_urls_are_refused(self):
		with self.assertRaises(ValueError):
			pdf_url_fetcher("https://example.com/logo.png")

	def test_static_logo_is_served_locally(self):
		result = pdf_url_fetcher("/static/reports/img/logo_institucional.png")
		try:
			self.assertEqual(result["mime_type"], "image/png")
			self.assertTrue(result["file_obj"].read().startswith(b"\x89PNG"))
		finally:
			result["file_obj"].close()
