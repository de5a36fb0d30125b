from datetime import date

from django.contrib.auth import get_user_model
from django.test import SimpleTestCase
from rest_framework.test import APITestCase

from core.listing import (
    STATE_NO_QUERY,
    STATE_NO_RESULTS,
    STATE_RESULTS,
    ListSchema,
    SortKey,
    build_listing,
    collation_key,
    filter_rows,
    format_ordering,
    parse_ordering,
    sort_rows,
    toggle_sort,
)
from core.views import SchemaListMixin
from elections.models import Assignment, ElectoralProcess
from members.models import Member
from precincts.models import CDAPrecinct


SCHEMA = ListSchema(
    name="people",
    columns={
        "name": "name",
        "cedula": "cedula",
        "city": "place.city",
        "label": lambda row: f"{row['name']}-{row['cedula']}",
    },
    searchable=("name", "cedula", "place.city"),
    default_ordering=(SortKey("name"),),
)


def _rows():
    return [
        {"id": 1, "name": "Ñusta", "cedula": "0300", "place": {"city": "Macas"}},
        {"id": 2, "name": "álvaro", "cedula": "0100", "place": {"city": "Sucúa"}},
        {"id": 3, "name": "Beatriz", "cedula": "0200", "place": None},
        {"id": 4, "name": "Nora", "cedula": "0100", "place": {"city": "Macas"}},
        {"id": 5, "name": "beatriz", "cedula": "0500", "place": {"city": "Gualaquiza"}},
    ]


def _ids(rows):
    return [row["id"] for row in rows]


class FilterRowsTests(SimpleTestCase):
    def test_empty_query_returns_input_unchanged(self):
        rows = _rows()
        self.assertEqual(filter_rows(rows, "", SCHEMA), rows)

    def test_case_insensitive_substring_over_searchable_fields(self):
        rows = _rows()
        self.assertEqual(_ids(filter_rows(rows, "MACAS", SCHEMA)), [1, 4])
        self.assertEqual(_ids(filter_rows(rows, "beaT", SCHEMA)), [3, 5])
        self.assertEqual(_ids(filter_rows(rows, "0100", SCHEMA)), [2, 4])

    def test_result_is_subset_in_input_order(self):
        rows = _rows()
        for term in ["a", "0", "z", "Ñ", "sucúa"]:
            result = filter_rows(rows, term, SCHEMA)
            expected = [row for row in rows if term.lower() in SCHEMA.search_text(row).lower()]
            self.assertEqual(result, expected)

    def test_fields_are_not_joined_into_false_matches(self):
        rows = [{"name": "Ana", "cedula": "Pérez", "place": None}]
        self.assertEqual(filter_rows(rows, "anapérez", SCHEMA), [])

    def test_missing_nested_field_is_treated_as_empty(self):
        rows = _rows()
        self.assertEqual(_ids(filter_rows(rows, "None", SCHEMA)), [])


class CollationTests(SimpleTestCase):
    def test_accents_do_not_change_base_order(self):
        values = ["Óscar", "oliva", "Ana", "álvaro"]
        self.assertEqual(sorted(values, key=collation_key), ["álvaro", "Ana", "oliva", "Óscar"])

    def test_enye_sorts_between_n_and_o(self):
        values = ["Oscar", "Ñusta", "Nora", "Nz"]
        self.assertEqual(sorted(values, key=collation_key), ["Nora", "Nz", "Ñusta", "Oscar"])

    def test_none_sorts_as_empty_string(self):
        self.assertEqual(collation_key(None), collation_key(""))


class SortRowsTests(SimpleTestCase):
    def test_single_key_ascending_and_descending(self):
        rows = _rows()
        asc = sort_rows(rows, (SortKey("name"),), SCHEMA)
        self.assertEqual([row["name"] for row in asc], ["álvaro", "beatriz", "Beatriz", "Nora", "Ñusta"])
        desc = sort_rows(rows, (SortKey("name", descending=True),), SCHEMA)
        self.assertEqual([row["name"] for row in desc], ["Ñusta", "Nora", "Beatriz", "beatriz", "álvaro"])

    def test_multi_key_uses_next_key_on_ties(self):
        rows = _rows()
        ordering = (SortKey("cedula"), SortKey("name", descending=True))
        self.assertEqual(_ids(sort_rows(rows, ordering, SCHEMA)), [4, 2, 3, 1, 5])

    def test_sorting_is_idempotent(self):
        rows = _rows()
        ordering = (SortKey("city"),)
        once = sort_rows(rows, ordering, SCHEMA)
        self.assertEqual(sort_rows(once, ordering, SCHEMA), once)

    def test_toggling_twice_restores_tie_order(self):
        rows = _rows()
        ordering = (SortKey("city"),)
        original = sort_rows(rows, ordering, SCHEMA)
        flipped = sort_rows(original, (SortKey("city", descending=True),), SCHEMA)
        restored = sort_rows(flipped, ordering, SCHEMA)
        self.assertEqual(_ids(restored), _ids(original))

    def test_callable_column_and_unknown_key(self):
        rows = _rows()
        by_label = sort_rows(rows, (SortKey("label"),), SCHEMA)
        self.assertEqual(_ids(by_label), [2, 3, 5, 4, 1])
        self.assertEqual(sort_rows(rows, (SortKey("missing"),), SCHEMA), rows)


class ToggleSortTests(SimpleTestCase):
    def test_plain_click_replaces_or_flips_primary(self):
        self.assertEqual(toggle_sort((), "name"), (SortKey("name"),))
        self.assertEqual(toggle_sort((SortKey("name"),), "name"), (SortKey("name", True),))
        self.assertEqual(toggle_sort((SortKey("name"), SortKey("cedula")), "cedula"), (SortKey("cedula"),))

    def test_modifier_appends_or_toggles_in_place(self):
        ordering = (SortKey("name"),)
        ordering = toggle_sort(ordering, "cedula", append=True)
        self.assertEqual(ordering, (SortKey("name"), SortKey("cedula")))
        ordering = toggle_sort(ordering, "cedula", append=True)
        self.assertEqual(ordering, (SortKey("name"), SortKey("cedula", True)))
        ordering = toggle_sort(ordering, "name", append=True)
        self.assertEqual(ordering, (SortKey("name", True), SortKey("cedula", True)))


class OrderingParamTests(SimpleTestCase):
    def test_parse_and_format(self):
        ordering = parse_ordering("cedula, -name,bogus,cedula", SCHEMA)
        self.assertEqual(ordering, (SortKey("cedula"), SortKey("name", True)))
        self.assertEqual(format_ordering(ordering), "cedula,-name")

    def test_blank_falls_back_to_default(self):
        self.assertEqual(parse_ordering("", SCHEMA), (SortKey("name"),))
        self.assertEqual(parse_ordering(None, SCHEMA), (SortKey("name"),))


class BuildListingTests(SimpleTestCase):
    def test_states(self):
        rows = _rows()
        self.assertEqual(build_listing(rows, schema=SCHEMA).state, STATE_NO_QUERY)
        self.assertEqual(build_listing(rows, schema=SCHEMA, query="macas").state, STATE_RESULTS)
        empty = build_listing(rows, schema=SCHEMA, query="zzz")
        self.assertEqual(empty.state, STATE_NO_RESULTS)
        self.assertEqual(empty.count, 0)
        self.assertEqual(empty.total, 5)

    def test_no_query_on_empty_data_is_not_a_failed_search(self):
        listing = build_listing([], schema=SCHEMA)
        self.assertEqual(listing.state, STATE_NO_QUERY)
        self.assertEqual(listing.total, 0)

    def test_default_ordering_applies(self):
        listing = build_listing(_rows(), schema=SCHEMA, query="a")
        self.assertEqual(listing.ordering, (SortKey("name"),))
        self.assertEqual(_ids(listing.rows), [2, 5, 3, 4, 1])


class ExportRowTests(SimpleTestCase):
    def test_rows_export_unchanged_by_default(self):
        row = {"name": "Ana", "cedula": "1400000001"}
        exported = SchemaListMixin().export_row(row)
        self.assertEqual(exported, row)
        self.assertIsNot(exported, row)


class DashboardSummaryTests(APITestCase):
    def setUp(self):
        User = get_user_model()
        self.user = User.objects.create_user(username="viewer", password="pass1234", role=User.ROLE_VIEWER)

    def test_requires_authentication(self):
        res = self.client.get("/api/dashboard/summary/")
        self.assertEqual(res.status_code, 401)

    def test_counts(self):
        process = ElectoralProcess.objects.create(name="Seccionales 2027", start_date=date(2027, 1, 1), end_date=date(2027, 2, 1))
        cpe = Member.objects.create(cedula="1400000001", name="Ana", member_type=Member.MemberType.CPE)
        Member.objects.create(cedula="1400000002", name="Luis", member_type=Member.MemberType.CDA)
        CDAPrecinct.objects.create(code="CDA-01", name="Unidad Educativa Macas")
        CDAPrecinct.objects.create(code="CDA-02", name="Colegio Sucúa", canton="Sucúa", parish="Sucúa", is_enabled=False)
        Assignment.objects.create(process=process, member=cpe, member_type="CPE", role=Assignment.CPERole.SUPERVISOR)

        self.client.force_authenticate(user=self.user)
        res = self.client.get("/api/dashboard/summary/")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["processes"], 1)
        self.assertEqual(res.data["members"], 2)
        self.assertEqual(res.data["members_by_type"], {"CPE": 1, "CDA": 1})
        self.assertEqual(res.data["assignments"], 1)
        self.assertEqual(res.data["precincts"], 2)
        self.assertEqual(res.data["precincts_enabled"], 1)
