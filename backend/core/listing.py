"""Schema-driven search and ordering for list screens.

Every roster list (procesos, personal, asignaciones, recintos) is described by
a :class:`ListSchema` and goes through the same pure pipeline:

    rows -> filter_rows(query) -> sort_rows(ordering) -> ListResult

Rows are plain mappings (serializer output). Nothing here touches the
database; the functions are synchronous and deterministic.
"""

from __future__ import annotations

import unicodedata
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Mapping, Sequence, Union

STATE_NO_QUERY = "NO_QUERY"
STATE_RESULTS = "RESULTS"
STATE_NO_RESULTS = "NO_RESULTS"

Accessor = Union[str, Callable[[Mapping[str, Any]], Any]]

_SEARCH_SEPARATOR = "\n"
# Sorts right after "n" so that "ñ" keeps its own slot in Spanish ordering.
_ENYE_PRIMARY = "n￿"


@dataclass(frozen=True)
class SortKey:
    key: str
    descending: bool = False

    def toggled(self) -> "SortKey":
        return SortKey(self.key, not self.descending)

    def __str__(self) -> str:
        return f"-{self.key}" if self.descending else self.key


Ordering = tuple[SortKey, ...]


@dataclass(frozen=True)
class ListSchema:
    name: str
    columns: Mapping[str, Accessor]
    searchable: Sequence[Accessor]
    default_ordering: Ordering = ()

    def search_text(self, row: Mapping[str, Any]) -> str:
        return _SEARCH_SEPARATOR.join(_as_text(resolve_field(row, accessor)) for accessor in self.searchable)


@dataclass
class ListResult:
    rows: list
    total: int
    query: str = ""
    ordering: Ordering = field(default_factory=tuple)

    @property
    def count(self) -> int:
        return len(self.rows)

    @property
    def state(self) -> str:
        if not self.query:
            return STATE_NO_QUERY
        return STATE_RESULTS if self.rows else STATE_NO_RESULTS


def resolve_field(row: Any, accessor: Accessor) -> Any:
    """Read a dotted path (``"member.name"``) or call an accessor on a row."""
    if callable(accessor):
        return accessor(row)

    value = row
    for part in accessor.split("."):
        if value is None:
            return None
        if isinstance(value, Mapping):
            value = value.get(part)
        else:
            value = getattr(value, part, None)
    return value


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def _strip_accents(text: str) -> str:
    chars: list[str] = []
    for ch in text:
        if ch == "ñ":
            chars.append(_ENYE_PRIMARY)
            continue
        decomposed = unicodedata.normalize("NFD", ch)
        chars.append("".join(c for c in decomposed if unicodedata.category(c) != "Mn"))
    return "".join(chars)


def collation_key(value: Any) -> tuple[str, str, str]:
    """Comparison key approximating Spanish ``localeCompare``.

    Base letters decide first, then accents, then case (lowercase first).
    """
    text = _as_text(value)
    folded = text.casefold()
    return (_strip_accents(folded), folded, text.swapcase())


def filter_rows(rows: Iterable[Mapping[str, Any]], query: str, schema: ListSchema) -> list:
    rows = list(rows)
    if not query:
        return rows
    needle = query.lower()
    return [row for row in rows if needle in schema.search_text(row).lower()]


def sort_rows(rows: Iterable[Mapping[str, Any]], ordering: Sequence[SortKey], schema: ListSchema) -> list:
    """Multi-key stable sort; the first key in ``ordering`` has priority."""
    result = list(rows)
    for sort_key in reversed(tuple(ordering)):
        accessor = schema.columns.get(sort_key.key)
        if accessor is None:
            continue
        result.sort(
            key=lambda row, accessor=accessor: collation_key(resolve_field(row, accessor)),
            reverse=sort_key.descending,
        )
    return result


def toggle_sort(ordering: Sequence[SortKey], key: str, *, append: bool = False) -> Ordering:
    """Next ordering after a click on column ``key``.

    A plain click makes ``key`` the only sort key, flipping its direction when
    it was already the primary key. With the modifier held (``append``) the
    key is added at the end, or its direction flipped in place, and every
    other key is kept.
    """
    current = tuple(ordering)
    if append:
        if any(item.key == key for item in current):
            return tuple(item.toggled() if item.key == key else item for item in current)
        return current + (SortKey(key),)

    if current and current[0].key == key:
        return (current[0].toggled(),)
    return (SortKey(key),)


def parse_ordering(raw: str | None, schema: ListSchema) -> Ordering:
    """Parse ``"name,-cedula"``; unknown or repeated keys are ignored."""
    keys: list[SortKey] = []
    seen: set[str] = set()
    for chunk in (raw or "").split(","):
        token = chunk.strip()
        if not token:
            continue
        descending = token.startswith("-")
        name = token.lstrip("-+").strip()
        if name not in schema.columns or name in seen:
            continue
        seen.add(name)
        keys.append(SortKey(name, descending))
    return tuple(keys) or tuple(schema.default_ordering)


def format_ordering(ordering: Sequence[SortKey]) -> str:
    return ",".join(str(item) for item in ordering)


def build_listing(
    rows: Iterable[Mapping[str, Any]],
    *,
    schema: ListSchema,
    query: str = "",
    ordering: Sequence[SortKey] | None = None,
) -> ListResult:
    rows = list(rows)
    effective_ordering = tuple(ordering) if ordering else tuple(schema.default_ordering)
    filtered = filter_rows(rows, query, schema)
    return ListResult(
        rows=sort_rows(filtered, effective_ordering, schema),
        total=len(rows),
        query=query,
        ordering=effective_ordering,
    )
