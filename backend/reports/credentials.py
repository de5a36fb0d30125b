"""Printable credential sheets.

Four 9 x 13 cm cards per A4 portrait page in a 2 x 2 grid. Each card carries
the institutional (or per-process) logo, a quarter-circle ornament, a "FOTO"
placeholder, three centred fields (name, second name, cédula) and a footer
bar coloured by role.

Layout is computed in :func:`plan_credential_sheet` and only drawn by the
``reports/credentials_sheet.html`` template, so geometry can be checked
without rendering a PDF.
"""

from __future__ import annotations

import base64
import logging
import math
from dataclasses import dataclass
from datetime import date
from io import BytesIO
from pathlib import Path
from typing import Iterable, Sequence

from django.template.loader import render_to_string
from PIL import Image

from .weasyprint_utils import BLEED_PAGE_CSS, render_pdf_bytes_from_html

logger = logging.getLogger(__name__)

# All lengths in centimetres.
PAGE_WIDTH = 21.0
PAGE_HEIGHT = 29.7
CARD_WIDTH = 9.0
CARD_HEIGHT = 13.0
HORIZONTAL_MARGIN = (PAGE_WIDTH - CARD_WIDTH * 2) / 3
VERTICAL_MARGIN = (PAGE_HEIGHT - CARD_HEIGHT * 2) / 3
CARDS_PER_PAGE = 4
GRID_COLUMNS = 2

LOGO_HEIGHT = 1.8
LOGO_TOP = 0.5
ORNAMENT_SIZE = 2.5
ORNAMENT_COLOR = "rgb(41, 101, 171)"
PHOTO_WIDTH = 3.0
PHOTO_HEIGHT = 4.0
PHOTO_TOP = 3.0
PHOTO_LABEL = "FOTO"
FIELDS_TOP = 7.5
FIELD_HEIGHT = 1.1
FIELD_GAP = 0.2
FIELD_INSET = 0.5
CORNER_RADIUS = 0.1
FOOTER_HEIGHT = 1.6
FOOTER_FONT_SIZE_PT = 19

CDA_ROLE = "CDA"
CDA_ROLE_DISPLAY = "Operador de Escáner"
DEFAULT_ROLE_COLOR = "#000000"
ROLE_COLORS = {
    "Operador de Escáner": "#00b376",
    "Digitador": "#016357",
    "Supervisor": "#006cb0",
    "Revisor de Firmas": "#f04e54",
    "Archivador de Actas": "#ef2b4f",
    "Receptor de Actas": "#8a2429",
    CDA_ROLE: "#00b376",
}


class LogoLoadError(Exception):
    pass


@dataclass(frozen=True)
class CredentialPerson:
    name: str
    second_name: str | None
    cedula: str
    role: str


@dataclass(frozen=True)
class LogoImage:
    data_uri: str
    aspect_ratio: float

    @property
    def width(self) -> float:
        return LOGO_HEIGHT * self.aspect_ratio

    @property
    def left(self) -> float:
        return (CARD_WIDTH - self.width) / 2


@dataclass(frozen=True)
class CardField:
    top: float
    text: str


@dataclass(frozen=True)
class BadgeLayout:
    person: CredentialPerson
    index: int
    slot: int
    column: int
    row: int
    x: float
    y: float
    fields: tuple[CardField, ...]
    footer_color: str
    footer_lines: tuple[str, ...]


def role_display(role: str) -> str:
    return CDA_ROLE_DISPLAY if role == CDA_ROLE else role


def role_color(role: str) -> str:
    return ROLE_COLORS.get(role, DEFAULT_ROLE_COLOR)


def footer_lines(role: str) -> tuple[str, ...]:
    """Upper-cased footer label; more than two words wrap onto two lines."""
    label = role_display(role or "").upper()
    words = label.split(" ")
    if len(words) > 2:
        half = math.ceil(len(words) / 2)
        return (" ".join(words[:half]), " ".join(words[half:]))
    return (label,)


def card_origin(slot: int) -> tuple[float, float]:
    column = slot % GRID_COLUMNS
    row = slot // GRID_COLUMNS
    x = HORIZONTAL_MARGIN + column * (CARD_WIDTH + HORIZONTAL_MARGIN)
    y = VERTICAL_MARGIN + row * (CARD_HEIGHT + VERTICAL_MARGIN)
    return x, y


def plan_credential_sheet(people: Iterable[CredentialPerson]) -> list[list[BadgeLayout]]:
    pages: list[list[BadgeLayout]] = []
    for index, person in enumerate(people):
        slot = index % CARDS_PER_PAGE
        if slot == 0:
            pages.append([])
        x, y = card_origin(slot)
        texts = (person.name or "", person.second_name or "", person.cedula or "")
        pages[-1].append(
            BadgeLayout(
                person=person,
                index=index,
                slot=slot,
                column=slot % GRID_COLUMNS,
                row=slot // GRID_COLUMNS,
                x=x,
                y=y,
                fields=tuple(
                    CardField(top=FIELDS_TOP + position * (FIELD_HEIGHT + FIELD_GAP), text=text)
                    for position, text in enumerate(texts)
                ),
                footer_color=role_color(person.role),
                footer_lines=footer_lines(person.role),
            )
        )
    return pages


def credentials_filename(process_name: str, day: date) -> str:
    return f"Credenciales_{process_name}_{day.isoformat()}.pdf"


def _read_source(source) -> tuple[bytes, str]:
    if isinstance(source, (str, Path)):
        path = Path(source)
        return path.read_bytes(), path.name

    name = getattr(source, "name", "") or ""
    source.open("rb")
    try:
        return source.read(), name
    finally:
        source.close()


def load_logo(source) -> LogoImage:
    """Read an image into a PNG data URI plus its aspect ratio."""
    try:
        data, name = _read_source(source)
        if not data:
            raise LogoLoadError(f"Imagen vacía: {name or source!r}")

        with Image.open(BytesIO(data)) as img:
            img.load()
            width, height = img.size
            if not width or not height:
                raise LogoLoadError(f"Imagen sin dimensiones: {name}")
            output = BytesIO()
            img.convert("RGBA").save(output, format="PNG")
    except (OSError, ValueError) as e:
        raise LogoLoadError(str(e)) from e

    encoded = base64.b64encode(output.getvalue()).decode("ascii")
    return LogoImage(data_uri=f"data:image/png;base64,{encoded}", aspect_ratio=width / height)


def resolve_logo(process_image, default_logo) -> LogoImage | None:
    """Process image first, then the default logo once; ``None`` if both fail."""
    candidates = [candidate for candidate in (process_image, default_logo) if candidate]
    for candidate in candidates:
        try:
            return load_logo(candidate)
        except LogoLoadError:
            logger.exception("credential logo could not be loaded", extra={"logo_source": str(candidate)})
    return None


def render_credentials_pdf(people: Sequence[CredentialPerson], *, logo: LogoImage | None) -> bytes:
    html = render_to_string(
        "reports/credentials_sheet.html",
        {
            "pages": plan_credential_sheet(people),
            "logo": logo,
            "page": {"width": PAGE_WIDTH, "height": PAGE_HEIGHT},
            "card": {
                "width": CARD_WIDTH,
                "height": CARD_HEIGHT,
                "corner_radius": CORNER_RADIUS,
                "logo_top": LOGO_TOP,
                "logo_height": LOGO_HEIGHT,
                "ornament_size": ORNAMENT_SIZE,
                "ornament_color": ORNAMENT_COLOR,
                "photo_width": PHOTO_WIDTH,
                "photo_height": PHOTO_HEIGHT,
                "photo_top": PHOTO_TOP,
                "photo_left": (CARD_WIDTH - PHOTO_WIDTH) / 2,
                "photo_label": PHOTO_LABEL,
                "field_inset": FIELD_INSET,
                "field_width": CARD_WIDTH - FIELD_INSET * 2,
                "field_height": FIELD_HEIGHT,
                "footer_height": FOOTER_HEIGHT,
                "footer_top": CARD_HEIGHT - FOOTER_HEIGHT,
                "footer_font_size": FOOTER_FONT_SIZE_PT,
            },
        },
    )
    return render_pdf_bytes_from_html(html=html, extra_css=BLEED_PAGE_CSS)
