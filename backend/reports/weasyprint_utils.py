from __future__ import annotations

import logging
import mimetypes
from urllib.parse import urlparse

from django.conf import settings
from django.contrib.staticfiles import finders

logger = logging.getLogger(__name__)

PDF_BASE_CSS = """
@page {
    size: A4;
    margin: 12mm 10mm;
    @bottom-right {
        content: "Página " counter(page) " de " counter(pages);
        font-size: 8pt;
        color: #475569;
    }
}

html, body {
    font-family: Helvetica, Arial, sans-serif;
    font-size: 9pt;
    color: #111827;
}

h1 { margin: 0 0 4px 0; color: #153E5C; }
p { margin: 0 0 4px 0; }

table { width: 100%; border-collapse: collapse; }
th, td { padding: 3px 5px; border: 1px solid #cbd5e1; text-align: left; vertical-align: top; }
"""

LANDSCAPE_PAGE_CSS = "@page { size: A4 landscape; }"

# Credential sheets draw edge to edge in absolute centimetres.
BLEED_PAGE_CSS = """
@page {
    size: A4 portrait;
    margin: 0;
    @bottom-right { content: none; }
}
html, body { margin: 0; padding: 0; }
"""

REMOTE_SCHEMES = {"http", "https", "ftp"}


class WeasyPrintUnavailableError(RuntimeError):
    pass


def _static_file(path: str) -> str | None:
    static_url = "/" + (getattr(settings, "STATIC_URL", "") or "static/").strip("/") + "/"
    if not path.startswith(static_url):
        return None
    return finders.find(path[len(static_url):])


def pdf_url_fetcher(url: str, *args, **kwargs):
    """Resolve resources referenced from export templates.

    Logos reach the templates as ``data:`` URIs. ``/static/...`` paths are
    served from the apps' static directories. Network URLs are refused.
    """
    parsed = urlparse(url)
    if parsed.scheme in REMOTE_SCHEMES:
        raise ValueError(f"Recurso remoto no permitido en PDF: {url}")

    local_path = _static_file(parsed.path or "") if parsed.scheme in {"", "file"} else None
    if not local_path:
        from weasyprint.urls import default_url_fetcher  # noqa: PLC0415

        return default_url_fetcher(url, *args, **kwargs)

    mime_type, _ = mimetypes.guess_type(local_path)
    return {
        "file_obj": open(local_path, "rb"),
        "mime_type": mime_type or "application/octet-stream",
        "encoding": None,
        "redirected_url": url,
    }


def render_pdf_bytes_from_html(*, html: str, base_url: str | None = None, extra_css: str = "") -> bytes:
    """Render ``html`` to PDF.

    ``extra_css`` goes after the base stylesheet, so page rules such as
    :data:`LANDSCAPE_PAGE_CSS` or :data:`BLEED_PAGE_CSS` override it.
    """
    try:
        from weasyprint import CSS, HTML  # noqa: PLC0415
    except (ImportError, OSError) as e:  # pragma: no cover
        logger.error("weasyprint import failed: %s", e)
        raise WeasyPrintUnavailableError(
            "No se pudo generar el PDF: WeasyPrint no está disponible en este servidor "
            "(faltan dependencias del sistema como Pango)."
        ) from e

    stylesheets = [CSS(string=PDF_BASE_CSS)]
    if extra_css:
        stylesheets.append(CSS(string=extra_css))

    pdf = HTML(
        string=html,
        base_url=base_url or str(settings.BASE_DIR),
        url_fetcher=pdf_url_fetcher,
    ).write_pdf(stylesheets=stylesheets)
    logger.debug("pdf rendered", extra={"pdf_bytes": len(pdf)})
    return pdf
