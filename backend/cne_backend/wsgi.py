"""
WSGI config for cne_backend project.

It exposes the WSGI callable as a module-level variable named ``application``.
"""

import os
from pathlib import Path

from django.core.wsgi import get_wsgi_application
from dotenv import load_dotenv

# Path(__file__) is backend/cne_backend/wsgi.py; parent.parent is backend/
backend_dir = Path(__file__).resolve().parent.parent

if (backend_dir / ".env").exists():
    load_dotenv(backend_dir / ".env")
else:
    # Try root .env (backend_dir.parent)
    load_dotenv(backend_dir.parent / ".env")

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "cne_backend.settings")

application = get_wsgi_application()
