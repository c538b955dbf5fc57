"""ASGI entry point for process managers (``gunicorn purchase_api.asgi:app``)."""

from purchase_api.main import create_app

app = create_app()
