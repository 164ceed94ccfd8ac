"""Marketplace FastAPI application.

Processes commands synchronously via HTTP inside the marketplace domain
context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

from marketplace.api.app import create_app
from marketplace.domain import marketplace
from marketplace.utils.logging import configure_logging

# PROTEAN_ENV controls which domain.toml overlay is applied.
configure_logging()
marketplace.init()

app = create_app()
