"""ASGI entrypoint for the identification API."""

from mia_identity.api.app import create_app
from mia_identity.containers import build_container

app = create_app(build_container())
