"""ASGI entrypoint for the photo import API."""

from photo_import.api.app import create_app
from photo_import.containers import build_container

app = create_app(build_container())
