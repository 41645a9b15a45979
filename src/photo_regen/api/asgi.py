"""ASGI entrypoint for the photo regeneration API."""

from photo_regen.api.app import create_app
from photo_regen.containers import build_container

app = create_app(build_container())
