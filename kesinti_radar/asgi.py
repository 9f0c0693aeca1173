"""ASGI entry point: ``uvicorn kesinti_radar.asgi:app``."""

from kesinti_radar.main import create_app

app = create_app()
