# module backend.app
"""
Instance FastAPI unique, construite par backend.app_setup.factory.create_app.
Les tests importent `backend.app.app`; les serveurs ASGI passent par backend.asgi.
"""
from backend.app_setup.factory import create_app

app = create_app()
