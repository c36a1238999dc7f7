"""
ASGI entrypoint: ``uvicorn main:app --reload`` from the backend directory.
"""

from chronicle.app import create_app

app = create_app()
