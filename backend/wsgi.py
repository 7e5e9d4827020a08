# backend/wsgi.py
from autocrm import create_app

app = create_app()
