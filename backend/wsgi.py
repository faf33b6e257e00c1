# backend/wsgi.py
from safetyhub import create_app

app = create_app()
