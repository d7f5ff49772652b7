# backend/wsgi.py
from posdocs import create_app

app = create_app()
