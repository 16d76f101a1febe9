"""
wsgi.py — Entry point for `flask --app backend.wsgi run` and WSGI servers.

FLASK_ENV selects the config class (development, testing, production).
"""

import os

from backend.campusshare import create_app

app = create_app(os.getenv("FLASK_ENV", "development"))
