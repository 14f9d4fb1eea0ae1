"""
WSGI entry point, e.g. gunicorn wsgi:application
Configuration comes from FLASK_ENV / the environment.
"""
from docspot import create_app

application = app = create_app()
