import logging

try:
    from backend.closest.config import Config
    from backend.closest.server import create_app
except ImportError:  # pragma: no cover
    from closest.config import Config
    from closest.server import create_app

logging.basicConfig(level=Config.LOG_LEVEL.upper())

# gunicorn -k eventlet -w 1 backend.wsgi:app
app, socketio = create_app()
