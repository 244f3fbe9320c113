# =============================================================================
# GUNICORN CONFIGURATION
# ReportDesk Backend - ASGI server (HTTP + websockets)
#
#   gunicorn -c gunicorn.conf.py
# =============================================================================

import os

# =============================================================================
# SERVER
# =============================================================================

bind = os.getenv("GUNICORN_BIND", "0.0.0.0:8000")
wsgi_app = "reportdesk_backend.asgi:application"

# Live websocket connections are tracked in process memory, so every
# client must land on the same process: exactly one worker.
workers = 1
worker_class = "uvicorn.workers.UvicornWorker"

timeout = int(os.getenv("GUNICORN_TIMEOUT", "60"))

# The ASGI lifespan shutdown closes open sockets within this window
graceful_timeout = int(os.getenv("GUNICORN_GRACEFUL_TIMEOUT", "30"))
keepalive = 5

limit_request_line = 4094
limit_request_fields = 100
limit_request_field_size = 8190

daemon = False
chdir = os.getenv("GUNICORN_CHDIR", os.path.dirname(os.path.abspath(__file__)))
proc_name = "reportdesk"

# =============================================================================
# LOGGING
# =============================================================================

accesslog = "-"
errorlog = "-"
loglevel = os.getenv("GUNICORN_LOG_LEVEL", "info")
capture_output = True


def post_worker_init(worker):
    """Announce the single-worker constraint once the app is loaded."""
    worker.log.info(
        "ReportDesk worker %s ready (websocket connections are process-local)", worker.pid
    )
