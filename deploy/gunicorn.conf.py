"""
Gunicorn configuration for the ClassMate Google sync gateway.

Run with: gunicorn -c deploy/gunicorn.conf.py wsgi:app
Every setting can be overridden from the environment.
"""

from __future__ import annotations

import logging
import multiprocessing
import os

# ===== Server Binding =====
bind = os.environ.get("GUNICORN_BIND", "0.0.0.0:8000")

# ===== Worker Settings =====
# Handlers block on Google round-trips; threads keep workers busy meanwhile.
worker_class = os.environ.get("GUNICORN_WORKER_CLASS", "gthread")
workers = int(os.environ.get("GUNICORN_WORKERS", str(multiprocessing.cpu_count() + 1)))
threads = int(os.environ.get("GUNICORN_THREADS", "8"))
max_requests = int(os.environ.get("GUNICORN_MAX_REQUESTS", "5000"))
max_requests_jitter = int(os.environ.get("GUNICORN_MAX_REQUESTS_JITTER", "500"))

# ===== Timeout Settings =====
# Must outlast a full sync: several paged Google calls of GOOGLE_HTTP_TIMEOUT each.
timeout = int(os.environ.get("GUNICORN_TIMEOUT", "120"))
graceful_timeout = int(os.environ.get("GUNICORN_GRACEFUL_TIMEOUT", "30"))
keepalive = int(os.environ.get("GUNICORN_KEEPALIVE", "5"))

# ===== Logging =====
accesslog = os.environ.get("GUNICORN_ACCESSLOG", "-")  # stdout
errorlog = os.environ.get("GUNICORN_ERRORLOG", "-")    # stderr
loglevel = os.environ.get("GUNICORN_LOGLEVEL", "info")
capture_output = True

# Query strings are left out: OAuth codes and tokens can appear there.
access_log_format = os.environ.get(
    "GUNICORN_ACCESS_LOG_FORMAT",
    '{"timestamp": "%(t)s", "remote": "%(h)s", "method": "%(m)s", "path": "%(U)s", '
    '"status": %(s)s, "bytes": %(b)s, "response_time": %(D)s, "pid": %(p)s}',
)

forwarded_allow_ips = os.environ.get("GUNICORN_FORWARDED_ALLOW_IPS", "127.0.0.1")
preload_app = os.environ.get("GUNICORN_PRELOAD", "false").lower() in ("1", "true", "yes")
proc_name = os.environ.get("GUNICORN_PROC_NAME", "classmate-google-sync")


# ===== Lifecycle Hooks =====
def when_ready(server):
    logging.getLogger(__name__).info(
        f"Gunicorn ready on {bind}: workers={workers}, threads={threads}, timeout={timeout}s"
    )


def worker_abort(worker):
    """Called when a worker is timed out and is being replaced."""
    logging.getLogger(__name__).warning(f"Worker {worker.pid} timed out (>{timeout}s), aborting")
