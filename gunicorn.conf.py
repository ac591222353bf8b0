"""
Gunicorn configuration for the rank ledger API.

    gunicorn -c gunicorn.conf.py rankledger.main:app

Env vars that override defaults:
  PORT     — TCP port to bind
  WORKERS  — number of worker processes (default: 2)

Workers share nothing but the database: streak updates from different
workers are reconciled by the ledger's compare-and-set, so any worker
count is safe. With SQLite, writers serialize on the file lock.
"""
import os

bind = f"0.0.0.0:{os.environ.get('PORT', '8000')}"

workers = int(os.environ.get("WORKERS", "2"))

# Each worker runs Uvicorn's ASGI event loop inside Gunicorn's process manager.
worker_class = "uvicorn.workers.UvicornWorker"

keepalive = 5

# Kill a worker that hasn't responded in 120 s.
timeout = 120

# Application logs go through structlog to stdout; keep gunicorn's there too.
loglevel = "info"
accesslog = "-"
errorlog = "-"
access_log_format = '%(h)s "%(r)s" %(s)s %(b)sB %(D)sµs'

# Wait up to 30 s for in-flight reports to finish on restart.
graceful_timeout = 30
