"""
Gunicorn Configuration

Uvicorn workers under Gunicorn for production deployment of
storefront_reports.main:app.
"""

import multiprocessing
import os

# Server socket
bind = os.getenv("BIND", "0.0.0.0:8000")
backlog = 2048

# Report aggregation is CPU bound, so one worker per core
workers = int(os.getenv("WORKERS", multiprocessing.cpu_count()))
worker_class = "uvicorn.workers.UvicornWorker"
max_requests = 5000
max_requests_jitter = 500
timeout = 120
keepalive = 5
graceful_timeout = 30

proc_name = "storefront-reports-api"

# Logging
errorlog = "-"
accesslog = "-"
loglevel = os.getenv("LOG_LEVEL", "info").lower()
