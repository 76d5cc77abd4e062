# Gunicorn configuration file for Beekeeper
# https://docs.gunicorn.org/en/stable/settings.html

import multiprocessing
import os

# Server socket
bind = os.environ.get("GUNICORN_BIND", "127.0.0.1:5000")  # Nginx proxies to this
backlog = 2048

# Worker processes
workers = int(os.environ.get("GUNICORN_WORKERS", multiprocessing.cpu_count() * 2 + 1))
worker_class = "sync"
timeout = 30
keepalive = 5
max_requests = 1000
max_requests_jitter = 50

# Server mechanics
daemon = False  # Let systemd manage the daemon
pidfile = "/run/beekeeper/gunicorn.pid"
tmp_upload_dir = None

# Logging
errorlog = "/var/log/beekeeper/gunicorn-error.log"
accesslog = "/var/log/beekeeper/gunicorn-access.log"
loglevel = "info"
access_log_format = '%(h)s %(l)s %(u)s %(t)s "%(r)s" %(s)s %(b)s "%(f)s" "%(a)s" %(D)s'

proc_name = "beekeeper"

# Security
limit_request_line = 4094
limit_request_fields = 100
limit_request_field_size = 8190

# Rate limit counters live in RATELIMIT_STORAGE_URI; production points
# it at Redis so all workers share them.
