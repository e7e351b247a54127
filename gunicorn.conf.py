"""Gunicorn configuration for the Quantify API.

Run with: gunicorn -c gunicorn.conf.py "quantify:create_app('production')"
"""

# Server socket
bind = "0.0.0.0:5000"
backlog = 2048

# Worker processes; each request works on its own snapshot, so sync workers suffice
workers = 4
worker_class = "sync"
max_requests = 1000  # Restart workers after this many requests
max_requests_jitter = 100
timeout = 60
keepalive = 5

# Security
limit_request_line = 4094
limit_request_fields = 100
limit_request_field_size = 8190

# Logging
accesslog = "logs/access.log"
errorlog = "logs/error.log"
loglevel = "info"
access_log_format = '%(h)s %(l)s %(u)s %(t)s "%(r)s" %(s)s %(b)s %(D)s'

# Process naming
proc_name = "quantify"

# Server mechanics
preload_app = True
daemon = False
pidfile = "/tmp/quantify.pid"
worker_tmp_dir = "/dev/shm"
