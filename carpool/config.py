import os
from dotenv import load_dotenv

load_dotenv()

# Redis (realtime tree store, event queue, push relay, job leases)
REDIS_HOST = os.getenv("REDIS_HOST", "localhost")
REDIS_PORT = int(os.getenv("REDIS_PORT", "6379"))

EVENT_QUEUE = os.getenv("EVENT_QUEUE", "document_events")
PUSH_CHANNEL = os.getenv("PUSH_CHANNEL", "push_notifications")

# SMTP (transactional email)
EMAIL_HOST = os.getenv("EMAIL_HOST", "smtp.gmail.com")
EMAIL_PORT = int(os.getenv("EMAIL_PORT", "587"))
EMAIL_USER = os.getenv("EMAIL_USER")
EMAIL_PASSWORD = os.getenv("EMAIL_PASSWORD")
EMAIL_FROM = os.getenv("EMAIL_FROM", "University Carpooling <noreply@carpooling.app>")

# Caller identity for callable functions
SECRET_KEY = os.getenv("SECRET_KEY", "supersecretjwtkey")
ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")

# Store write ceiling per atomic batch
BATCH_LIMIT = int(os.getenv("BATCH_LIMIT", "500"))

SCHEDULE_TIMEZONE = os.getenv("SCHEDULE_TIMEZONE", "America/New_York")
