import os

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./traintrack.db")
MINIO_ENDPOINT = os.getenv("MINIO_ENDPOINT", "minio:9000")
MINIO_ACCESS_KEY = os.getenv("MINIO_ACCESS_KEY", "minioadmin")
MINIO_SECRET_KEY = os.getenv("MINIO_SECRET_KEY", "minioadmin")
MINIO_BUCKET = os.getenv("MINIO_BUCKET", "certificates")
SECRET_KEY = os.getenv("SECRET_KEY", "devsecret")
REDIS_URL = os.getenv("REDIS_URL", "redis://redis:6379/0")
WORKER_QUEUE = os.getenv("WORKER_QUEUE", "certificates")
CELERY_TASK_ALWAYS_EAGER = os.getenv("CELERY_TASK_ALWAYS_EAGER", "0").lower() in ("1", "true", "yes")
PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL", "http://localhost:8000")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# certificate layout; changing these alters every re-rendered certificate
CERT_ORGANIZATION = os.getenv("CERT_ORGANIZATION", "TrainTrack")
CERT_ACCENT_COLOR = os.getenv("CERT_ACCENT_COLOR", "#2563eb")
CERT_DATE_FORMAT = os.getenv("CERT_DATE_FORMAT", "%Y-%m-%d")

DEFAULT_PASSING_SCORE = int(os.getenv("DEFAULT_PASSING_SCORE", "70"))
DEFAULT_RENEWAL_MONTHS = int(os.getenv("DEFAULT_RENEWAL_MONTHS", "3"))
