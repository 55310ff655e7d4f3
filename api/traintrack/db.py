import logging
from sqlmodel import SQLModel, create_engine, Session
from sqlalchemy import text, inspect
from sqlalchemy.exc import NoSuchTableError
from .config import DATABASE_URL

logger = logging.getLogger(__name__)

_connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(DATABASE_URL, echo=False, pool_pre_ping=True, connect_args=_connect_args)

def init_db():
    from .models import CertificateRecord  # noqa: F401
    SQLModel.metadata.create_all(engine)
    _ensure_certificate_id_unique_index()

def get_session():
    with Session(engine) as session:
        yield session

def _ensure_certificate_id_unique_index():
    inspector = inspect(engine)
    try:
        indexes = inspector.get_indexes("certificaterecord")
    except NoSuchTableError:
        return
    if any(idx.get("name") == "uq_certificate_id" for idx in indexes):
        return
    with engine.begin() as conn:
        duplicates = conn.execute(
            text("SELECT certificate_id FROM certificaterecord GROUP BY certificate_id HAVING COUNT(*) > 1")
        ).fetchall()
        if duplicates:
            ids = ", ".join(row[0] for row in duplicates if row[0])
            logger.warning("duplicate certificate ids detected; resolve before enforcing uniqueness: %s", ids)
            return
        conn.execute(text("CREATE UNIQUE INDEX IF NOT EXISTS uq_certificate_id ON certificaterecord(certificate_id)"))
