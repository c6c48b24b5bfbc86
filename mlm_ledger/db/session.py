import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from mlm_ledger.core.config import SQLALCHEMY_DATABASE_URI

logger = logging.getLogger(__name__)

# Determine if we are using SQLite
is_sqlite = SQLALCHEMY_DATABASE_URI.startswith("sqlite")

connect_args = {}
if is_sqlite:
    connect_args = {"check_same_thread": False}

engine = create_engine(SQLALCHEMY_DATABASE_URI, pool_pre_ping=True, connect_args=connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

@contextmanager
def atomic(db: Session) -> Iterator[Session]:
    """
    Run a block as one transaction: commit on success, roll back and re-raise on any error.

    Usage:
        with atomic(db):
            crud_ledger.create_entry(db, ...)
            wallet.credit(db, ...)
    """
    try:
        yield db
        db.commit()
    except Exception:
        logger.debug("Rolling back transaction", exc_info=True)
        db.rollback()
        raise
