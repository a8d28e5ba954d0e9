from __future__ import annotations

import os
from contextlib import contextmanager
from typing import Iterator
from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session, sessionmaker
from services.config import settings


def _ensure_sqlite_dir(url: str) -> None:
	parsed = make_url(url)
	if parsed.get_backend_name() != "sqlite" or not parsed.database or parsed.database == ":memory:":
		return
	folder = os.path.dirname(parsed.database)
	if folder:
		os.makedirs(folder, exist_ok=True)


_ensure_sqlite_dir(settings.database_url)

engine = create_engine(
	settings.database_url,
	future=True,
	echo=False,
	pool_pre_ping=True,
)

SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False, future=True)


@contextmanager
def session_scope() -> Iterator[Session]:
	session = SessionLocal()
	try:
		yield session
		session.commit()
	except Exception:
		session.rollback()
		raise
	finally:
		session.close()


def init_db() -> None:
	from db.models import Base

	Base.metadata.create_all(bind=engine)
