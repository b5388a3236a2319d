from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional, Union

from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, Session, create_engine

from invoicegen.core.paths import default_db_path

logger = logging.getLogger(__name__)

_DB_PATH: Path = default_db_path()
_ENGINE: Optional[Engine] = None


def configure(db_path: Union[str, Path, None]) -> Path:
	"""Point the store at another SQLite file (None restores the default); drops the cached engine."""
	global _DB_PATH, _ENGINE
	new_path = Path(db_path) if db_path else default_db_path()
	if _ENGINE is not None:
		_ENGINE.dispose()
		_ENGINE = None
	_DB_PATH = new_path
	return _DB_PATH


def current_db_path() -> Path:
	return _DB_PATH


def get_engine(echo: bool = False) -> Engine:
	"""Return a singleton SQLAlchemy engine for the configured SQLite DB."""
	global _ENGINE
	if _ENGINE is None:
		# Use posix path for SQLAlchemy URL compatibility on Windows
		url = f"sqlite:///{_DB_PATH.as_posix()}"
		_ENGINE = create_engine(url, echo=echo, connect_args={"check_same_thread": False})
		logger.debug("Opened template store at %s", _DB_PATH)
	return _ENGINE


def create_db_and_tables(echo: bool = False) -> None:
	"""Create the SQLite database file and the templates table."""
	# Ensure models are imported so metadata has all tables
	import invoicegen.data.models  # noqa: F401

	_DB_PATH.parent.mkdir(parents=True, exist_ok=True)
	engine = get_engine(echo=echo)
	SQLModel.metadata.create_all(engine)


def get_session(echo: bool = False) -> Session:
	"""Create a new SQLModel Session bound to the configured engine.

	expire_on_commit=False so returned instances keep attribute values after commit.
	"""
	return Session(get_engine(echo=echo), expire_on_commit=False)


@contextmanager
def session_scope(echo: bool = False) -> Generator[Session, None, None]:
	"""Commit on success, roll back on error, always close.

	Usage:
		with session_scope() as s:
			... use s ...
	"""
	session = get_session(echo=echo)
	try:
		yield session
		session.commit()
	except Exception:
		session.rollback()
		raise
	finally:
		session.close()
