from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from typing import Any, Dict, Generator, List, Optional

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text, create_engine, select
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.orm.exc import StaleDataError
from sqlalchemy.pool import StaticPool

from .errors import Conflict, StoreError
from .models import TaskEntity
from .repositories import UPDATABLE_FIELDS, Repository, check_version, utcnow
from .schemas import TITLE_MAX_LENGTH, TaskCreate

logger = logging.getLogger(__name__)

Base = declarative_base()


class TaskRow(Base):
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(TITLE_MAX_LENGTH), nullable=False)
    description = Column(Text, nullable=False)
    completed = Column(Boolean, nullable=False, default=False)
    due_date = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)
    version = Column(Integer, nullable=False, default=1)

    # The ORM increments version on every flush and adds it to the UPDATE's WHERE clause
    __mapper_args__ = {"version_id_col": version}


def _row_to_entity(row: TaskRow) -> TaskEntity:
    return {
        "id": int(row.id),
        "title": str(row.title),
        "description": str(row.description),
        "completed": bool(row.completed),
        "due_date": row.due_date,
        "created_at": row.created_at,
        "updated_at": row.updated_at,
        "version": int(row.version),
    }


def create_engine_for_url(database_url: str) -> Engine:
    """
    Build an engine for ``database_url``. SQLite file databases get their
    parent directory created; in-memory SQLite shares one connection.
    """
    url = make_url(database_url)
    kwargs: Dict[str, Any] = {}
    if url.get_backend_name() == "sqlite":
        kwargs["connect_args"] = {"check_same_thread": False}
        if url.database in (None, "", ":memory:"):
            kwargs["poolclass"] = StaticPool
        else:
            os.makedirs(os.path.dirname(url.database) or ".", exist_ok=True)
    return create_engine(url, **kwargs)


class SQLAlchemyRepository(Repository):
    """
    Repository backed by a relational database through the SQLAlchemy ORM.
    Each operation runs in its own session and transaction.
    """

    name = "sqlalchemy"

    def __init__(self, engine: Engine) -> None:
        self._engine = engine
        self._sessions = sessionmaker(bind=engine, expire_on_commit=False)
        Base.metadata.create_all(engine)

    @classmethod
    def from_url(cls, database_url: str) -> "SQLAlchemyRepository":
        repo = cls(create_engine_for_url(database_url))
        logger.info("SQLAlchemy repository ready url=%s", make_url(database_url).render_as_string(hide_password=True))
        return repo

    @contextmanager
    def _session(self) -> Generator[Session, None, None]:
        session = self._sessions()
        try:
            yield session
            session.commit()
        except StaleDataError as exc:
            session.rollback()
            raise Conflict("Task was modified by another request") from exc
        except SQLAlchemyError as exc:
            session.rollback()
            raise StoreError(f"{type(exc).__name__}: {exc}") from exc
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def create(self, data: TaskCreate) -> TaskEntity:
        now = utcnow()
        with self._session() as session:
            row = TaskRow(
                title=data.title,
                description=data.description,
                completed=False,
                due_date=data.due_date,
                created_at=now,
                updated_at=now,
            )
            session.add(row)
            session.flush()
            entity = _row_to_entity(row)
        logger.info("Created task id=%s", entity["id"])
        return entity

    def get(self, task_id: int) -> Optional[TaskEntity]:
        with self._session() as session:
            row = session.get(TaskRow, task_id)
            return _row_to_entity(row) if row else None

    def update(
        self, task_id: int, changes: Dict[str, Any], expected_version: Optional[int] = None
    ) -> Optional[TaskEntity]:
        with self._session() as session:
            row = session.get(TaskRow, task_id)
            if row is None:
                return None
            check_version(task_id, int(row.version), expected_version)
            for field, value in changes.items():
                if field in UPDATABLE_FIELDS:
                    setattr(row, field, value)
            # Always touch the row so version and updated_at advance
            row.updated_at = utcnow()
            session.flush()
            return _row_to_entity(row)

    def delete(self, task_id: int) -> Optional[TaskEntity]:
        with self._session() as session:
            row = session.get(TaskRow, task_id)
            if row is None:
                return None
            entity = _row_to_entity(row)
            session.delete(row)
        logger.info("Deleted task id=%s", task_id)
        return entity

    def list(self) -> List[TaskEntity]:
        with self._session() as session:
            rows = session.scalars(
                select(TaskRow).order_by(TaskRow.created_at.desc(), TaskRow.id.desc())
            ).all()
            return [_row_to_entity(r) for r in rows]
