"""SQLModel-backed stores: embedded SQLite file and networked PostgreSQL."""

from __future__ import annotations

from typing import Any, Optional, Sequence

from sqlalchemy import func, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import select

from ...errors import ConflictError, PersistenceError
from ...logging_config import get_logger
from ...models.goal import GoalRow
from ...models.user import User
from ..database import create_session_factory, init_database

logger = get_logger(__name__)


class SQLModelStore:
    """Transactional store shared by the relational backends."""

    name = "sqlmodel"
    transactional = True

    def __init__(self, engine: Engine):
        self.engine = engine
        self.session_factory = create_session_factory(engine)

    def init_schema(self) -> None:
        try:
            init_database(self.engine)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not create schema: {exc}", cause=exc) from exc

    def close(self) -> None:
        self.engine.dispose()

    # Users
    def get_user(self, username: str) -> Optional[User]:
        """Retrieve a user by exact username."""
        try:
            with self.session_factory() as session:
                user = session.exec(select(User).where(User.username == username)).first()
                if user:
                    session.expunge(user)
                return user
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not load user: {exc}", cause=exc) from exc

    def add_user(self, user: User) -> User:
        """Insert a credential row; the unique index decides conflicts."""
        try:
            with self.session_factory() as session:
                session.add(user)
                session.flush()
                session.refresh(user)
                session.expunge(user)
                return user
        except IntegrityError as exc:
            raise ConflictError("Username already exists", cause=exc) from exc
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not save user: {exc}", cause=exc) from exc

    # Goals
    def list_goal_rows(self, username: str) -> list[dict[str, Any]]:
        try:
            with self.session_factory() as session:
                statement = (
                    select(GoalRow)
                    .where(GoalRow.username == username)
                    .order_by(GoalRow.created_at.desc())  # type: ignore[union-attr]
                )
                return [row.as_record() for row in session.exec(statement).all()]
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not load goals: {exc}", cause=exc) from exc

    def replace_goal_rows(self, username: str, rows: Sequence[dict[str, Any]]) -> None:
        """Delete then insert inside one transaction; rolled back together on failure."""
        try:
            with self.session_factory() as session:
                existing = session.exec(select(GoalRow).where(GoalRow.username == username)).all()
                for row in existing:
                    session.delete(row)
                # deletes must reach the database before rows reusing the same keys
                session.flush()
                session.add_all(
                    GoalRow(
                        username=username,
                        id=row["id"],
                        text=row["text"],
                        category=row["category"],
                        completed=row["completed"],
                        created_at=row["created_at"],
                        data=row["data"],
                    )
                    for row in rows
                )
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not save goals: {exc}", cause=exc) from exc
        logger.info(
            "Replaced goals",
            extra={"username": username, "count": len(rows), "backend": self.name},
        )

    def server_time(self) -> str:
        """Round-trip a trivial query; used by the connectivity check."""
        with self.engine.connect() as connection:
            return str(connection.execute(text(self._now_sql)).scalar())

    _now_sql = "SELECT CURRENT_TIMESTAMP"

    def count_goals(self) -> int:
        with self.session_factory() as session:
            return int(session.exec(select(func.count()).select_from(GoalRow)).one())


class SQLiteStore(SQLModelStore):
    """Embedded local file store (the default)."""

    name = "sqlite"


class PostgresStore(SQLModelStore):
    """Networked PostgreSQL store selected by a connection URL."""

    name = "postgres"
    _now_sql = "SELECT NOW()"
