"""Hosted table service store (PostgREST-style REST tables over HTTPS).

The service offers no multi-statement transactions, so ``replace_goal_rows``
is a best-effort DELETE followed by a bulk INSERT. If the insert fails after
the delete succeeded the user's goals are gone until the client syncs again;
the failure is still raised as ``PersistenceError``.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional, Sequence

import requests

from ...domain.goal import parse_timestamp
from ...errors import ConflictError, PersistenceError
from ...logging_config import get_logger
from ...models.user import User

logger = get_logger(__name__)

GOALS_TABLE = "goals"
USERS_TABLE = "users"


class HostedTableStore:
    """Goal and credential rows stored in a hosted table service."""

    name = "hosted"
    transactional = False

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ):
        self.base_url = base_url.rstrip("/") + "/rest/v1"
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "apikey": api_key,
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            }
        )

    def init_schema(self) -> None:
        # Tables are provisioned in the service's dashboard.
        return None

    def close(self) -> None:
        self.session.close()

    def _request(self, method: str, table: str, **kwargs: Any) -> requests.Response:
        url = f"{self.base_url}/{table}"
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            raise PersistenceError(f"Table service unreachable: {exc}", cause=exc) from exc
        if response.status_code == 409 and table == USERS_TABLE:
            raise ConflictError("Username already exists")
        if response.status_code >= 400:
            raise PersistenceError(
                f"Table service returned {response.status_code}: {response.text[:200]}"
            )
        return response

    @staticmethod
    def _decode(response: requests.Response) -> list[dict[str, Any]]:
        """Return the JSON row list, or raise ``PersistenceError`` for anything else."""
        try:
            rows = response.json()
        except ValueError as exc:
            raise PersistenceError(
                f"Table service returned a non-JSON body: {response.text[:200]}", cause=exc
            ) from exc
        if not isinstance(rows, list):
            raise PersistenceError("Table service returned an unexpected payload")
        return rows

    # Users
    def get_user(self, username: str) -> Optional[User]:
        response = self._request(
            "GET",
            USERS_TABLE,
            params={"username": f"eq.{username}", "select": "*", "limit": "1"},
        )
        rows = self._decode(response)
        if not rows:
            return None
        row = rows[0]
        created_at = row.get("created_at")
        return User(
            id=row.get("id"),
            username=row["username"],
            salt=row["salt"],
            password_hash=row["password_hash"],
            created_at=parse_timestamp(created_at) or datetime.now(timezone.utc),
        )

    def add_user(self, user: User) -> User:
        self._request(
            "POST",
            USERS_TABLE,
            json={
                "username": user.username,
                "salt": user.salt,
                "password_hash": user.password_hash,
                "created_at": user.created_at.isoformat(),
            },
            headers={"Prefer": "return=minimal"},
        )
        return user

    # Goals
    def list_goal_rows(self, username: str) -> list[dict[str, Any]]:
        response = self._request(
            "GET",
            GOALS_TABLE,
            params={
                "username": f"eq.{username}",
                "select": "*",
                "order": "created_at.desc",
            },
        )
        return [dict(row) for row in self._decode(response)]

    def replace_goal_rows(self, username: str, rows: Sequence[dict[str, Any]]) -> None:
        self._request("DELETE", GOALS_TABLE, params={"username": f"eq.{username}"})
        if rows:
            try:
                self._request(
                    "POST",
                    GOALS_TABLE,
                    json=[dict(row, username=username) for row in rows],
                    headers={"Prefer": "return=minimal"},
                )
            except PersistenceError:
                logger.error(
                    "Goal insert failed after delete; stored set is empty until next sync",
                    extra={"username": username, "count": len(rows)},
                )
                raise
        logger.info(
            "Replaced goals",
            extra={"username": username, "count": len(rows), "backend": self.name},
        )
