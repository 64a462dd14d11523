"""
Replay targets for queued mutations.

RestBackend    - hosted PostgREST-style database over HTTP (requests)
DatabaseBackend - the local SQLAlchemy database
Both raise on failure; the queue decides what a failure means.
"""
import logging
from abc import ABC, abstractmethod
from datetime import date, datetime
from decimal import Decimal

import requests
from sqlalchemy import delete, insert, update

from communityfund.domain.sync import (
    Mutation,
    InsertMutation,
    UpdateMutation,
    DeleteMutation,
)

logger = logging.getLogger(__name__)


class MutationBackend(ABC):
    """Applies one mutation. Must raise if the mutation did not land."""

    @abstractmethod
    def apply(self, mutation: Mutation) -> None:
        pass


class RestBackend(MutationBackend):
    """
    PostgREST conventions:
        insert -> POST   {base}/{table}
        update -> PATCH  {base}/{table}?id=eq.{id}
        delete -> DELETE {base}/{table}?id=eq.{id}
    """

    def __init__(self, base_url: str, api_key: str = "", timeout: int = 10, session: requests.Session | None = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.headers = {
            "Content-Type": "application/json",
            "Prefer": "return=minimal",
        }
        if api_key:
            self.headers["apikey"] = api_key
            self.headers["Authorization"] = f"Bearer {api_key}"

    def apply(self, mutation: Mutation) -> None:
        url = f"{self.base_url}/{mutation.table}"
        if isinstance(mutation, InsertMutation):
            resp = self.session.post(
                url, json=_jsonable(mutation.values), headers=self.headers, timeout=self.timeout
            )
        elif isinstance(mutation, UpdateMutation):
            resp = self.session.patch(
                url,
                params={"id": f"eq.{mutation.row_id}"},
                json=_jsonable(mutation.values),
                headers=self.headers,
                timeout=self.timeout,
            )
        elif isinstance(mutation, DeleteMutation):
            resp = self.session.delete(
                url, params={"id": f"eq.{mutation.row_id}"}, headers=self.headers, timeout=self.timeout
            )
        else:
            raise TypeError(f"Unsupported mutation: {mutation!r}")
        resp.raise_for_status()


class DatabaseBackend(MutationBackend):
    """
    Replays into the local database, one transaction per mutation.

    Args:
        session_factory: sessionmaker (see infrastructure.db.session)
        metadata: MetaData holding the target tables
    """

    def __init__(self, session_factory, metadata):
        self.session_factory = session_factory
        self.metadata = metadata

    def apply(self, mutation: Mutation) -> None:
        table = self.metadata.tables.get(mutation.table)
        if table is None:
            raise LookupError(f"Unknown table: {mutation.table}")

        if isinstance(mutation, InsertMutation):
            stmt = insert(table).values(**_coerce(table, mutation.values))
        elif isinstance(mutation, UpdateMutation):
            stmt = (
                update(table)
                .where(table.c.id == mutation.row_id)
                .values(**_coerce(table, mutation.values))
            )
        elif isinstance(mutation, DeleteMutation):
            stmt = delete(table).where(table.c.id == mutation.row_id)
        else:
            raise TypeError(f"Unsupported mutation: {mutation!r}")

        with self.session_factory() as db:
            result = db.execute(stmt)
            if not isinstance(mutation, InsertMutation) and result.rowcount == 0:
                db.rollback()
                raise LookupError(f"{mutation.table} #{mutation.row_id} not found")
            db.commit()


def _jsonable(values: dict) -> dict:
    out = {}
    for key, value in values.items():
        if isinstance(value, (date, datetime)):
            out[key] = value.isoformat()
        elif isinstance(value, Decimal):
            out[key] = str(value)
        else:
            out[key] = value
    return out


def _coerce(table, values: dict) -> dict:
    """JSON strings back to date / datetime / Decimal for typed columns"""
    out = {}
    for key, value in values.items():
        column = table.c[key]
        if isinstance(value, str):
            try:
                python_type = column.type.python_type
            except NotImplementedError:
                python_type = None
            if python_type is datetime:
                value = datetime.fromisoformat(value)
            elif python_type is date:
                value = date.fromisoformat(value)
            elif python_type is Decimal:
                value = Decimal(value)
        out[key] = value
    return out
