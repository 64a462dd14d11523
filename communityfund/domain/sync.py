"""
Offline mutation queue items.

A mutation is one of three tagged variants (insert / update / delete), each
carrying only what that operation needs. Items are replayed in enqueue order;
the only field that ever changes after enqueue is `synced`.
"""
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import ClassVar, Mapping

OP_INSERT = "insert"
OP_UPDATE = "update"
OP_DELETE = "delete"
OPERATIONS = (OP_INSERT, OP_UPDATE, OP_DELETE)


class SyncMutationError(ValueError):
    """Malformed mutation (rejected on enqueue, never queued)"""
    pass


@dataclass(frozen=True)
class InsertMutation:
    operation: ClassVar[str] = OP_INSERT
    table: str
    values: dict

    def to_payload(self) -> dict:
        return dict(self.values)

    @property
    def columns(self) -> set[str]:
        return set(self.values)


@dataclass(frozen=True)
class UpdateMutation:
    operation: ClassVar[str] = OP_UPDATE
    table: str
    row_id: int
    values: dict

    def to_payload(self) -> dict:
        return {**self.values, "id": self.row_id}

    @property
    def columns(self) -> set[str]:
        return set(self.values) | {"id"}


@dataclass(frozen=True)
class DeleteMutation:
    operation: ClassVar[str] = OP_DELETE
    table: str
    row_id: int

    def to_payload(self) -> dict:
        return {"id": self.row_id}

    @property
    def columns(self) -> set[str]:
        return {"id"}


Mutation = InsertMutation | UpdateMutation | DeleteMutation


def build_mutation(table: str, operation: str, payload: dict) -> Mutation:
    """
    Turn the loose (table, operation, payload) triple into a tagged mutation.

    update / delete take the row id from payload["id"].

    Raises:
        SyncMutationError: unknown operation, missing id, empty insert/update
    """
    if not table:
        raise SyncMutationError("Target table is required")
    if operation not in OPERATIONS:
        raise SyncMutationError(f"Unknown operation: {operation}")
    payload = dict(payload or {})

    if operation == OP_INSERT:
        if not payload:
            raise SyncMutationError(f"Insert into {table} has no values")
        return InsertMutation(table=table, values=payload)

    row_id = payload.pop("id", None)
    if row_id is None:
        raise SyncMutationError(f"{operation} on {table} requires an id")
    try:
        row_id = int(row_id)
    except (TypeError, ValueError):
        raise SyncMutationError(f"Invalid row id: {row_id!r}")

    if operation == OP_UPDATE:
        if not payload:
            raise SyncMutationError(f"Update of {table} #{row_id} has no values")
        return UpdateMutation(table=table, row_id=row_id, values=payload)
    return DeleteMutation(table=table, row_id=row_id)


def check_against_schema(mutation: Mutation, schema: Mapping[str, frozenset[str]]) -> None:
    """
    Reject mutations that name an unknown table or column.

    Args:
        schema: table name -> column names
    """
    columns = schema.get(mutation.table)
    if columns is None:
        raise SyncMutationError(f"Unknown table: {mutation.table}")
    unknown = mutation.columns - columns
    if unknown:
        raise SyncMutationError(
            f"Unknown columns for {mutation.table}: {', '.join(sorted(unknown))}"
        )


@dataclass
class SyncQueueItem:
    user_id: int
    mutation: Mutation
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    synced: bool = False
    created_at: str = field(default_factory=lambda: datetime.utcnow().isoformat())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "table": self.mutation.table,
            "operation": self.mutation.operation,
            "payload": self.mutation.to_payload(),
            "synced": self.synced,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SyncQueueItem":
        return cls(
            id=data["id"],
            user_id=data["user_id"],
            mutation=build_mutation(data["table"], data["operation"], data.get("payload") or {}),
            synced=bool(data.get("synced", False)),
            created_at=data.get("created_at") or "",
        )


@dataclass
class DrainResult:
    success: int = 0
    failed: int = 0
    failures: list[tuple[str, str]] = field(default_factory=list)  # (item id, error)

    def as_dict(self) -> dict:
        return {"success": self.success, "failed": self.failed}
