"""Document-store contract shared by the JSON and SQL backends.

Records live at slash paths:

    routes/{route_id}
    routes/{route_id}/logs/{climber_id}
    users/{climber_id}

A record's *collection* is its path minus the last segment and its *group* is
the last collection segment, so every log under every route is in group
"logs". Each write stamps a fresh revision token; transactions are optimistic
and validate the revisions they read before applying buffered writes.
"""
import logging
import time
import uuid
from typing import Callable, Dict, List, Optional, TypeVar

log = logging.getLogger("cragrank.store")

T = TypeVar("T")

ROUTES = "routes"
LOGS = "logs"
USERS = "users"

BACKOFF_BASE_SECONDS = 0.05


# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------

def route_ref(route_id: str) -> str:
    return f"{ROUTES}/{route_id}"


def logs_collection(route_id: str) -> str:
    return f"{ROUTES}/{route_id}/{LOGS}"


def log_ref(route_id: str, climber_id: str) -> str:
    return f"{logs_collection(route_id)}/{climber_id}"


def user_ref(climber_id: str) -> str:
    return f"{USERS}/{climber_id}"


def split_ref(ref: str) -> tuple:
    """Return (collection, doc_id). Raises ValueError on a malformed path."""
    parts = ref.split("/")
    if len(parts) < 2 or len(parts) % 2 or any(not p for p in parts):
        raise ValueError(f"Not a record path: {ref!r}")
    return "/".join(parts[:-1]), parts[-1]


def group_of(collection: str) -> str:
    return collection.rsplit("/", 1)[-1]


def new_revision() -> str:
    return uuid.uuid4().hex


# ---------------------------------------------------------------------------
# Value objects
# ---------------------------------------------------------------------------

class Record:
    """A stored document snapshot. data is a private copy."""

    __slots__ = ("_ref", "_data", "_revision")

    def __init__(self, ref: str, data: dict, revision: str):
        split_ref(ref)
        self._ref = ref
        self._data = dict(data)
        self._revision = revision

    @property
    def ref(self) -> str:
        return self._ref

    @property
    def id(self) -> str:
        return self._ref.rsplit("/", 1)[-1]

    @property
    def collection(self) -> str:
        return self._ref.rsplit("/", 1)[0]

    @property
    def parent_ref(self) -> Optional[str]:
        parent = self.collection.rsplit("/", 1)[0]
        return parent if "/" in self.collection else None

    @property
    def parent_id(self) -> Optional[str]:
        parent = self.parent_ref
        return parent.rsplit("/", 1)[-1] if parent else None

    @property
    def data(self) -> dict:
        return self._data

    @property
    def revision(self) -> str:
        return self._revision

    def __repr__(self) -> str:
        return f"Record({self._ref!r}, {self._data!r})"


class Filter:
    """Single-field predicate: op is '==' or '!='."""

    OPS = ("==", "!=")

    __slots__ = ("field", "op", "value")

    def __init__(self, field: str, op: str, value):
        if op not in self.OPS:
            raise ValueError(f"Unsupported filter operator: {op!r}")
        if not isinstance(value, (str, int, float, bool)):
            raise ValueError(f"Filter value must be a scalar, got {type(value).__name__}")
        self.field = field
        self.op = op
        self.value = value

    def matches(self, data: dict) -> bool:
        # A field that is absent never matches, not even for '!='.
        if self.field not in data or data[self.field] is None:
            return False
        if self.op == "==":
            return data[self.field] == self.value
        return data[self.field] != self.value

    def key(self) -> tuple:
        return (self.field, self.op, self.value)

    def __repr__(self) -> str:
        return f"Filter({self.field!r}, {self.op!r}, {self.value!r})"


class TransactionConflict(RuntimeError):
    """Something read inside a transaction changed before it committed."""


# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------

class Write:
    SET = "set"
    MERGE = "merge"
    DELETE = "delete"

    __slots__ = ("kind", "ref", "fields")

    def __init__(self, kind: str, ref: str, fields: dict | None = None):
        split_ref(ref)
        self.kind = kind
        self.ref = ref
        self.fields = dict(fields or {})


class QueryRead:
    """A query run inside a transaction and the result it saw."""

    __slots__ = ("scope", "name", "where", "seen")

    def __init__(self, scope: str, name: str, where: Optional[Filter], seen: Dict[str, str]):
        self.scope = scope          # "collection" or "group"
        self.name = name
        self.where = where
        self.seen = seen            # ref -> revision


class Transaction:
    """
    Buffered unit of work. All reads must happen before the first write.
    commit() is delegated to the owning store, which applies every write
    or none of them.
    """

    def __init__(self, store: "RecordStore"):
        self._store = store
        self._reads: Dict[str, Optional[str]] = {}
        self._queries: List[QueryRead] = []
        self._writes: List[Write] = []
        self._committed = False

    @property
    def reads(self) -> Dict[str, Optional[str]]:
        return self._reads

    @property
    def queries(self) -> List[QueryRead]:
        return self._queries

    @property
    def writes(self) -> List[Write]:
        return self._writes

    def _assert_readable(self) -> None:
        if self._writes:
            raise RuntimeError("Transaction reads must happen before writes.")

    def _assert_open(self) -> None:
        if self._committed:
            raise RuntimeError("Transaction already committed.")

    def get(self, ref: str) -> Optional[Record]:
        self._assert_open()
        self._assert_readable()
        record = self._store._read(ref)
        self._reads[ref] = record.revision if record else None
        return record

    def query(self, collection: str, where: Optional[Filter] = None) -> List[Record]:
        return self._run_query("collection", collection, where)

    def query_group(self, group: str, where: Optional[Filter] = None) -> List[Record]:
        return self._run_query("group", group, where)

    def _run_query(self, scope: str, name: str, where: Optional[Filter]) -> List[Record]:
        self._assert_open()
        self._assert_readable()
        records = self._store._scan(scope, name, where)
        self._queries.append(
            QueryRead(scope, name, where, {r.ref: r.revision for r in records})
        )
        return records

    def set(self, ref: str, fields: dict) -> None:
        self._assert_open()
        self._writes.append(Write(Write.SET, ref, fields))

    def merge(self, ref: str, fields: dict) -> None:
        self._assert_open()
        self._writes.append(Write(Write.MERGE, ref, fields))

    def delete(self, ref: str) -> None:
        self._assert_open()
        self._writes.append(Write(Write.DELETE, ref))

    def commit(self) -> None:
        self._assert_open()
        self._committed = True
        if self._writes:
            self._store._commit(self)


# ---------------------------------------------------------------------------
# Store base
# ---------------------------------------------------------------------------

class RecordStore:
    """
    Backends implement _read, _scan and _commit. Everything else, including
    non-transactional point writes, is expressed through those three.
    """

    backend = "abstract"

    def __init__(self, max_attempts: int = 5):
        self._max_attempts = max_attempts

    # -- backend hooks ---------------------------------------------------

    def _read(self, ref: str) -> Optional[Record]:
        raise NotImplementedError

    def _scan(self, scope: str, name: str, where: Optional[Filter]) -> List[Record]:
        raise NotImplementedError

    def _commit(self, txn: Transaction) -> None:
        raise NotImplementedError

    # -- reads -----------------------------------------------------------

    def get(self, ref: str) -> Optional[Record]:
        return self._read(ref)

    def query(self, collection: str, where: Optional[Filter] = None) -> List[Record]:
        return self._scan("collection", collection, where)

    def query_group(self, group: str, where: Optional[Filter] = None) -> List[Record]:
        return self._scan("group", group, where)

    # -- point writes ----------------------------------------------------

    def set(self, ref: str, fields: dict) -> None:
        txn = self.transaction()
        txn.set(ref, fields)
        txn.commit()

    def merge(self, ref: str, fields: dict) -> None:
        txn = self.transaction()
        txn.merge(ref, fields)
        txn.commit()

    def delete(self, ref: str) -> None:
        txn = self.transaction()
        txn.delete(ref)
        txn.commit()

    # -- transactions ----------------------------------------------------

    def transaction(self) -> Transaction:
        return Transaction(self)

    def run_transaction(self, body: Callable[[Transaction], T], max_attempts: int | None = None) -> T:
        """Run body in a fresh transaction, re-running it whole on conflict."""
        attempts = max_attempts or self._max_attempts
        for attempt in range(attempts):
            txn = self.transaction()
            try:
                result = body(txn)
                txn.commit()
                return result
            except TransactionConflict as exc:
                if attempt == attempts - 1:
                    raise
                log.warning(
                    "Transaction conflict (attempt %d/%d): %s", attempt + 1, attempts, exc
                )
                time.sleep(BACKOFF_BASE_SECONDS * (2 ** attempt))
        raise AssertionError("unreachable")

    # -- validation helper for backends ----------------------------------

    @staticmethod
    def check_reads(txn: Transaction, current_revision: Callable[[str], Optional[str]],
                    rescan: Callable[[QueryRead], Dict[str, str]]) -> None:
        """Raise TransactionConflict if anything txn read has changed."""
        for ref, seen in txn.reads.items():
            if current_revision(ref) != seen:
                raise TransactionConflict(f"{ref} changed during transaction")
        for q in txn.queries:
            if rescan(q) != q.seen:
                raise TransactionConflict(f"query on {q.scope} {q.name!r} changed during transaction")

    def close(self) -> None:
        pass
