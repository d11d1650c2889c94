"""Record store backed by a SQL database through SQLAlchemy."""
from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, OperationalError

from cragrank.infrastructure.database.models import RecordModel
from cragrank.infrastructure.store.record_store import (
    Filter,
    QueryRead,
    Record,
    RecordStore,
    Transaction,
    TransactionConflict,
    Write,
    group_of,
    new_revision,
    split_ref,
)


def _filter_clause(where: Filter):
    element = RecordModel.data[where.field]
    if isinstance(where.value, bool):
        expr = element.as_boolean()
    elif isinstance(where.value, (int, float)):
        expr = element.as_float()
    else:
        expr = element.as_string()
    # A missing field extracts as NULL, which fails both comparisons.
    if where.op == "==":
        return expr == where.value
    return expr != where.value


def _scan_statement(columns, scope: str, name: str, where: Optional[Filter]):
    stmt = select(*columns)
    if scope == "collection":
        stmt = stmt.where(RecordModel.collection == name)
    else:
        stmt = stmt.where(RecordModel.group_name == name)
    if where is not None:
        stmt = stmt.where(_filter_clause(where))
    return stmt.order_by(RecordModel.path)


def _to_record(row: RecordModel) -> Record:
    return Record(row.path, row.data or {}, row.revision)


class SqlRecordStore(RecordStore):
    """
    One row per record. Commits lock every touched row FOR UPDATE, re-check
    the revisions the transaction saw, then write. Database-level races
    (duplicate insert, serialization failure, lock timeout) surface as
    TransactionConflict so run_transaction retries them.
    """

    backend = "sql"

    def __init__(self, session_factory, max_attempts: int = 5):
        super().__init__(max_attempts=max_attempts)
        self._sf = session_factory

    # -- hooks -----------------------------------------------------------

    def _read(self, ref: str) -> Optional[Record]:
        split_ref(ref)
        with self._sf() as session:
            row = session.get(RecordModel, ref)
            return _to_record(row) if row else None

    def _scan(self, scope: str, name: str, where: Optional[Filter]) -> List[Record]:
        with self._sf() as session:
            rows = session.scalars(_scan_statement([RecordModel], scope, name, where)).all()
            return [_to_record(r) for r in rows]

    def _commit(self, txn: Transaction) -> None:
        try:
            with self._sf() as session:
                touched = sorted(set(txn.reads) | {w.ref for w in txn.writes})
                rows: Dict[str, Optional[RecordModel]] = {
                    ref: session.get(RecordModel, ref, with_for_update=True) for ref in touched
                }
                self.check_reads(
                    txn,
                    lambda ref: rows[ref].revision if rows.get(ref) is not None else None,
                    lambda q: self._rescan(session, q),
                )
                for write in txn.writes:
                    self._apply(session, rows, write)
                session.commit()
        except (IntegrityError, OperationalError) as exc:
            raise TransactionConflict(f"commit failed: {type(exc).__name__}: {exc}") from exc

    # -- internals -------------------------------------------------------

    @staticmethod
    def _rescan(session, q: QueryRead) -> Dict[str, str]:
        stmt = _scan_statement([RecordModel.path, RecordModel.revision], q.scope, q.name, q.where)
        return {path: revision for path, revision in session.execute(stmt)}

    @staticmethod
    def _apply(session, rows: Dict[str, Optional[RecordModel]], write: Write) -> None:
        row = rows.get(write.ref)
        if write.kind == Write.DELETE:
            if row is not None:
                session.delete(row)
                session.flush()
                rows[write.ref] = None
            return

        if row is not None:
            data = dict(row.data or {}) if write.kind == Write.MERGE else {}
            data.update(write.fields)
            # reassign so the JSON column is flagged dirty
            row.data = data
            row.revision = new_revision()
        else:
            collection, doc_id = split_ref(write.ref)
            row = RecordModel(
                path=write.ref,
                collection=collection,
                group_name=group_of(collection),
                doc_id=doc_id,
                data=dict(write.fields),
                revision=new_revision(),
            )
            session.add(row)
            rows[write.ref] = row
        session.flush()
