"""Log entity -- one climber's record on one route."""
from cragrank.domain.enums import LogStyle, LockStatus
from cragrank.domain.invariant import MalformedRecordError


class Log:
    """At most one per (route, climber); the climber id doubles as the log id."""

    def __init__(
        self,
        route_id: str,
        climber_id: str,
        style: LogStyle = LogStyle.NONE,
        lock_status: LockStatus | None = None,
    ):
        if not route_id or not climber_id:
            raise ValueError("Log needs both a route id and a climber id")
        self._route_id = route_id
        self._climber_id = climber_id
        self._style = style
        self._lock_status = lock_status

    @property
    def route_id(self) -> str:
        return self._route_id

    @property
    def climber_id(self) -> str:
        return self._climber_id

    @property
    def style(self) -> LogStyle:
        return self._style

    @property
    def lock_status(self) -> LockStatus | None:
        return self._lock_status

    @property
    def is_completion(self) -> bool:
        return self._style.is_completion

    @classmethod
    def from_record(cls, record) -> "Log":
        data = record.data
        try:
            style = LogStyle(data.get("style"))
        except ValueError:
            raise MalformedRecordError(record.ref, f"unknown style {data.get('style')!r}")
        lock_status = None
        if data.get("lock_status") is not None:
            try:
                lock_status = LockStatus(data["lock_status"])
            except ValueError:
                raise MalformedRecordError(
                    record.ref, f"unknown lock_status {data['lock_status']!r}"
                )
        climber_id = data.get("climber_id") or record.id
        return cls(
            route_id=record.parent_id,
            climber_id=climber_id,
            style=style,
            lock_status=lock_status,
        )

    def to_fields(self) -> dict:
        """Fields as written to the store."""
        fields = {"style": self._style.value, "climber_id": self._climber_id}
        if self._lock_status is not None:
            fields["lock_status"] = self._lock_status.value
        return fields
