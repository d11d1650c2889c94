"""Append-only audit trail for ranking runs.

Writes newline-delimited JSON entries to `logs/audit.log`. A module-level
lock keeps lines whole when scheduler and request threads write together.
"""
import json
import threading
from datetime import datetime, timezone
from pathlib import Path

_LOCK = threading.Lock()

ROOT = Path(__file__).resolve().parent.parent.parent
LOG_DIR = ROOT / "logs"
LOG_FILE = LOG_DIR / "audit.log"


def log_event(action: str, subject: str | None, payload: dict | None = None) -> None:
    """Append one entry. subject is the climber id, or None for store-wide events."""
    LOG_DIR.mkdir(parents=True, exist_ok=True)
    entry = {
        "ts": datetime.now(timezone.utc).isoformat(),
        "action": action,
        "subject": subject,
        "payload": payload or {},
    }
    line = json.dumps(entry, ensure_ascii=False) + "\n"
    with _LOCK:
        with open(LOG_FILE, "a", encoding="utf-8") as f:
            f.write(line)


def read_events(limit: int = 50) -> list:
    """Most recent entries first. Unparseable lines are skipped."""
    if not LOG_FILE.exists():
        return []
    with _LOCK:
        lines = LOG_FILE.read_text(encoding="utf-8").splitlines()
    events = []
    for line in reversed(lines):
        try:
            events.append(json.loads(line))
        except json.JSONDecodeError:
            continue
        if len(events) >= limit:
            break
    return events
