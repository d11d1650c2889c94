"""Enums shared across the domain."""
from enum import Enum


class LogStyle(str, Enum):
    NONE = "none"          # attempted, not completed
    FLASH = "flash"
    ONSIGHT = "onsight"
    REDPOINT = "redpoint"
    TOPROPE = "toprope"

    @property
    def is_completion(self) -> bool:
        return self is not LogStyle.NONE

    @staticmethod
    def values() -> list:
        return [s.value for s in LogStyle]


class LockStatus(str, Enum):
    EDITABLE = "editable"
    LOCKED = "locked"
