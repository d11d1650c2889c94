"""Unit tests for LogStyle and LockStatus enums."""
import pytest
from cragrank.domain.enums import LockStatus, LogStyle


class TestLogStyle:
    def test_none_is_not_completion(self):
        assert LogStyle.NONE.is_completion is False

    @pytest.mark.parametrize("style", ["flash", "onsight", "redpoint", "toprope"])
    def test_every_other_style_is_completion(self, style):
        assert LogStyle(style).is_completion is True

    def test_values(self):
        assert LogStyle.values() == ["none", "flash", "onsight", "redpoint", "toprope"]

    def test_unknown_style_raises(self):
        with pytest.raises(ValueError):
            LogStyle("dogged")

    def test_is_str(self):
        assert LogStyle.FLASH == "flash"


class TestLockStatus:
    def test_values(self):
        assert {s.value for s in LockStatus} == {"editable", "locked"}
