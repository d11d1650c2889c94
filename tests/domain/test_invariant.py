"""Unit tests for domain invariant guards."""
import pytest
from cragrank.domain.invariant import (
    MalformedRecordError,
    RecordNotFoundError,
    require_non_negative_int,
    require_non_negative_number,
)


class TestRequireNonNegativeNumber:
    @pytest.mark.parametrize("value", [0, 0.0, 12, 33.5])
    def test_valid_passes(self, value):
        assert require_non_negative_number("routes/r", "points", value) == value

    def test_missing_raises(self):
        with pytest.raises(MalformedRecordError, match="missing points"):
            require_non_negative_number("routes/r", "points", None)

    @pytest.mark.parametrize("value", ["60", True, [60], {"v": 1}])
    def test_non_number_raises(self, value):
        with pytest.raises(MalformedRecordError, match="must be a number"):
            require_non_negative_number("routes/r", "points", value)

    def test_negative_raises(self):
        with pytest.raises(MalformedRecordError, match="non-negative"):
            require_non_negative_number("routes/r", "points", -1)

    def test_error_carries_ref(self):
        with pytest.raises(MalformedRecordError) as info:
            require_non_negative_number("routes/r", "points", None)
        assert info.value.ref == "routes/r"
        assert str(info.value).startswith("routes/r:")


class TestRequireNonNegativeInt:
    def test_integral_float_becomes_int(self):
        value = require_non_negative_int("routes/r", "completion_count", 3.0)
        assert value == 3
        assert isinstance(value, int)

    def test_fraction_raises(self):
        with pytest.raises(MalformedRecordError, match="integer"):
            require_non_negative_int("routes/r", "completion_count", 2.5)


class TestRecordNotFoundError:
    def test_is_lookup_error(self):
        err = RecordNotFoundError("routes/x")
        assert isinstance(err, LookupError)
        assert err.ref == "routes/x"
        assert "not found" in str(err)


class TestNonFiniteNumbers:
    @pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_raises(self, value):
        with pytest.raises(MalformedRecordError, match="finite"):
            require_non_negative_number("routes/r", "points", value)

    def test_non_finite_count_raises(self):
        with pytest.raises(MalformedRecordError, match="finite"):
            require_non_negative_int("users/u", "climbed", float("inf"))
