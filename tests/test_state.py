import pytest

from sliding_quantiles.config import ServiceConfig
from sliding_quantiles.errors import ValueOutOfRangeError
from sliding_quantiles.state import AppState


class _LockCheckingState(AppState):
    """Counts reads of the rejected counter made without holding the lock."""

    unlocked_reads = 0

    @property
    def _rejected(self) -> int:
        if self._lock is not None and not self._lock.locked():
            self.unlocked_reads += 1
        return self.__dict__["_rejected_value"]

    @_rejected.setter
    def _rejected(self, value: int) -> None:
        self.__dict__["_rejected_value"] = value


def _config() -> ServiceConfig:
    return ServiceConfig(capacity=3, duration=10, start=0, end=100)


def test_buffer_info_reads_counter_under_lock() -> None:
    state = _LockCheckingState(_config())
    state.observe(5, 0)
    with pytest.raises(ValueOutOfRangeError):
        state.observe(500, 1)
    info = state.buffer_info()
    assert info["rejected"] == 1
    assert info["total"] == 1
    assert state.unlocked_reads == 0


def test_buffer_info_after_reset() -> None:
    state = AppState(_config())
    state.observe_many([(1, 0), (200, 0), (3, 12)])
    info = state.buffer_info()
    assert (info["total"], info["rejected"], info["current"]) == (2, 1, 1)
    state.reset()
    info = state.buffer_info()
    assert (info["total"], info["rejected"], info["initialized"]) == (0, 0, False)
