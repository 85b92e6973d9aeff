import pytest

from adaptive_cache.common.cache import DynamicTTLCacheService, MemoryStoreBackend, set_default_cache_service


class FakeClock:
    """Settable time source in epoch seconds."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return MemoryStoreBackend(clock=clock)


@pytest.fixture
def sleeps():
    """Records lock backoff sleeps instead of sleeping."""
    return []


@pytest.fixture
def service(store, clock, sleeps):
    return DynamicTTLCacheService(store, clock=clock, sleep=sleeps.append)


@pytest.fixture
def default_service(service):
    """Install the memory-backed service as the process-wide default."""
    set_default_cache_service(service)
    yield service
    set_default_cache_service(None)
