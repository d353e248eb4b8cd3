import pytest

from edit_review.config import EngineSettings
from edit_review.persistence.blob_store import InMemoryBlobStore
from edit_review.service import ReviewService
from edit_review.state import StateRegistry


class FakeClock:
    """Epoch-seconds clock that only moves when told to."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings():
    return EngineSettings()


@pytest.fixture
def registry(settings, clock):
    return StateRegistry(settings=settings, clock=clock)


@pytest.fixture
def store():
    return InMemoryBlobStore()


@pytest.fixture
def service(registry, settings, store):
    return ReviewService(registry=registry, settings=settings, store=store)
