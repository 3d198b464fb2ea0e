import pytest

from tests.utils import FakeClock


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
