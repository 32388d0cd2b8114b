from __future__ import annotations

import pytest

from helpers import FakeTimers


@pytest.fixture()
def timers() -> FakeTimers:
    return FakeTimers()
