import random

import pytest

from config import BotConfig
from session_state import SessionState
from stubs import StubAnalyticsClient, StubSearchClient, make_response
from visit import Visit


@pytest.fixture
def state():
    return SessionState('jane.doe@example.com', 'communitySearch', 'ALL')


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def make_visit(sleeps):
    def _make(responses=None, search_error=None, fail_on=None, config=None, delay=None):
        return Visit(
            SessionState('jane.doe@example.com', 'communitySearch', 'ALL'),
            StubSearchClient(responses or [make_response(3)], error=search_error),
            StubAnalyticsClient(fail_on=fail_on),
            config=config or BotConfig(),
            delay=delay or (lambda event: 0),
            sleep=sleeps.append,
            rng=random.Random(7),
        )
    return _make
