import pytest

from token_events.config import Settings

from tests.token_events.factories import ask_diff, make_transaction


@pytest.fixture
def settings():
    """Settings with defaults only (no environment)."""
    return Settings()


@pytest.fixture
def retract_ask_transaction():
    return make_transaction()


@pytest.fixture
def fulfill_ask_transaction():
    return make_transaction(
        parameter={"entrypoint": "fulfill_ask", "value": {"ask_id": "1001", "proxy": None}},
        diffs=[ask_diff(action="update_key")],
    )
