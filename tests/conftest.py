"""
Shared fixtures for the assessment test suite.

Provides:
  - ``session``: a fresh `AssessmentSession` seeded from the catalog defaults
  - ``small_ratings``: a four-question ratings frame across two ad hoc domains
  - ``mock_client``: factory for an ``httpx.Client`` backed by ``httpx.MockTransport``,
    which records every request it serves so tests can assert "no network call"
"""

import httpx
import pandas as pd
import pytest

from session import AssessmentSession


@pytest.fixture
def session():
    return AssessmentSession.new()


@pytest.fixture
def small_ratings():
    """
    Q1: gap 3 (Critical), Q2: gap 2 at level 2 (High),
    Q3: gap 1 (Medium), Q4: no gap (Low).
    """
    return pd.DataFrame(
        {
            "code": ["Q1", "Q2", "Q3", "Q4"],
            "question": ["First", "Second", "Third", "Fourth"],
            "current": [1, 2, 3, 4],
            "target": [4, 4, 4, 4],
            "action_items": ["", "", "", ""],
            "benefit": [2, 1, 1, 0],
            "effort": [1, 1, 2, 0],
        }
    )


@pytest.fixture
def small_domains():
    return {"Q1": "Alpha", "Q2": "Alpha", "Q3": "Beta", "Q4": "Beta"}


@pytest.fixture
def mock_client():
    """
    Build an httpx client whose requests are answered by `handler`.

    The returned client carries a ``requests`` list with every request served.
    """
    clients = []

    def make(handler):
        requests = []

        def record(request):
            requests.append(request)
            return handler(request)

        client = httpx.Client(transport=httpx.MockTransport(record))
        client.requests = requests
        clients.append(client)
        return client

    yield make
    for client in clients:
        client.close()


def chat_reply(content):
    """A minimal OpenAI-compatible chat-completion body."""
    return {
        "id": "chatcmpl-test",
        "object": "chat.completion",
        "created": 0,
        "model": "test-model",
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": content},
                "finish_reason": "stop",
            }
        ],
    }
