"""
Test fixtures for ingestion layer.

API-Football payloads below follow the v3 response shapes; the HTTP
session is faked so no request leaves the process.
"""
import pytest


@pytest.fixture
def fixture_item():
    """One /fixtures?live=all entry, 1-0 at minute 63."""
    return {
        "fixture": {
            "id": 1035001,
            "timestamp": 1767281400,
            "status": {"short": "2H", "elapsed": 63},
        },
        "league": {"id": 39, "name": "Premier League", "country": "England", "season": 2025},
        "teams": {
            "home": {"id": 42, "name": "Arsenal"},
            "away": {"id": 49, "name": "Chelsea"},
        },
        "goals": {"home": 1, "away": 0},
        "score": {"halftime": {"home": 1, "away": 0}},
    }


@pytest.fixture
def statistics_response():
    """/fixtures/statistics response for the fixture above."""
    return [
        {
            "team": {"id": 42},
            "statistics": [
                {"type": "Shots on Goal", "value": 6},
                {"type": "Shots off Goal", "value": 4},
                {"type": "Corner Kicks", "value": 5},
                {"type": "Ball Possession", "value": "61%"},
                {"type": "Yellow Cards", "value": None},
                {"type": "Red Cards", "value": None},
                {"type": "expected_goals", "value": "1.84"},
                {"type": "Goalkeeper Saves", "value": 2},
            ],
        },
        {
            "team": {"id": 49},
            "statistics": [
                {"type": "Shots on Goal", "value": 2},
                {"type": "Corner Kicks", "value": 1},
                {"type": "Ball Possession", "value": "39%"},
                {"type": "Yellow Cards", "value": 3},
            ],
        },
    ]


@pytest.fixture
def team_statistics_response():
    """/teams/statistics response body."""
    return {
        "form": "WWDLWWLDWW",
        "fixtures": {"played": {"total": 20}},
        "goals": {
            "for": {"average": {"total": "1.9"}},
            "against": {"average": {"total": "0.8"}},
        },
        "clean_sheet": {"total": 9},
        "failed_to_score": {"total": 3},
    }


class FakeResponse:
    def __init__(self, status=200, body=None, text=""):
        self.status = status
        self._body = body
        self._text = text

    async def json(self):
        return self._body

    async def text(self):
        return self._text

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False


class FakeSession:
    """aiohttp.ClientSession stand-in replaying queued responses."""

    def __init__(self, responses):
        self._responses = list(responses)
        self.requests = []

    def get(self, url, params=None, headers=None):
        self.requests.append((url, params, headers))
        return self._responses.pop(0)

    async def close(self):
        pass


@pytest.fixture
def fake_session():
    """Factory: fake_session([FakeResponse(...), ...])."""
    return FakeSession


@pytest.fixture
def fake_response():
    return FakeResponse
