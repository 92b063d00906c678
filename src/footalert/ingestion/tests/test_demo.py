"""
Tests for the simulated match feed.
"""
import pytest

from footalert.ingestion.demo import DemoMatchFeed
from footalert.ingestion.models import MatchPhase


async def _play(feed, fetches):
    batches = []
    for _ in range(fetches):
        batches.append(await feed.fetch_snapshots())
    return batches


class TestDemoMatchFeed:
    """Tests for DemoMatchFeed."""

    def test_rejects_empty_feed(self):
        with pytest.raises(ValueError):
            DemoMatchFeed(match_count=0)

    async def test_returns_one_snapshot_per_match(self):
        feed = DemoMatchFeed(match_count=5, seed=1)

        snapshots = await feed.fetch_snapshots()

        assert len(snapshots) == 5
        assert len({s.match_id for s in snapshots}) == 5
        assert all(s.match_id.startswith("demo-") for s in snapshots)

    async def test_same_seed_same_sequence(self):
        first = await _play(DemoMatchFeed(match_count=4, seed=7), 10)
        second = await _play(DemoMatchFeed(match_count=4, seed=7), 10)

        for a, b in zip(first, second):
            assert [(s.match_id, s.minute, s.score, s.phase) for s in a] == [
                (s.match_id, s.minute, s.score, s.phase) for s in b
            ]

    async def test_counters_never_decrease(self):
        feed = DemoMatchFeed(match_count=3, seed=3)
        last = {}

        for batch in await _play(feed, 30):
            for s in batch:
                prev = last.get(s.match_id)
                if prev is not None:
                    assert s.home.goals >= prev.home.goals
                    assert s.away.dangerous_attacks >= prev.away.dangerous_attacks
                    assert s.home.corners >= prev.home.corners
                last[s.match_id] = s

    async def test_half_time_sets_first_half_counters(self):
        feed = DemoMatchFeed(match_count=4, seed=11)

        seen = []
        for batch in await _play(feed, 40):
            seen.extend(s for s in batch if s.phase == MatchPhase.HALF_TIME)

        assert seen
        for s in seen:
            assert s.minute == 45
            assert s.home.goals_first_half == s.home.goals
            assert s.away.corners_first_half == s.away.corners

    async def test_matches_finish_and_are_replaced(self):
        feed = DemoMatchFeed(match_count=2, seed=5)

        batches = await _play(feed, 60)

        finished = [s for batch in batches for s in batch if s.is_finished]
        assert finished
        assert all(s.minute == 90 for s in finished)
        ids = {s.match_id for batch in batches for s in batch}
        assert len(ids) > 2

    async def test_live_odds_only_while_in_play(self):
        feed = DemoMatchFeed(match_count=4, seed=9)

        for batch in await _play(feed, 40):
            for s in batch:
                if s.phase in (MatchPhase.LIVE, MatchPhase.HALF_TIME):
                    assert s.live_odds is not None
                else:
                    assert s.live_odds is None
                assert s.pre_match_odds is not None

    async def test_possession_sums_to_hundred(self):
        feed = DemoMatchFeed(match_count=3, seed=2)

        for s in await feed.fetch_snapshots():
            assert s.home.possession + s.away.possession == pytest.approx(100.0)
