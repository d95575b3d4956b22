import dataclasses
import json
from datetime import date, datetime, timezone
from unittest.mock import patch

import pytest
import yaml

from mnemon.domain.cards.models import Card, DailyReviewRecord, StreakAchievement, StreakHistory
from mnemon.domain.errors import CardNotFound, SnapshotError
from mnemon.infrastructure.adapters.snapshot import SnapshotCardRepository

SNAPSHOT = """\
cards:
  - id: c1
    source_type: milestone
    source_id: E2017_TRANSFORMER
    pack_ids: [nlp]
    ease_factor: 2.36
    interval: 6
    repetitions: 2
    next_review_date: "2026-03-15T09:00:00+00:00"
    last_reviewed_at: "2026-03-09T09:00:00+00:00"
  - id: c2
    pack_ids: [vision]
history:
  - date: "2026-03-10"
    total_reviews: 3
    good_count: 2
    again_count: 1
"""


@pytest.fixture
def snapshot_file(tmp_path):
    path = tmp_path / "cards.yaml"
    path.write_text(SNAPSHOT)
    return path


@pytest.mark.asyncio
async def test_get_cards(snapshot_file):
    repo = SnapshotCardRepository(snapshot_file)
    cards = await repo.get_cards()

    assert [c.id for c in cards] == ["c1", "c2"]
    c1 = cards[0]
    assert c1.pack_ids == frozenset({"nlp"})
    assert c1.ease_factor == 2.36
    assert c1.next_review_date == datetime(2026, 3, 15, 9, 0, tzinfo=timezone.utc)
    assert cards[1].is_new
    assert cards[1].next_review_date is None


@pytest.mark.asyncio
async def test_get_cards_filters_by_pack(snapshot_file):
    repo = SnapshotCardRepository(snapshot_file)
    assert [c.id for c in await repo.get_cards("vision")] == ["c2"]


@pytest.mark.asyncio
async def test_get_card(snapshot_file):
    repo = SnapshotCardRepository(snapshot_file)
    assert (await repo.get_card("c1")).source_id == "E2017_TRANSFORMER"
    with pytest.raises(CardNotFound):
        await repo.get_card("nope")


@pytest.mark.asyncio
async def test_save_card_replaces_existing(snapshot_file):
    repo = SnapshotCardRepository(snapshot_file)
    card = await repo.get_card("c1")
    due = datetime(2026, 3, 30, 9, 0, tzinfo=timezone.utc)
    await repo.save_card(dataclasses.replace(card, interval=15, next_review_date=due))

    reloaded = await repo.get_cards()
    assert [c.id for c in reloaded] == ["c1", "c2"]
    assert reloaded[0].interval == 15
    assert reloaded[0].next_review_date == due
    # History survives a card write
    assert len(await repo.get_review_history()) == 1


@pytest.mark.asyncio
async def test_save_card_appends_new(snapshot_file):
    repo = SnapshotCardRepository(snapshot_file)
    await repo.save_card(Card(id="c3", source_id="C_ATTENTION"))
    assert [c.id for c in await repo.get_cards()] == ["c1", "c2", "c3"]


@pytest.mark.asyncio
async def test_review_history_round_trip(snapshot_file):
    repo = SnapshotCardRepository(snapshot_file)
    history = await repo.get_review_history()
    assert history == [
        DailyReviewRecord(date=date(2026, 3, 10), total_reviews=3, again_count=1, good_count=2)
    ]

    history.append(DailyReviewRecord(date=date(2026, 3, 11), total_reviews=1, easy_count=1))
    await repo.save_review(await repo.get_card("c2"), history, StreakHistory())

    assert await repo.get_review_history() == history
    assert len(await repo.get_cards()) == 2


@pytest.mark.asyncio
async def test_missing_file_is_empty(tmp_path):
    repo = SnapshotCardRepository(tmp_path / "absent.yaml")
    assert await repo.get_cards() == []
    assert await repo.get_review_history() == []


@pytest.mark.asyncio
async def test_save_creates_file(tmp_path):
    path = tmp_path / "sub" / "new.yaml"
    repo = SnapshotCardRepository(path)
    await repo.save_card(Card(id="c1"))

    data = yaml.safe_load(path.read_text())
    assert data["cards"][0]["id"] == "c1"


@pytest.mark.asyncio
async def test_json_snapshot(tmp_path):
    path = tmp_path / "cards.json"
    path.write_text(json.dumps({"cards": [{"id": "j1", "interval": 3}]}))
    repo = SnapshotCardRepository(path)

    await repo.save_card(Card(id="j2"))

    data = json.loads(path.read_text())
    assert [c["id"] for c in data["cards"]] == ["j1", "j2"]


@pytest.mark.asyncio
async def test_naive_timestamps_are_read_as_utc(tmp_path):
    path = tmp_path / "cards.yaml"
    path.write_text('cards:\n  - id: n1\n    next_review_date: "2026-03-12T08:00:00"\n')
    (card,) = await SnapshotCardRepository(path).get_cards()
    assert card.next_review_date == datetime(2026, 3, 12, 8, 0, tzinfo=timezone.utc)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "content",
    [
        "cards: [unclosed",
        "- just\n- a list\n",
        "cards:\n  - id: bad\n    interval: -3\n",
        "cards:\n  - source_id: no_id\n",
        "cards:\n  - id: soft\n    ease_factor: 0.5\n",
        'cards:\n  - id: lost\n    last_reviewed_at: "2026-03-09T09:00:00+00:00"\n',
        'cards:\n  - id: odd\n    interval: 4\n'
        '    next_review_date: "2026-03-12T09:00:00+00:00"\n',
    ],
)
async def test_malformed_snapshot_raises(tmp_path, content):
    path = tmp_path / "cards.yaml"
    path.write_text(content)
    with pytest.raises(SnapshotError):
        await SnapshotCardRepository(path).get_cards()


@pytest.mark.asyncio
async def test_fresh_due_now_card_loads(tmp_path):
    path = tmp_path / "cards.yaml"
    path.write_text(
        "cards:\n"
        "  - id: fresh\n"
        "    ease_factor: 1.3\n"
        '    next_review_date: "2026-03-11T10:00:00+00:00"\n'
    )
    (card,) = await SnapshotCardRepository(path).get_cards()
    assert card.is_new
    assert card.ease_factor == 1.3
    assert card.next_review_date == datetime(2026, 3, 11, 10, 0, tzinfo=timezone.utc)


# --- Reviews and streaks ---


@pytest.mark.asyncio
async def test_streak_defaults_when_not_stored(snapshot_file):
    repo = SnapshotCardRepository(snapshot_file)
    assert await repo.get_streak_history() == StreakHistory()
    # Files without a streak are written back without one
    await repo.save_card(Card(id="c3"))
    assert "streak" not in yaml.safe_load(snapshot_file.read_text())


@pytest.mark.asyncio
async def test_save_review_writes_card_history_and_streak_at_once(snapshot_file):
    repo = SnapshotCardRepository(snapshot_file)
    card = await repo.get_card("c1")
    updated = dataclasses.replace(card, interval=14, repetitions=3)
    history = [DailyReviewRecord(date=date(2026, 3, 11), total_reviews=1, good_count=1)]
    streak = StreakHistory(
        current_streak=7,
        longest_streak=10,
        last_study_date=date(2026, 3, 11),
        achievements=(StreakAchievement(milestone=7, achieved_on=date(2026, 3, 11)),),
    )

    with patch.object(repo, "_dump", wraps=repo._dump) as dump:
        await repo.save_review(updated, history, streak)
    dump.assert_called_once()

    assert (await repo.get_card("c1")).interval == 14
    assert await repo.get_review_history() == history
    assert await repo.get_streak_history() == streak

    data = yaml.safe_load(snapshot_file.read_text())
    assert data["streak"]["achievements"] == [{"milestone": 7, "achieved_on": "2026-03-11"}]


@pytest.mark.asyncio
async def test_save_review_adds_unknown_card(tmp_path):
    path = tmp_path / "cards.yaml"
    repo = SnapshotCardRepository(path)
    await repo.save_review(Card(id="n1"), [], StreakHistory())
    assert [c.id for c in await repo.get_cards()] == ["n1"]


@pytest.mark.asyncio
async def test_malformed_streak_raises(tmp_path):
    path = tmp_path / "cards.yaml"
    path.write_text("cards: []\nstreak:\n  longest_streak: -1\n")
    with pytest.raises(SnapshotError):
        await SnapshotCardRepository(path).get_streak_history()
