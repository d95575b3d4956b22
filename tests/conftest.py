from datetime import datetime, timedelta, timezone

import pytest

from mnemon.domain.cards.models import Card

# Wednesday
NOW = datetime(2026, 3, 11, 10, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def make_card():
    """Factory for cards scheduled relative to NOW.

    ``due_in`` and ``reviewed_ago`` are in days; None leaves the field unset.
    """

    def _make(
        card_id="c1",
        due_in=None,
        reviewed_ago=None,
        ease_factor=2.5,
        interval=0,
        repetitions=0,
        source_id="",
        pack_ids=(),
    ):
        return Card(
            id=card_id,
            source_id=source_id or card_id,
            pack_ids=frozenset(pack_ids),
            ease_factor=ease_factor,
            interval=interval,
            repetitions=repetitions,
            next_review_date=None if due_in is None else NOW + timedelta(days=due_in),
            last_reviewed_at=None if reviewed_ago is None else NOW - timedelta(days=reviewed_ago),
        )

    return _make


@pytest.fixture
def mock_home(tmp_path, monkeypatch):
    """Mocks Path.home() to point to a temp dir."""
    home = tmp_path / "home"
    home.mkdir()

    # Mocking HOME to a temp directory to isolate config files
    monkeypatch.setenv("HOME", str(home))
    return home
