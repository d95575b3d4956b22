"""
Ports (interfaces) for card storage.

These define the contract that infrastructure adapters must implement.
Application services depend on these abstractions, not concrete implementations.
"""

from abc import ABC, abstractmethod

from .models import Card, DailyReviewRecord, StreakHistory


class CardRepository(ABC):
    """
    Port for loading and storing card scheduling state.

    Implementations:
        - SnapshotCardRepository: Reads and writes a YAML/JSON snapshot file.
    """

    @abstractmethod
    async def get_cards(self, pack_id: str | None = None) -> list[Card]:
        """
        Fetch cards, optionally restricted to one pack.

        Args:
            pack_id: Only return cards belonging to this pack when given.

        Returns:
            List of Card records in storage order.
        """
        pass

    @abstractmethod
    async def get_card(self, card_id: str) -> Card:
        """
        Fetch a single card.

        Raises:
            CardNotFound: If no card has the given id.
        """
        pass

    @abstractmethod
    async def save_card(self, card: Card) -> None:
        """
        Persist a card's new scheduling state, replacing the stored record.
        """
        pass

    @abstractmethod
    async def get_review_history(self) -> list[DailyReviewRecord]:
        """
        Fetch daily review records, sorted by date ascending.
        """
        pass

    @abstractmethod
    async def get_streak_history(self) -> StreakHistory:
        """
        Fetch stored streak state, or an empty StreakHistory if none is stored.
        """
        pass

    @abstractmethod
    async def save_review(
        self, card: Card, history: list[DailyReviewRecord], streak: StreakHistory
    ) -> None:
        """
        Persist the outcome of one review in a single write.

        Stores the card's new scheduling state together with the updated
        review history and streak state, so none of them is saved without
        the others.
        """
        pass
