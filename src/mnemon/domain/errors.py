"""Exceptions raised by the engine and its adapters."""


class InvalidInput(ValueError):
    """A caller passed an argument outside its contract (rating, days, limit, naive time)."""


class CardNotFound(KeyError):
    """A repository was asked for a card id it does not hold."""

    def __init__(self, card_id: str):
        super().__init__(card_id)
        self.card_id = card_id

    def __str__(self) -> str:
        return f"Card not found: {self.card_id}"


class SnapshotError(Exception):
    """A card snapshot file could not be read, parsed or validated."""
