"""
Deck - The shared Court deck of role cards.

Drawing takes from the front; returned cards go to the end and are
normally followed by a reshuffle. The deck owns its own random.Random so
games can be replayed from a seed.
"""

from __future__ import annotations
import random
from typing import Iterable

from .cards import Card, CardKind

CARDS_PER_KIND = 3
DECK_SIZE = CARDS_PER_KIND * len(CardKind)


class Deck:
    """An ordered, mutable pool of cards."""

    def __init__(
        self,
        cards: Iterable[Card] | None = None,
        rng: random.Random | None = None,
        seed: int | None = None,
    ):
        self.cards: list[Card] = list(cards) if cards is not None else []
        self._rng = rng if rng is not None else random.Random(seed)

    @classmethod
    def create_standard(
        cls,
        rng: random.Random | None = None,
        seed: int | None = None,
    ) -> Deck:
        """
        Build the standard 15-card deck, unshuffled.

        Order is kind by kind, repeated CARDS_PER_KIND times. Callers
        shuffle before use.
        """
        cards = [
            Card(kind)
            for _ in range(CARDS_PER_KIND)
            for kind in CardKind
        ]
        return cls(cards=cards, rng=rng, seed=seed)

    def __len__(self) -> int:
        return len(self.cards)

    @property
    def is_empty(self) -> bool:
        return not self.cards

    def reseed(self, seed: int | None) -> None:
        self._rng.seed(seed)

    def shuffle(self) -> None:
        """Fisher-Yates shuffle in place."""
        cards = self.cards
        for i in range(len(cards) - 1, 0, -1):
            j = self._rng.randint(0, i)
            cards[i], cards[j] = cards[j], cards[i]

    def draw(self) -> Card | None:
        """Pop the front card, or None when the deck is empty."""
        if not self.cards:
            return None
        return self.cards.pop(0)

    def return_card(self, card: Card) -> None:
        """Put a card back at the end of the deck."""
        self.cards.append(card)

    def return_and_shuffle(self, cards: Iterable[Card]) -> None:
        for card in cards:
            self.return_card(card)
        self.shuffle()

    def count(self, kind: CardKind) -> int:
        return sum(1 for card in self.cards if card.kind == kind)

    def kinds(self) -> list[CardKind]:
        return [card.kind for card in self.cards]
