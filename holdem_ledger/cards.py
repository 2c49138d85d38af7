from __future__ import annotations

from dataclasses import dataclass
from typing import List

RANKS = "23456789TJQKA"
SUITS = "hdcs"
DECK_SIZE = len(RANKS) * len(SUITS)

U64_MASK = (1 << 64) - 1
LCG_MULTIPLIER = 6364136223846793005
LCG_INCREMENT = 1


@dataclass(frozen=True)
class Card:
    rank: str
    suit: str

    def __post_init__(self) -> None:
        if self.rank not in RANKS:
            raise ValueError(f"Invalid rank: {self.rank}")
        if self.suit not in SUITS:
            raise ValueError(f"Invalid suit: {self.suit}")

    @property
    def label(self) -> str:
        return f"{self.rank}{self.suit}"

    @property
    def code(self) -> int:
        return RANKS.index(self.rank) * len(SUITS) + SUITS.index(self.suit)

    @classmethod
    def from_code(cls, code: int) -> "Card":
        if not 0 <= code < DECK_SIZE:
            raise ValueError(f"Invalid card code: {code}")
        rank_idx, suit_idx = divmod(code, len(SUITS))
        return cls(RANKS[rank_idx], SUITS[suit_idx])


def derive_seed(timestamp: int, table_address: bytes) -> int:
    """Seed the shuffle from the clock and the first byte of the table key.

    Both inputs are public, so anyone can predict the deal. Kept as-is for
    compatibility with tables dealt by earlier clients.
    """
    return (timestamp + table_address[0]) & U64_MASK


def lcg_next(state: int) -> int:
    return (state * LCG_MULTIPLIER + LCG_INCREMENT) & U64_MASK


def pseudo_shuffle(deck: List[int], seed: int) -> List[int]:
    # Fisher-Yates from the last index down to 1, one LCG step per swap.
    state = seed & U64_MASK
    for i in range(len(deck) - 1, 0, -1):
        state = lcg_next(state)
        j = state % (i + 1)
        deck[i], deck[j] = deck[j], deck[i]
    return deck


def build_deck(seed: int) -> List[int]:
    return pseudo_shuffle(list(range(DECK_SIZE)), seed)


def deal(deck: List[int], count: int) -> List[int]:
    if len(deck) < count:
        raise ValueError("Not enough cards left in deck")
    cards = deck[:count]
    del deck[:count]
    return cards


def card_label(code: int) -> str:
    return Card.from_code(code).label


def parse_label(label: str) -> int:
    if len(label) != 2:
        raise ValueError(f"Invalid card label: {label}")
    return Card(label[0], label[1]).code
