from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from .cards import card_label

MAX_SEATS = 6
HOLE_CARDS = 2
COMMUNITY_CARDS = 5
IDENTITY_BYTES = 32
U64_MAX = (1 << 64) - 1

# Empty seats hold the all-zero key; no real account can own it.
EMPTY_IDENTITY = bytes(IDENTITY_BYTES)


def identity_from_hex(value: str) -> bytes:
    raw = bytes.fromhex(value)
    if len(raw) != IDENTITY_BYTES:
        raise ValueError(f"Identity must be {IDENTITY_BYTES} bytes, got {len(raw)}")
    return raw


def short_id(identity: bytes) -> str:
    return identity.hex()[:8]


class InstructionType(str, Enum):
    INITIALIZE_GAME = "initialize_game"
    JOIN_GAME = "join_game"
    START_ROUND = "start_round"
    BET = "bet"
    CALL = "call"
    FOLD = "fold"
    REVEAL_WINNER = "reveal_winner"
    END_GAME = "end_game"


# Instructions that carry a player's signature; start_round and
# reveal_winner may be submitted by anyone.
SIGNED_INSTRUCTIONS = frozenset(
    {
        InstructionType.INITIALIZE_GAME,
        InstructionType.JOIN_GAME,
        InstructionType.BET,
        InstructionType.CALL,
        InstructionType.FOLD,
        InstructionType.END_GAME,
    }
)


@dataclass
class TableConfig:
    small_blind: int = 50
    big_blind: int = 100
    starting_balance: int = 10_000


@dataclass
class Instruction:
    kind: InstructionType
    table: bytes
    signer: Optional[bytes] = None
    amount: int = 0
    small_blind: int = 0
    big_blind: int = 0
    winner: Optional[bytes] = None


def _empty_seats() -> List[bytes]:
    return [EMPTY_IDENTITY] * MAX_SEATS


def _empty_hands() -> List[List[int]]:
    return [[0] * HOLE_CARDS for _ in range(MAX_SEATS)]


@dataclass
class Table:
    """Decoded view of one table record."""

    seats: List[bytes] = field(default_factory=_empty_seats)
    hole_cards: List[List[int]] = field(default_factory=_empty_hands)
    community_cards: List[int] = field(default_factory=lambda: [0] * COMMUNITY_CARDS)
    pot: int = 0
    small_blind: int = 0
    big_blind: int = 0
    current_bet: int = 0
    current_turn: int = 0
    betting_round: int = 0
    active: bool = False
    folded: List[bool] = field(default_factory=lambda: [False] * MAX_SEATS)
    contributions: List[int] = field(default_factory=lambda: [0] * MAX_SEATS)
    seats_remaining: int = 0

    def is_occupied(self, seat_idx: int) -> bool:
        return self.seats[seat_idx] != EMPTY_IDENTITY

    def is_live(self, seat_idx: int) -> bool:
        return self.is_occupied(seat_idx) and not self.folded[seat_idx]

    def seat_of(self, identity: bytes) -> Optional[int]:
        if identity == EMPTY_IDENTITY:
            return None
        for idx, seat in enumerate(self.seats):
            if seat == identity:
                return idx
        return None

    def occupied_seats(self) -> List[int]:
        return [idx for idx in range(MAX_SEATS) if self.is_occupied(idx)]

    def live_seats(self) -> List[int]:
        return [idx for idx in range(MAX_SEATS) if self.is_live(idx)]

    def reset_round(self) -> None:
        self.folded = [False] * MAX_SEATS
        self.contributions = [0] * MAX_SEATS
        self.pot = 0

    def clear(self) -> None:
        # Blinds survive a reset; everything else returns to the freshly
        # initialized shape.
        self.seats = _empty_seats()
        self.hole_cards = _empty_hands()
        self.community_cards = [0] * COMMUNITY_CARDS
        self.pot = 0
        self.current_bet = 0
        self.current_turn = 0
        self.betting_round = 0
        self.active = False
        self.folded = [False] * MAX_SEATS
        self.contributions = [0] * MAX_SEATS
        self.seats_remaining = 0

    def to_payload(self) -> Dict[str, object]:
        dealt = self.active or any(self.community_cards)
        return {
            "pot": self.pot,
            "sb": self.small_blind,
            "bb": self.big_blind,
            "current_bet": self.current_bet,
            "current_turn": self.current_turn,
            "betting_round": self.betting_round,
            "active": self.active,
            "seats_remaining": self.seats_remaining,
            "community": [card_label(code) for code in self.community_cards] if dealt else [],
            "seats": [
                {
                    "seat": idx,
                    "identity": self.seats[idx].hex(),
                    # A seat taken mid-round still holds the [0, 0] placeholder.
                    "hole": [card_label(code) for code in self.hole_cards[idx]]
                    if dealt and any(self.hole_cards[idx])
                    else [],
                    "has_folded": self.folded[idx],
                    "contribution": self.contributions[idx],
                }
                for idx in self.occupied_seats()
            ],
        }
