from __future__ import annotations

from typing import Callable, Dict, List, Protocol

from .cards import build_deck, deal, derive_seed
from .errors import (
    BetTooLow,
    GameAlreadyStarted,
    GameFull,
    GameNotActive,
    InvalidIdentity,
    NoActivePlayers,
    NotAuthorized,
    NotPlayersTurn,
    PlayerAlreadyFolded,
    PlayerAlreadyJoined,
    PlayerFolded,
    PlayerNotInGame,
)
from .models import COMMUNITY_CARDS, EMPTY_IDENTITY, HOLE_CARDS, MAX_SEATS, Table

# TableEngine holds the rules for one table record. Storage, signatures and
# value movement belong to the ledger; the engine only sees the Bank.

Events = List[Dict[str, object]]


class Bank(Protocol):
    def transfer(self, amount: int, source: bytes, destination: bytes) -> None:
        ...


def next_active_seat(table: Table, current: int) -> int:
    idx = current
    for _ in range(MAX_SEATS):
        idx = (idx + 1) % MAX_SEATS
        if table.is_live(idx):
            return idx
    raise NoActivePlayers()


class TableEngine:
    """Texas Hold'em table rules applied to a decoded table record."""

    def __init__(self, table: Table, address: bytes, bank: Bank, clock: Callable[[], int]) -> None:
        self.table = table
        self.address = address
        self.bank = bank
        self.clock = clock

    # Setup ------------------------------------------------------------

    def initialize_game(self, small_blind: int, big_blind: int) -> Events:
        self.table.clear()
        self.table.small_blind = small_blind
        self.table.big_blind = big_blind
        return [{"ev": "INITIALIZED", "sb": small_blind, "bb": big_blind}]

    # Seat management -------------------------------------------------

    def join_game(self, player: bytes, deposit: int) -> Events:
        table = self.table
        if player == EMPTY_IDENTITY:
            raise InvalidIdentity()
        if table.seat_of(player) is not None:
            raise PlayerAlreadyJoined()

        for idx in range(MAX_SEATS):
            if not table.is_occupied(idx):
                seat_idx = idx
                break
        else:
            raise GameFull()

        table.seats[seat_idx] = player
        table.seats_remaining += 1

        if deposit > 0:
            self.bank.transfer(deposit, player, self.address)
            table.pot += deposit

        return [{"ev": "JOIN", "seat": seat_idx, "identity": player.hex(), "deposit": deposit}]

    # Round lifecycle --------------------------------------------------

    def start_round(self) -> Events:
        table = self.table
        if table.active:
            raise GameAlreadyStarted()

        seed = derive_seed(self.clock(), self.address)
        deck = build_deck(seed)

        table.reset_round()
        table.seats_remaining = len(table.occupied_seats())

        for seat_idx in table.occupied_seats():
            table.hole_cards[seat_idx] = deal(deck, HOLE_CARDS)
        table.community_cards = deal(deck, COMMUNITY_CARDS)

        table.active = True
        table.betting_round = 0
        table.current_turn = 0
        # The big blind is only the opening threshold; nobody posts it.
        table.current_bet = table.big_blind
        return [
            {
                "ev": "DEAL",
                "seed": seed,
                "seats": table.occupied_seats(),
                "current_bet": table.current_bet,
            }
        ]

    # Action handling -------------------------------------------------

    def _acting_seat(self, player: bytes, *, folding: bool = False) -> int:
        table = self.table
        if not table.active:
            raise GameNotActive()
        seat_idx = table.seat_of(player)
        if seat_idx is None:
            raise PlayerNotInGame()
        if table.folded[seat_idx]:
            raise PlayerAlreadyFolded() if folding else PlayerFolded()
        if seat_idx != table.current_turn:
            raise NotPlayersTurn()
        return seat_idx

    def bet(self, player: bytes, amount: int) -> Events:
        table = self.table
        seat_idx = self._acting_seat(player)
        if amount < table.current_bet:
            raise BetTooLow()

        # Contribution is overwritten but the pot still grows by the full
        # amount, so a second bet from the same seat counts twice.
        table.contributions[seat_idx] = amount
        table.pot += amount
        table.current_bet = amount
        table.current_turn = next_active_seat(table, table.current_turn)
        return [{"ev": "BET", "seat": seat_idx, "amount": amount}]

    def call(self, player: bytes) -> Events:
        table = self.table
        seat_idx = self._acting_seat(player)

        owed = max(0, table.current_bet - table.contributions[seat_idx])
        table.contributions[seat_idx] += owed
        table.pot += owed
        table.current_turn = next_active_seat(table, table.current_turn)
        return [{"ev": "CALL", "seat": seat_idx, "amount": owed}]

    def fold(self, player: bytes) -> Events:
        table = self.table
        seat_idx = self._acting_seat(player, folding=True)

        table.folded[seat_idx] = True
        table.seats_remaining -= 1
        events: Events = [{"ev": "FOLD", "seat": seat_idx}]

        if table.seats_remaining == 1:
            # Last player standing; the payout still needs reveal_winner.
            table.active = False
            events.append({"ev": "ROUND_OVER", "survivor": table.live_seats()[0], "pot": table.pot})
        else:
            table.current_turn = next_active_seat(table, table.current_turn)
        return events

    # Settlement ------------------------------------------------------

    def reveal_winner(self, winner: bytes) -> Events:
        table = self.table
        if not table.active:
            raise GameNotActive()
        seat_idx = table.seat_of(winner)
        if seat_idx is None:
            raise PlayerNotInGame()
        if table.folded[seat_idx]:
            raise PlayerFolded()

        payout = table.pot
        self.bank.transfer(payout, self.address, winner)
        table.pot = 0
        table.active = False
        return [{"ev": "POT_AWARD", "seat": seat_idx, "amount": payout}]

    def end_game(self, signer: bytes) -> Events:
        table = self.table
        if signer == EMPTY_IDENTITY or signer != table.seats[0]:
            raise NotAuthorized()
        if not table.active:
            raise GameNotActive()

        events: Events = []
        if table.pot > 0:
            refund = table.pot
            self.bank.transfer(refund, self.address, signer)
            table.pot = 0
            events.append({"ev": "REFUND", "seat": 0, "amount": refund})

        table.clear()
        events.append({"ev": "RESET"})
        return events
