from __future__ import annotations

from typing import List, Optional

from holdem_ledger.ledger import Ledger, rent_exempt_minimum
from holdem_ledger.models import MAX_SEATS, Instruction, InstructionType, Table
from holdem_ledger.record import RECORD_LEN

TABLE_ADDRESS = bytes([0x2A]) * 32
CREATOR = bytes([0xC0]) * 32
FIXED_TIME = 1_700_000_000
STARTING_BALANCE = 1_000


def player(idx: int) -> bytes:
    """Deterministic 32-byte identity for test player ``idx``."""
    return bytes([idx + 1]) * 32


def create_ledger(*, sb: int = 5, bb: int = 10, clock_time: int = FIXED_TIME) -> Ledger:
    """Ledger with one initialized, empty table at TABLE_ADDRESS."""
    ledger = Ledger(clock=lambda: clock_time)
    ledger.airdrop(CREATOR, rent_exempt_minimum(RECORD_LEN))
    ledger.execute(
        Instruction(
            kind=InstructionType.INITIALIZE_GAME,
            table=TABLE_ADDRESS,
            signer=CREATOR,
            small_blind=sb,
            big_blind=bb,
        )
    )
    return ledger


def submit(
    ledger: Ledger,
    kind: InstructionType,
    signer: Optional[bytes] = None,
    *,
    amount: int = 0,
    winner: Optional[bytes] = None,
):
    return ledger.execute(Instruction(kind=kind, table=TABLE_ADDRESS, signer=signer, amount=amount, winner=winner))


def seat_players(ledger: Ledger, count: int, deposit: int = 0) -> List[bytes]:
    players = []
    for idx in range(count):
        identity = player(idx)
        ledger.airdrop(identity, STARTING_BALANCE)
        submit(ledger, InstructionType.JOIN_GAME, identity, amount=deposit)
        players.append(identity)
    return players


def table_of(ledger: Ledger) -> Table:
    return ledger.table(TABLE_ADDRESS)


def assert_invariants(table: Table) -> None:
    live = [idx for idx in range(MAX_SEATS) if table.is_occupied(idx) and not table.folded[idx]]
    assert table.seats_remaining == len(live)
    occupied = [seat for seat in table.seats if seat != bytes(32)]
    assert len(occupied) == len(set(occupied))
    if table.active and table.seats_remaining > 1:
        assert table.current_turn in live
