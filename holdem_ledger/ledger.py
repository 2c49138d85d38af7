from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from .errors import AccountAlreadyInUse, AccountNotFound, InsufficientFunds, MissingSignature
from .game import Events, TableEngine
from .models import SIGNED_INSTRUCTIONS, Instruction, InstructionType, Table, short_id
from .record import RECORD_LEN, decode_table, encode_table

LOGGER = logging.getLogger("holdem_ledger")

# Storage rent: a record must pre-pay two years of per-byte rent plus a
# fixed per-account overhead before it can be allocated.
ACCOUNT_STORAGE_OVERHEAD = 128
RENT_PER_BYTE_YEAR = 3_480
RENT_EXEMPTION_YEARS = 2


def rent_exempt_minimum(size: int) -> int:
    return (ACCOUNT_STORAGE_OVERHEAD + size) * RENT_PER_BYTE_YEAR * RENT_EXEMPTION_YEARS


@dataclass
class Account:
    balance: int = 0
    data: Optional[bytes] = None


class Ledger:
    """In-memory account store that runs table instructions atomically."""

    def __init__(self, clock: Optional[Callable[[], int]] = None) -> None:
        self.accounts: Dict[bytes, Account] = {}
        self.clock = clock or (lambda: int(time.time()))

    # Accounts ---------------------------------------------------------

    def _account(self, address: bytes) -> Account:
        account = self.accounts.get(address)
        if account is None:
            account = Account()
            self.accounts[address] = account
        return account

    def balance(self, address: bytes) -> int:
        account = self.accounts.get(address)
        return account.balance if account else 0

    def airdrop(self, address: bytes, amount: int) -> None:
        self._account(address).balance += amount

    def transfer(self, amount: int, source: bytes, destination: bytes) -> None:
        if amount < 0:
            raise ValueError("Transfer amount must be non-negative")
        available = self.balance(source)
        if amount > available:
            raise InsufficientFunds(amount, available)
        self._account(source).balance -= amount
        self._account(destination).balance += amount

    def allocate(self, address: bytes, size: int, payer: bytes) -> None:
        account = self.accounts.get(address)
        if account is not None and account.data is not None:
            raise AccountAlreadyInUse(address.hex())
        self.transfer(rent_exempt_minimum(size), payer, address)
        self._account(address).data = bytes(size)

    def table(self, address: bytes) -> Table:
        account = self.accounts.get(address)
        if account is None or account.data is None:
            raise AccountNotFound(address.hex())
        return decode_table(account.data)

    # Instructions -----------------------------------------------------

    def execute(self, instruction: Instruction) -> Events:
        kind = instruction.kind
        if kind in SIGNED_INSTRUCTIONS and instruction.signer is None:
            raise MissingSignature(kind.value)

        # Every instruction is all-or-nothing: balances and the table record
        # are restored if any step fails.
        snapshot = {
            address: Account(account.balance, account.data) for address, account in self.accounts.items()
        }
        try:
            events = self._run(instruction)
        except Exception as exc:
            self.accounts = snapshot
            LOGGER.info(
                "Rolled back %s on table %s: %s",
                kind.value,
                short_id(instruction.table),
                exc,
            )
            raise

        LOGGER.debug(
            "Executed %s on table %s signer=%s events=%s",
            kind.value,
            short_id(instruction.table),
            short_id(instruction.signer) if instruction.signer else None,
            events,
        )
        return events

    def _run(self, instruction: Instruction) -> Events:
        address = instruction.table
        kind = instruction.kind

        if kind == InstructionType.INITIALIZE_GAME:
            assert instruction.signer is not None
            self.allocate(address, RECORD_LEN, instruction.signer)
            table = Table()
        else:
            table = self.table(address)

        engine = TableEngine(table, address, self, self.clock)
        signer = instruction.signer
        if kind == InstructionType.INITIALIZE_GAME:
            events = engine.initialize_game(instruction.small_blind, instruction.big_blind)
        elif kind == InstructionType.JOIN_GAME:
            assert signer is not None
            events = engine.join_game(signer, instruction.amount)
        elif kind == InstructionType.START_ROUND:
            events = engine.start_round()
        elif kind == InstructionType.BET:
            assert signer is not None
            events = engine.bet(signer, instruction.amount)
        elif kind == InstructionType.CALL:
            assert signer is not None
            events = engine.call(signer)
        elif kind == InstructionType.FOLD:
            assert signer is not None
            events = engine.fold(signer)
        elif kind == InstructionType.REVEAL_WINNER:
            if instruction.winner is None:
                raise ValueError("reveal_winner requires a winner")
            events = engine.reveal_winner(instruction.winner)
        elif kind == InstructionType.END_GAME:
            assert signer is not None
            events = engine.end_game(signer)
        else:
            raise ValueError(f"Unsupported instruction {kind}")

        self._account(address).data = encode_table(table)
        return events
