"""Poker table rules and the ledger runtime that executes them."""

from .cards import Card, DECK_SIZE, RANKS, SUITS, build_deck, card_label, deal, pseudo_shuffle
from .errors import LedgerError, PokerError
from .game import TableEngine, next_active_seat
from .ledger import Ledger
from .models import EMPTY_IDENTITY, MAX_SEATS, Instruction, InstructionType, Table, TableConfig
from .record import RECORD_LEN, decode_table, encode_table

__all__ = [
    "Card",
    "DECK_SIZE",
    "RANKS",
    "SUITS",
    "build_deck",
    "card_label",
    "deal",
    "pseudo_shuffle",
    "LedgerError",
    "PokerError",
    "TableEngine",
    "next_active_seat",
    "Ledger",
    "EMPTY_IDENTITY",
    "MAX_SEATS",
    "Instruction",
    "InstructionType",
    "Table",
    "TableConfig",
    "RECORD_LEN",
    "decode_table",
    "encode_table",
]
