from __future__ import annotations

import hashlib
import struct

from .errors import ArithmeticOverflow, InvalidRecord
from .models import COMMUNITY_CARDS, HOLE_CARDS, IDENTITY_BYTES, MAX_SEATS, Table

# Fixed-width table record: an 8-byte type tag followed by the packed
# fields in declaration order, all integers little-endian.
DISCRIMINATOR = hashlib.sha256(b"account:Game").digest()[:8]

_PAYLOAD = struct.Struct(
    "<"
    f"{IDENTITY_BYTES * MAX_SEATS}s"  # seats
    f"{HOLE_CARDS * MAX_SEATS}s"  # hole cards
    f"{COMMUNITY_CARDS}s"  # community cards
    "4Q"  # pot, small blind, big blind, current bet
    "3B"  # current turn, betting round, active flag
    f"{MAX_SEATS}s"  # fold flags
    f"{MAX_SEATS}Q"  # contributions
    "B"  # seats remaining
)

PAYLOAD_LEN = _PAYLOAD.size
RECORD_LEN = len(DISCRIMINATOR) + PAYLOAD_LEN


def encode_table(table: Table) -> bytes:
    seats = b"".join(table.seats)
    hands = bytes(code for hand in table.hole_cards for code in hand)
    try:
        payload = _PAYLOAD.pack(
            seats,
            hands,
            bytes(table.community_cards),
            table.pot,
            table.small_blind,
            table.big_blind,
            table.current_bet,
            table.current_turn,
            table.betting_round,
            int(table.active),
            bytes(int(flag) for flag in table.folded),
            *table.contributions,
            table.seats_remaining,
        )
    except struct.error as exc:
        raise ArithmeticOverflow(f"Table field out of range: {exc}") from exc
    return DISCRIMINATOR + payload


def decode_table(data: bytes) -> Table:
    if len(data) != RECORD_LEN:
        raise InvalidRecord(f"Table record must be {RECORD_LEN} bytes, got {len(data)}")
    if data[: len(DISCRIMINATOR)] != DISCRIMINATOR:
        raise InvalidRecord("Record is not a table")

    fields = _PAYLOAD.unpack(data[len(DISCRIMINATOR) :])
    seats_raw, hands_raw, community_raw = fields[0:3]
    pot, small_blind, big_blind, current_bet = fields[3:7]
    current_turn, betting_round, active = fields[7:10]
    folded_raw = fields[10]
    contributions = list(fields[11 : 11 + MAX_SEATS])
    seats_remaining = fields[11 + MAX_SEATS]

    if active > 1 or any(flag > 1 for flag in folded_raw):
        raise InvalidRecord("Boolean field holds a value other than 0 or 1")

    return Table(
        seats=[seats_raw[idx * IDENTITY_BYTES : (idx + 1) * IDENTITY_BYTES] for idx in range(MAX_SEATS)],
        hole_cards=[list(hands_raw[idx * HOLE_CARDS : (idx + 1) * HOLE_CARDS]) for idx in range(MAX_SEATS)],
        community_cards=list(community_raw),
        pot=pot,
        small_blind=small_blind,
        big_blind=big_blind,
        current_bet=current_bet,
        current_turn=current_turn,
        betting_round=betting_round,
        active=bool(active),
        folded=[bool(flag) for flag in folded_raw],
        contributions=contributions,
        seats_remaining=seats_remaining,
    )
