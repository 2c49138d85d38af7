import logging

import pytest

from holdem_ledger.errors import (
    AccountAlreadyInUse,
    ArithmeticOverflow,
    GameNotActive,
    AccountNotFound,
    InsufficientFunds,
    InvalidRecord,
    MissingSignature,
)
from holdem_ledger.ledger import Ledger, rent_exempt_minimum
from holdem_ledger.models import Instruction, InstructionType
from holdem_ledger.record import RECORD_LEN

from .helpers import CREATOR, TABLE_ADDRESS, create_ledger, player, seat_players, submit, table_of


def test_initialize_charges_rent_to_creator():
    ledger = create_ledger()
    assert ledger.balance(CREATOR) == 0
    assert ledger.balance(TABLE_ADDRESS) == rent_exempt_minimum(RECORD_LEN)
    assert len(ledger.accounts[TABLE_ADDRESS].data) == RECORD_LEN


def test_initialize_twice_rejected():
    ledger = create_ledger()
    ledger.airdrop(CREATOR, rent_exempt_minimum(RECORD_LEN))
    with pytest.raises(AccountAlreadyInUse):
        ledger.execute(
            Instruction(kind=InstructionType.INITIALIZE_GAME, table=TABLE_ADDRESS, signer=CREATOR, big_blind=20)
        )
    assert table_of(ledger).big_blind == 10
    assert ledger.balance(CREATOR) == rent_exempt_minimum(RECORD_LEN)


def test_initialize_without_rent_rejected():
    ledger = Ledger(clock=lambda: 0)
    with pytest.raises(InsufficientFunds):
        ledger.execute(Instruction(kind=InstructionType.INITIALIZE_GAME, table=TABLE_ADDRESS, signer=CREATOR))
    with pytest.raises(AccountNotFound):
        ledger.table(TABLE_ADDRESS)


def test_join_with_unfunded_deposit_is_rolled_back():
    ledger = create_ledger()
    seat_players(ledger, 1)
    ledger.airdrop(player(1), 50)
    before = ledger.accounts[TABLE_ADDRESS].data

    with pytest.raises(InsufficientFunds) as excinfo:
        submit(ledger, InstructionType.JOIN_GAME, player(1), amount=80)

    assert excinfo.value.code == "InsufficientFunds"
    assert ledger.accounts[TABLE_ADDRESS].data == before
    table = table_of(ledger)
    assert table.seat_of(player(1)) is None
    assert table.seats_remaining == 1
    assert ledger.balance(player(1)) == 50


def test_signed_instructions_require_signer():
    ledger = create_ledger()
    with pytest.raises(MissingSignature):
        submit(ledger, InstructionType.JOIN_GAME)


def test_start_round_needs_no_signer():
    ledger = create_ledger()
    seat_players(ledger, 2)
    submit(ledger, InstructionType.START_ROUND)
    assert table_of(ledger).active


def test_uninitialized_record_is_rejected():
    ledger = Ledger(clock=lambda: 0)
    ledger.airdrop(CREATOR, rent_exempt_minimum(RECORD_LEN))
    ledger.allocate(TABLE_ADDRESS, RECORD_LEN, CREATOR)
    with pytest.raises(InvalidRecord):
        ledger.table(TABLE_ADDRESS)


def test_transfer_moves_balance():
    ledger = Ledger()
    ledger.airdrop(player(0), 100)
    ledger.transfer(60, player(0), player(1))
    assert ledger.balance(player(0)) == 40
    assert ledger.balance(player(1)) == 60
    with pytest.raises(InsufficientFunds):
        ledger.transfer(41, player(0), player(1))
    with pytest.raises(ValueError):
        ledger.transfer(-1, player(0), player(1))


def test_rollback_is_logged(caplog):
    ledger = create_ledger()
    seat_players(ledger, 2)
    with caplog.at_level(logging.INFO, logger="holdem_ledger"):
        with pytest.raises(GameNotActive):
            submit(ledger, InstructionType.CALL, player(0))
    assert any("Rolled back call" in record.getMessage() for record in caplog.records)


def test_pot_overflow_is_rolled_back():
    ledger = create_ledger()
    players = seat_players(ledger, 2)
    submit(ledger, InstructionType.START_ROUND)
    submit(ledger, InstructionType.BET, players[0], amount=2**63)
    before = ledger.accounts[TABLE_ADDRESS].data

    with pytest.raises(ArithmeticOverflow) as excinfo:
        submit(ledger, InstructionType.CALL, players[1])

    assert excinfo.value.code == "ArithmeticOverflow"
    assert ledger.accounts[TABLE_ADDRESS].data == before
    table = table_of(ledger)
    assert table.pot == 2**63
    assert table.contributions[1] == 0
    assert table.current_turn == 1
