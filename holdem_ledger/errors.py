from __future__ import annotations

from typing import Dict, Optional, Type

# Rules errors are numbered from 6000 in declaration order; the host sends the
# number alongside the name in every rules error envelope.
ERROR_CODE_OFFSET = 6000


class PokerError(Exception):
    """A table instruction was rejected by the game rules."""

    number: int = ERROR_CODE_OFFSET
    message: str = "Poker rule violated."

    def __init__(self, msg: Optional[str] = None) -> None:
        super().__init__(msg or self.message)
        self.code = type(self).__name__
        self.msg = msg or self.message


class GameFull(PokerError):
    number = 6000
    message = "Game is full."


class GameAlreadyStarted(PokerError):
    number = 6001
    message = "Game already started."


class GameNotActive(PokerError):
    number = 6002
    message = "Game is not active."


class PlayerNotInGame(PokerError):
    number = 6003
    message = "Player not in game."


class PlayerAlreadyFolded(PokerError):
    number = 6004
    message = "Player has already folded."


class PlayerFolded(PokerError):
    number = 6005
    message = "Player has folded."


class NotPlayersTurn(PokerError):
    number = 6006
    message = "Not player's turn."


class BetTooLow(PokerError):
    number = 6007
    message = "Bet amount is too low."


class NoActivePlayers(PokerError):
    number = 6008
    message = "No active players remaining."


class NotAuthorized(PokerError):
    number = 6009
    message = "Not authorized to perform this action."


class PlayerAlreadyJoined(PokerError):
    number = 6010
    message = "Player already holds a seat."


class InvalidIdentity(PokerError):
    number = 6011
    message = "Identity is not a valid player key."


POKER_ERRORS: Dict[str, Type[PokerError]] = {
    cls.__name__: cls
    for cls in (
        GameFull,
        GameAlreadyStarted,
        GameNotActive,
        PlayerNotInGame,
        PlayerAlreadyFolded,
        PlayerFolded,
        NotPlayersTurn,
        BetTooLow,
        NoActivePlayers,
        NotAuthorized,
        PlayerAlreadyJoined,
        InvalidIdentity,
    )
}


class LedgerError(Exception):
    """Failure raised by the ledger runtime rather than the game rules."""

    def __init__(self, code: str, msg: str) -> None:
        super().__init__(msg)
        self.code = code
        self.msg = msg


class InsufficientFunds(LedgerError):
    def __init__(self, needed: int, available: int) -> None:
        super().__init__("InsufficientFunds", f"Insufficient funds: need {needed}, have {available}")
        self.needed = needed
        self.available = available


class AccountNotFound(LedgerError):
    def __init__(self, address_hex: str) -> None:
        super().__init__("AccountNotFound", f"No record stored at {address_hex}")


class AccountAlreadyInUse(LedgerError):
    def __init__(self, address_hex: str) -> None:
        super().__init__("AccountAlreadyInUse", f"Account {address_hex} already holds a record")


class InvalidRecord(LedgerError):
    def __init__(self, msg: str) -> None:
        super().__init__("InvalidRecord", msg)


class MissingSignature(LedgerError):
    def __init__(self, instruction: str) -> None:
        super().__init__("MissingSignature", f"{instruction} requires a signer")


class ArithmeticOverflow(LedgerError):
    def __init__(self, msg: str) -> None:
        super().__init__("ArithmeticOverflow", msg)
