from __future__ import annotations

import asyncio
import json
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Set

import websockets
from websockets.asyncio.server import ServerConnection, serve

from holdem_ledger.errors import LedgerError, PokerError
from holdem_ledger.ledger import Ledger, rent_exempt_minimum
from holdem_ledger.models import (
    EMPTY_IDENTITY,
    Instruction,
    InstructionType,
    TableConfig,
    U64_MAX,
    identity_from_hex,
    short_id,
)
from holdem_ledger.record import RECORD_LEN

LOGGER = logging.getLogger("ledger_host")

# HostServer puts a WebSocket front end on the ledger. Clients submit
# instructions; the ledger decides. Every instruction runs under one lock so
# submissions against the table are applied one at a time.

CLIENT_INSTRUCTIONS = {
    InstructionType.JOIN_GAME,
    InstructionType.START_ROUND,
    InstructionType.BET,
    InstructionType.CALL,
    InstructionType.FOLD,
    InstructionType.REVEAL_WINNER,
    InstructionType.END_GAME,
}


@dataclass
class ClientSession:
    identity: bytes
    websocket: ServerConnection


class HostServer:
    def __init__(
        self,
        config: TableConfig,
        table_address: Optional[bytes] = None,
        clock: Optional[Callable[[], int]] = None,
    ) -> None:
        self.config = config
        self.ledger = Ledger(clock)
        self.table_id = "T-1"
        self.table_address = table_address or secrets.token_bytes(32)
        self.host_identity = secrets.token_bytes(32)
        self.sessions: Dict[bytes, ClientSession] = {}
        self.spectators: Set[ServerConnection] = set()
        self.lock = asyncio.Lock()
        self._initialize_table()

    def _initialize_table(self) -> None:
        self.ledger.airdrop(self.host_identity, rent_exempt_minimum(RECORD_LEN))
        self.ledger.execute(
            Instruction(
                kind=InstructionType.INITIALIZE_GAME,
                table=self.table_address,
                signer=self.host_identity,
                small_blind=self.config.small_blind,
                big_blind=self.config.big_blind,
            )
        )
        LOGGER.info(
            "Table %s initialized at %s (sb=%s bb=%s)",
            self.table_id,
            self.table_address.hex(),
            self.config.small_blind,
            self.config.big_blind,
        )

    async def start(self, host: str = "0.0.0.0", port: int = 8765) -> None:
        async with serve(self._handle_connection, host, port):
            LOGGER.info("Host server listening on %s:%s", host, port)
            await asyncio.Future()

    async def _handle_connection(self, websocket: ServerConnection) -> None:
        # First message must be "hello" so we know which key is talking.
        hello = await self._read_message(websocket)
        if hello is None or hello.get("type") != "hello":
            await self._send_error(websocket, code="BAD_HELLO", msg="Expected hello")
            await websocket.close()
            return
        role_raw = hello.get("role") or "player"
        role = role_raw.strip().casefold() if isinstance(role_raw, str) else "player"
        if role == "spectator":
            await self._handle_spectator_session(websocket)
            return

        identity_raw = hello.get("identity")
        try:
            if not isinstance(identity_raw, str):
                raise ValueError("identity required")
            identity = identity_from_hex(identity_raw)
            if identity == EMPTY_IDENTITY:
                raise ValueError("identity must not be the empty key")
        except ValueError as exc:
            await self._send_error(websocket, code="BAD_SCHEMA", msg=str(exc))
            await websocket.close()
            return

        previous = self.sessions.get(identity)
        if previous:
            await previous.websocket.close(code=4000, reason="Replaced by new connection")

        session = ClientSession(identity=identity, websocket=websocket)
        async with self.lock:
            self.sessions[identity] = session
            if identity not in self.ledger.accounts:
                self.ledger.airdrop(identity, self.config.starting_balance)
            balance = self.ledger.balance(identity)
            table_state = self._table_state_locked()
        LOGGER.info("Player %s connected (balance=%s)", short_id(identity), balance)

        await self._send_json(websocket, "welcome", {
            "table_id": self.table_id,
            "table": self.table_address.hex(),
            "identity": identity.hex(),
            "balance": balance,
            "config": {
                "sb": self.config.small_blind,
                "bb": self.config.big_blind,
                "starting_balance": self.config.starting_balance,
            },
        })
        await self._send_json(websocket, "table", table_state)

        try:
            async for raw in websocket:
                message = self._decode(raw)
                if message.get("type") == "instruction":
                    await self._handle_instruction(session, message)
                else:
                    await self._send_error(websocket, code="UNKNOWN_TYPE", msg="Unsupported message type")
        except websockets.ConnectionClosed:
            pass
        finally:
            if self.sessions.get(identity) is session:
                self.sessions.pop(identity, None)
        LOGGER.info("Player %s disconnected", short_id(identity))

    async def _handle_spectator_session(self, websocket: ServerConnection) -> None:
        LOGGER.info("Spectator connected")
        async with self.lock:
            self.spectators.add(websocket)
            table_state = self._table_state_locked()
        await self._send_json(websocket, "table", table_state)
        try:
            async for _ in websocket:
                LOGGER.warning("Spectator sent a message; closing connection")
                await websocket.close(code=4403, reason="Spectators are read-only")
                break
        except websockets.ConnectionClosed:
            pass
        finally:
            async with self.lock:
                self.spectators.discard(websocket)
            LOGGER.info("Spectator disconnected")

    def _parse_instruction(self, identity: bytes, message: Dict[str, object]) -> Instruction:
        try:
            kind = InstructionType(message.get("name"))
        except ValueError:
            raise LookupError("Unknown instruction") from None
        if kind not in CLIENT_INSTRUCTIONS:
            raise LookupError("Instruction not available to clients")

        instruction = Instruction(kind=kind, table=self.table_address, signer=identity)
        if kind in (InstructionType.JOIN_GAME, InstructionType.BET):
            field_name = "deposit" if kind == InstructionType.JOIN_GAME else "amount"
            amount = message.get(field_name, 0 if kind == InstructionType.JOIN_GAME else None)
            if isinstance(amount, bool) or not isinstance(amount, int) or not 0 <= amount <= U64_MAX:
                raise ValueError(f"{field_name} must be an integer between 0 and {U64_MAX}")
            instruction.amount = amount
        elif kind == InstructionType.REVEAL_WINNER:
            winner = message.get("winner")
            if not isinstance(winner, str):
                raise ValueError("winner required")
            instruction.winner = identity_from_hex(winner)
        return instruction

    async def _handle_instruction(self, session: ClientSession, message: Dict[str, object]) -> None:
        try:
            instruction = self._parse_instruction(session.identity, message)
        except LookupError as exc:
            await self._send_error(session.websocket, code="UNKNOWN_INSTRUCTION", msg=str(exc))
            return
        except ValueError as exc:
            await self._send_error(session.websocket, code="BAD_SCHEMA", msg=str(exc))
            return

        async with self.lock:
            try:
                events = self.ledger.execute(instruction)
            except (PokerError, LedgerError) as exc:
                LOGGER.warning(
                    "Rejected instruction signer=%s name=%s reason=%s",
                    short_id(session.identity),
                    instruction.kind.value,
                    exc.code,
                )
                number = exc.number if isinstance(exc, PokerError) else None
                await self._send_error(session.websocket, code=exc.code, msg=exc.msg, number=number)
                return
            table_state = self._table_state_locked()
            balances = {identity: self.ledger.balance(identity) for identity in self.sessions}

        LOGGER.debug(
            "Applied instruction signer=%s name=%s events=%s",
            short_id(session.identity),
            instruction.kind.value,
            events,
        )
        await self._broadcast_events(events)
        await self._publish_table(table_state)
        await self._publish_balances(balances)

    def _table_state_locked(self) -> Dict[str, object]:
        state = self.ledger.table(self.table_address).to_payload()
        state["table_id"] = self.table_id
        state["table_balance"] = self.ledger.balance(self.table_address)
        return state

    async def _broadcast(self, msg_type: str, payload: Dict[str, object]) -> None:
        async with self.lock:
            targets = [session.websocket for session in self.sessions.values()]
            targets.extend(self.spectators)
        if not targets:
            return
        message = self._envelope(msg_type, payload)
        await asyncio.gather(*(socket.send(message) for socket in targets), return_exceptions=True)

    async def _broadcast_events(self, events: List[Dict[str, object]]) -> None:
        for event in events:
            await self._broadcast("event", event)

    async def _publish_table(self, table_state: Dict[str, object]) -> None:
        await self._broadcast("table", table_state)

    async def _publish_balances(self, balances: Dict[bytes, int]) -> None:
        for identity, balance in balances.items():
            session = self.sessions.get(identity)
            if session:
                await self._send_json(session.websocket, "balance", {"balance": balance})

    async def _send_json(self, websocket: ServerConnection, msg_type: str, payload: Dict[str, object]) -> None:
        try:
            await websocket.send(self._envelope(msg_type, payload))
        except websockets.ConnectionClosed:
            pass

    async def _send_error(
        self, websocket: ServerConnection, code: str, msg: str, number: Optional[int] = None
    ) -> None:
        payload: Dict[str, object] = {"code": code, "msg": msg}
        if number is not None:
            payload["number"] = number
        await self._send_json(websocket, "error", payload)

    def _envelope(self, msg_type: str, payload: Dict[str, object]) -> str:
        body = {"type": msg_type, "v": 1, "ts": datetime.now(timezone.utc).isoformat()}
        body.update(payload)
        return json.dumps(body)

    async def _read_message(self, websocket: ServerConnection) -> Optional[Dict[str, object]]:
        try:
            raw = await asyncio.wait_for(websocket.recv(), timeout=5)
            return self._decode(raw)
        except (asyncio.TimeoutError, websockets.ConnectionClosed):
            return None

    def _decode(self, raw: str) -> Dict[str, object]:
        try:
            message = json.loads(raw)
        except json.JSONDecodeError:
            return {}
        return message if isinstance(message, dict) else {}
