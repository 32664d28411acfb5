"""WhatsApp session lifecycle.

The session protocol lives behind a ``SessionTransport`` (see ``bridge.py``).
``SessionManager`` owns the connection state, folds transport events into it
and reconnects when the link drops, except after an explicit logout.

    DISCONNECTED -> AWAITING_SCAN (QR issued) -> CONNECTED
    CONNECTED    -> DISCONNECTED   (link lost, reconnect)
    any          -> LOGGED_OUT     (close with status 401, terminal)
"""
from __future__ import annotations

import asyncio
from contextlib import aclosing
from dataclasses import dataclass
from enum import Enum
from typing import AsyncIterator, Optional, Protocol

from loguru import logger

from duebot.errors import SessionUnavailableError

# Baileys' DisconnectReason.loggedOut
LOGGED_OUT_STATUS = 401


class Status(str, Enum):
    DISCONNECTED = "disconnected"
    AWAITING_SCAN = "awaiting_scan"
    CONNECTED = "connected"
    LOGGED_OUT = "logged_out"


STATUS_TEXT = {
    Status.DISCONNECTED: "Aguardando conexão...",
    Status.AWAITING_SCAN: "QR Code gerado",
    Status.CONNECTED: "Conectado ao WhatsApp!",
    Status.LOGGED_OUT: "Deslogado. Reautentique.",
}


@dataclass(frozen=True)
class ConnectionEvent:
    """One ``connection.update`` from the gateway."""
    connection: Optional[str] = None   # "open" | "close" | "connecting"
    qr: Optional[str] = None
    status_code: Optional[int] = None

    @classmethod
    def from_json(cls, d: dict) -> "ConnectionEvent":
        code = d.get("statusCode")
        return cls(
            connection=d.get("connection"),
            qr=d.get("qr") or None,
            status_code=int(code) if code is not None else None,
        )


@dataclass(frozen=True)
class ConnectionState:
    status: Status = Status.DISCONNECTED
    qr: Optional[str] = None
    last_disconnect: Optional[int] = None

    @property
    def text(self) -> str:
        return STATUS_TEXT[self.status]


class SessionTransport(Protocol):
    def events(self) -> AsyncIterator[ConnectionEvent]: ...
    async def send_text(self, jid: str, text: str) -> None: ...
    async def aclose(self) -> None: ...


class SessionManager:
    def __init__(self, transport: SessionTransport, *, reconnect_delay: float = 2.0):
        self._transport = transport
        self._reconnect_delay = reconnect_delay
        self._state = ConnectionState()

    # ---------- queries ----------
    def snapshot(self) -> ConnectionState:
        return self._state

    def is_connected(self) -> bool:
        return self._state.status is Status.CONNECTED

    # ---------- transitions ----------
    def handle_event(self, ev: ConnectionEvent) -> ConnectionState:
        st = self._state
        if ev.qr:
            st = ConnectionState(Status.AWAITING_SCAN, qr=ev.qr)
            logger.info("📲 QR Code gerado. Escaneie para conectar.")
        if ev.connection == "open":
            st = ConnectionState(Status.CONNECTED)
            logger.info("✅ Conectado ao WhatsApp!")
        elif ev.connection == "close":
            logger.warning(f"❌ Conexão encerrada. Motivo: {ev.status_code}")
            if ev.status_code == LOGGED_OUT_STATUS:
                st = ConnectionState(Status.LOGGED_OUT, last_disconnect=ev.status_code)
                logger.error("❌ Sessão encerrada no celular.")
            else:
                st = ConnectionState(Status.DISCONNECTED, last_disconnect=ev.status_code)
        self._state = st
        return st

    async def run(self) -> None:
        """Consume transport events until logout, reconnecting on every other close."""
        while self._state.status is not Status.LOGGED_OUT:
            try:
                async with aclosing(self._transport.events()) as events:
                    async for ev in events:
                        self.handle_event(ev)
                        if self._state.status is Status.LOGGED_OUT:
                            return
                        if ev.connection == "close":
                            break
                    else:
                        # stream ended without a close event
                        self.handle_event(ConnectionEvent(connection="close"))
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.warning(f"session stream failed: {e}")
                self.handle_event(ConnectionEvent(connection="close"))
            logger.info("🔄 Reconectando sessão...")
            await asyncio.sleep(self._reconnect_delay)

    # ---------- sending ----------
    async def send_text(self, jid: str, text: str) -> None:
        if not self.is_connected():
            raise SessionUnavailableError(f"session is {self._state.status.value}")
        await self._transport.send_text(jid, text)

    async def aclose(self) -> None:
        await self._transport.aclose()
