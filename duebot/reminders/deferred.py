"""One-shot deferred sends (``POST /agendar``).

Armed sends are asyncio tasks held in memory by ``DeferredSends``; a restart
forgets them. Each fires once, sends through ``send_one`` and drops itself from
the registry.
"""
from __future__ import annotations

import asyncio
import itertools
from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from typing import Callable, Optional

from loguru import logger

from duebot.errors import DueBotError, InvalidScheduleError
from duebot.reminders.evaluator import as_instant
from duebot.reminders.notifier import send_one
from duebot.session.state import SessionManager


@dataclass(frozen=True)
class PendingSend:
    id: int
    recipient: str
    message: str
    send_at: datetime


def parse_send_at(raw: str, tz: tzinfo = timezone.utc) -> datetime:
    try:
        return as_instant(datetime.fromisoformat(raw.strip()), tz)
    except (TypeError, ValueError) as e:
        raise InvalidScheduleError(f"bad dataHora {raw!r}", public="Data/hora inválida.") from e


def iso_utc(dt: datetime) -> str:
    """``2024-01-01T12:00:00.000Z``"""
    return dt.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class DeferredSends:
    def __init__(self, session_getter: Callable[[], Optional[SessionManager]],
                 *, clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc)):
        self._session = session_getter
        self._clock = clock
        self._ids = itertools.count(1)
        self._tasks: dict[int, asyncio.Task] = {}
        self._pending: dict[int, PendingSend] = {}

    def pending(self) -> list[PendingSend]:
        return sorted(self._pending.values(), key=lambda p: p.send_at)

    def __len__(self) -> int:
        return len(self._pending)

    def schedule(self, recipient: str, message: str, send_at: datetime) -> PendingSend:
        delay = (send_at - self._clock()).total_seconds()
        if delay <= 0:
            raise InvalidScheduleError(f"dataHora {iso_utc(send_at)} is in the past")

        job = PendingSend(next(self._ids), recipient, message, send_at)
        self._pending[job.id] = job
        self._tasks[job.id] = asyncio.create_task(self._fire(job, delay), name=f"agendar-{job.id}")
        logger.info(f"🕒 Envio #{job.id} para {recipient} agendado para {iso_utc(send_at)}")
        return job

    async def _fire(self, job: PendingSend, delay: float) -> None:
        try:
            await asyncio.sleep(delay)
            await send_one(self._session(), job.recipient, job.message)
            logger.info(f"✅ Mensagem enviada para {job.recipient} às {iso_utc(job.send_at)}")
        except DueBotError as e:
            logger.error(f"❌ Erro ao enviar mensagem agendada #{job.id}: {e}")
        finally:
            self._pending.pop(job.id, None)
            self._tasks.pop(job.id, None)

    async def shutdown(self) -> None:
        """Drop every armed send; called when the process stops."""
        tasks = list(self._tasks.values())
        for t in tasks:
            t.cancel()
        self._pending.clear()
        self._tasks.clear()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.warning(f"{len(tasks)} envio(s) agendado(s) descartado(s) no desligamento")
