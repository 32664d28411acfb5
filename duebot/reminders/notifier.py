from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from loguru import logger

from duebot.billing.models import CustomerRecord
from duebot.errors import SendError, SessionUnavailableError
from duebot.session.state import SessionManager

JID_SUFFIX = "@s.whatsapp.net"

REMINDER_TEMPLATE = (
    "Olá *{name}*, seu plano vence em *{due_date}*. "
    "Por favor, regularize com antecedência."
)


class Outcome(str, Enum):
    SENT = "sent"
    FAILED = "failed"


@dataclass(frozen=True)
class NotificationResult:
    customer: CustomerRecord
    outcome: Outcome
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.SENT


def jid_for(contact: str | int) -> str:
    return f"{contact}{JID_SUFFIX}"


def reminder_text(c: CustomerRecord) -> str:
    return REMINDER_TEMPLATE.format(name=c.name, due_date=c.due_date)


def require_session(session: Optional[SessionManager]) -> SessionManager:
    if session is None or not session.is_connected():
        raise SessionUnavailableError()
    return session


async def send_one(session: Optional[SessionManager], contact: str | int, text: str) -> None:
    """Deliver one text; raises SessionUnavailableError or SendError."""
    s = require_session(session)
    try:
        await s.send_text(jid_for(contact), text)
    except (SendError, SessionUnavailableError):
        raise
    except Exception as e:
        raise SendError(str(e)) from e


async def notify(
    session: Optional[SessionManager],
    customers: Sequence[CustomerRecord],
    *,
    tag: str = "",
) -> list[NotificationResult]:
    """Send the due-date reminder to each customer in order.

    The session is checked once up front. After that a failed send is logged and
    recorded, and the batch moves on to the next customer.
    """
    s = require_session(session)
    results = []
    for c in customers:
        try:
            await send_one(s, c.contact, reminder_text(c))
        except Exception as e:
            logger.error(f"❌ {tag}Erro ao enviar para {c.name}: {e}")
            results.append(NotificationResult(c, Outcome.FAILED, reason=str(e) or type(e).__name__))
            continue
        logger.info(f"✅ {tag}Mensagem enviada para {c.name} ({c.contact})")
        results.append(NotificationResult(c, Outcome.SENT))
    return results
