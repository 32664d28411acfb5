from __future__ import annotations

from typing import Optional

from aiocron import Cron, crontab
from loguru import logger

from duebot.errors import DueBotError
from duebot.reminders.pipeline import CustomerSource, PassSummary, run_due_pass
from duebot.session.state import SessionManager
from duebot.utils.config import Settings, S


async def daily_check(billing: CustomerSource, session: Optional[SessionManager],
                      settings: Settings = S) -> Optional[PassSummary]:
    logger.info("⏰ Executando verificação automática de vencimentos...")
    try:
        summary = await run_due_pass(billing, session, settings.daily_threshold_days,
                                     trigger="cron", tz=settings.tz)
    except DueBotError as e:
        logger.error(f"❌ [CRON] Erro ao consultar /listar ou enviar mensagens: {e}")
        return None
    except Exception:
        # nobody awaits the cron future, so nothing may escape it
        logger.exception("❌ [CRON] Erro inesperado na verificação de vencimentos")
        return None
    logger.info(f"[CRON] {summary.sent} enviada(s), {summary.failed} falha(s)")
    return summary


def schedule_daily_check(billing: CustomerSource, session: Optional[SessionManager],
                         settings: Settings = S) -> Cron:
    """Arm the daily reminder job on the running loop."""
    job = crontab(settings.daily_cron, func=daily_check, args=(billing, session, settings),
                  start=True, tz=settings.tz)
    logger.info(f"⏰ Verificação diária agendada: '{settings.daily_cron}' ({settings.timezone})")
    return job
