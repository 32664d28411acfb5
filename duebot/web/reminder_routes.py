from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from loguru import logger

from duebot.errors import DueBotError
from duebot.reminders.pipeline import parse_threshold, run_due_pass
from duebot.web.deps import Runtime, get_runtime

router = APIRouter(tags=["reminders"])


@router.get("/vencimento")
async def vencimento(dias: Optional[str] = Query(None), rt: Runtime = Depends(get_runtime)):
    """Run the due-date pass now for customers due in ``dias`` days (default 3)."""
    threshold = parse_threshold(dias)
    try:
        summary = await run_due_pass(rt.billing, rt.session, threshold,
                                     trigger="manual", tz=rt.settings.tz)
    except DueBotError as e:
        logger.error(f"❌ Erro ao consultar /listar ou enviar mensagens: {e}")
        raise
    return {
        "status": f"Mensagens processadas para vencimentos em {threshold} dias.",
        "enviados": summary.sent,
        "falhas": summary.failed,
    }
