from __future__ import annotations

from fastapi import APIRouter, Depends
from loguru import logger
from pydantic import BaseModel, Field, field_validator

from duebot.reminders.deferred import iso_utc, parse_send_at
from duebot.reminders.notifier import require_session, send_one
from duebot.session.state import Status
from duebot.web.deps import Runtime, get_runtime

router = APIRouter(tags=["whatsapp"])


class SendRequest(BaseModel):
    numero: str = Field(min_length=1)
    mensagem: str

    @field_validator("numero", mode="before")
    @classmethod
    def _numero_as_text(cls, v):
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v


class ScheduleRequest(SendRequest):
    dataHora: str


@router.get("/gerar")
async def gerar(rt: Runtime = Depends(get_runtime)):
    """Connection status, plus the pending QR code while waiting for a scan."""
    st = rt.session.snapshot() if rt.session else None
    if st is None:
        return {"status": "Aguardando geração do QR Code"}
    if st.status in (Status.CONNECTED, Status.LOGGED_OUT):
        return {"status": st.text}
    if st.qr:
        return {"status": st.text, "qrCode": st.qr}
    return {"status": "Aguardando geração do QR Code"}


@router.post("/enviar")
async def enviar(req: SendRequest, rt: Runtime = Depends(get_runtime)):
    require_session(rt.session)
    try:
        await send_one(rt.session, req.numero, req.mensagem)
    except Exception:
        logger.exception("❌ Erro ao enviar mensagem")
        raise
    return {"status": "✅ Mensagem enviada com sucesso!"}


@router.post("/agendar")
async def agendar(req: ScheduleRequest, rt: Runtime = Depends(get_runtime)):
    """Arm a one-shot send; 400 when ``dataHora`` is not in the future."""
    require_session(rt.session)
    send_at = parse_send_at(req.dataHora, rt.settings.tz)
    job = rt.deferred.schedule(req.numero, req.mensagem, send_at)
    return {"status": f"Mensagem agendada para {iso_utc(job.send_at)}"}
