from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager, suppress
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from duebot.billing.client import BillingClient
from duebot.errors import DueBotError
from duebot.reminders.cron import schedule_daily_check
from duebot.reminders.deferred import DeferredSends
from duebot.reminders.pipeline import CustomerSource
from duebot.session.bridge import BridgeTransport
from duebot.session.state import SessionManager, SessionTransport
from duebot.utils import logger as log_setup
from duebot.utils.config import Settings, S
from duebot.web.deps import Runtime
from duebot.web.message_routes import router as message_router
from duebot.web.reminder_routes import router as reminder_router


def create_app(settings: Settings = S, *,
               transport: Optional[SessionTransport] = None,
               billing: Optional[CustomerSource] = None) -> FastAPI:
    session = SessionManager(transport or BridgeTransport(settings),
                             reconnect_delay=settings.reconnect_delay)
    billing = billing or BillingClient(settings)
    runtime = Runtime(settings, session, billing, DeferredSends(lambda: runtime.session))

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        log_setup.setup(settings)
        runner = None
        if settings.session_autostart:
            runner = asyncio.create_task(session.run(), name="whatsapp-session")
        if settings.daily_check:
            runtime.cron = schedule_daily_check(billing, session, settings)
        logger.info(f"🚀 Servidor rodando em http://localhost:{settings.port}")
        try:
            yield
        finally:
            if runtime.cron is not None:
                runtime.cron.stop()
                runtime.cron = None
            if runner is not None:
                runner.cancel()
                with suppress(asyncio.CancelledError):
                    await runner
            await runtime.deferred.shutdown()
            await session.aclose()
            if hasattr(billing, "aclose"):
                await billing.aclose()

    app = FastAPI(title="WhatsApp Due-Date Bot", lifespan=lifespan)
    app.state.runtime = runtime
    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])

    @app.exception_handler(DueBotError)
    async def duebot_error(request: Request, exc: DueBotError):
        return JSONResponse({"erro": exc.public_message}, status_code=exc.status_code)

    @app.get("/health")
    async def health():
        return {
            "ok": True,
            "session": session.snapshot().status.value,
            "pendentes": len(runtime.deferred),
        }

    app.include_router(message_router)
    app.include_router(reminder_router)
    return app


app = create_app()
