from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from fastapi import Request

from duebot.reminders.deferred import DeferredSends
from duebot.reminders.pipeline import CustomerSource
from duebot.session.state import SessionManager
from duebot.utils.config import Settings


@dataclass
class Runtime:
    settings: Settings
    session: Optional[SessionManager]
    billing: CustomerSource
    deferred: DeferredSends
    cron: Optional[Any] = None


def get_runtime(request: Request) -> Runtime:
    return request.app.state.runtime
