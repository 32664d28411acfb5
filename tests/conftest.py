import asyncio

import pytest

from duebot.billing.models import CustomerRecord
from duebot.errors import NetworkError
from duebot.session.state import ConnectionEvent, SessionManager
from duebot.utils.config import Settings


class FakeTransport:
    """Records sends; contacts listed in ``fail_for`` raise like a dead gateway."""

    def __init__(self, fail_for=(), streams=()):
        self.sent = []
        self.fail_for = set(fail_for)
        self.streams = list(streams)
        self.opened = 0

    async def events(self):
        self.opened += 1
        if not self.streams:
            await asyncio.Event().wait()
        batch = self.streams.pop(0)
        if isinstance(batch, Exception):
            raise batch
        for ev in batch:
            yield ev

    async def send_text(self, jid, text):
        self.sent.append((jid, text))
        if jid.split("@")[0] in self.fail_for:
            raise RuntimeError("gateway timeout")

    async def aclose(self):
        pass


class FakeBilling:
    def __init__(self, customers=None, error=None):
        self.customers = customers or []
        self.error = error
        self.calls = 0

    async def fetch_customers(self):
        self.calls += 1
        if self.error:
            raise self.error
        return list(self.customers)


def customer(name, due, contact):
    return CustomerRecord(nome=name, dataVenc=due, numero=contact)


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def connected(transport):
    s = SessionManager(transport, reconnect_delay=0)
    s.handle_event(ConnectionEvent(connection="open"))
    return s


@pytest.fixture
def settings(tmp_path):
    return Settings(
        log_dir=str(tmp_path / "logs"),
        session_autostart=False,
        daily_check=False,
        reconnect_delay=0,
        timezone="UTC",
    )


@pytest.fixture
def billing_down():
    return FakeBilling(error=NetworkError("connection refused"))
