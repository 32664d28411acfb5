from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from conftest import FakeBilling, FakeTransport, customer
from duebot.errors import NetworkError
from duebot.session.state import ConnectionEvent
from duebot.web.server import create_app


def _due_in(days):
    return (datetime.now(timezone.utc).date() + timedelta(days=days)).isoformat()


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def billing():
    return FakeBilling([
        customer("Ana", _due_in(3), 1),
        customer("Bruno", _due_in(4), 2),
        customer("Caio", _due_in(3), 3),
    ])


@pytest.fixture
def app(settings, transport, billing):
    return create_app(settings, transport=transport, billing=billing)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


def _session(app):
    return app.state.runtime.session


def test_gerar_shows_qr_until_connected(app, client):
    assert client.get("/gerar").json() == {"status": "Aguardando geração do QR Code"}

    _session(app).handle_event(ConnectionEvent(qr="2@QRPAYLOAD"))
    assert client.get("/gerar").json() == {"status": "QR Code gerado", "qrCode": "2@QRPAYLOAD"}

    _session(app).handle_event(ConnectionEvent(connection="open"))
    assert client.get("/gerar").json() == {"status": "Conectado ao WhatsApp!"}


def test_gerar_after_logout(app, client):
    _session(app).handle_event(ConnectionEvent(qr="2@QR"))
    _session(app).handle_event(ConnectionEvent(connection="close", status_code=401))
    assert client.get("/gerar").json() == {"status": "Deslogado. Reautentique."}


def test_enviar_without_session_is_500_and_sends_nothing(client, transport):
    r = client.post("/enviar", json={"numero": "5511999990000", "mensagem": "oi"})
    assert r.status_code == 500
    assert r.json() == {"erro": "WhatsApp não conectado."}
    assert transport.sent == []


def test_enviar_sends(app, client, transport):
    _session(app).handle_event(ConnectionEvent(connection="open"))
    r = client.post("/enviar", json={"numero": 5511999990000, "mensagem": "oi"})
    assert r.status_code == 200
    assert r.json() == {"status": "✅ Mensagem enviada com sucesso!"}
    assert transport.sent == [("5511999990000@s.whatsapp.net", "oi")]


def test_enviar_send_failure_is_500(app, client, transport):
    transport.fail_for = {"13"}
    _session(app).handle_event(ConnectionEvent(connection="open"))
    r = client.post("/enviar", json={"numero": "13", "mensagem": "oi"})
    assert r.status_code == 500
    assert r.json() == {"erro": "Erro ao enviar mensagem."}


def test_agendar_in_the_past_is_400_and_not_armed(app, client):
    _session(app).handle_event(ConnectionEvent(connection="open"))
    past = (datetime.now(timezone.utc) - timedelta(hours=1)).isoformat()
    r = client.post("/agendar", json={"numero": "1", "mensagem": "oi", "dataHora": past})
    assert r.status_code == 400
    assert r.json() == {"erro": "Data/hora de envio já passou."}
    assert len(app.state.runtime.deferred) == 0


def test_agendar_invalid_date_is_400(app, client):
    _session(app).handle_event(ConnectionEvent(connection="open"))
    r = client.post("/agendar", json={"numero": "1", "mensagem": "oi", "dataHora": "ontem"})
    assert r.status_code == 400
    assert r.json() == {"erro": "Data/hora inválida."}


def test_agendar_without_session_is_500(client):
    future = (datetime.now(timezone.utc) + timedelta(hours=1)).isoformat()
    r = client.post("/agendar", json={"numero": "1", "mensagem": "oi", "dataHora": future})
    assert r.status_code == 500


def test_agendar_arms_one_send(app, client):
    _session(app).handle_event(ConnectionEvent(connection="open"))
    at = datetime(2099, 1, 1, 9, 0, tzinfo=timezone.utc)
    r = client.post("/agendar", json={"numero": "1", "mensagem": "oi", "dataHora": at.isoformat()})
    assert r.status_code == 200
    assert r.json() == {"status": "Mensagem agendada para 2099-01-01T09:00:00.000Z"}
    assert client.get("/health").json()["pendentes"] == 1


def test_vencimento_runs_pass(app, client, transport):
    _session(app).handle_event(ConnectionEvent(connection="open"))
    r = client.get("/vencimento")
    assert r.status_code == 200
    assert r.json() == {
        "status": "Mensagens processadas para vencimentos em 3 dias.",
        "enviados": 2,
        "falhas": 0,
    }
    assert [jid for jid, _ in transport.sent] == ["1@s.whatsapp.net", "3@s.whatsapp.net"]


def test_vencimento_custom_days(app, client, transport):
    _session(app).handle_event(ConnectionEvent(connection="open"))
    r = client.get("/vencimento", params={"dias": "4"})
    assert r.json()["status"] == "Mensagens processadas para vencimentos em 4 dias."
    assert [jid for jid, _ in transport.sent] == ["2@s.whatsapp.net"]


def test_vencimento_billing_down_is_500(settings, transport):
    app = create_app(settings, transport=transport, billing=FakeBilling(error=NetworkError("down")))
    app.state.runtime.session.handle_event(ConnectionEvent(connection="open"))
    with TestClient(app) as c:
        r = c.get("/vencimento")
    assert r.status_code == 500
    assert r.json() == {"erro": "Erro ao consultar /listar ou enviar mensagens."}


def test_daily_check_armed_by_lifespan_when_enabled(settings, transport, billing):
    s = settings.model_copy(update={"daily_check": True})
    app = create_app(s, transport=transport, billing=billing)
    with TestClient(app):
        assert app.state.runtime.cron is not None
    assert app.state.runtime.cron is None


def test_daily_check_left_alone_when_disabled(app, client):
    assert app.state.runtime.cron is None
