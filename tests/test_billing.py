import httpx
import pytest

from duebot.billing.client import BillingClient
from duebot.errors import NetworkError

URL = "http://billing.test/api/listar"


def _client(settings, handler):
    s = settings.model_copy(update={"billing_url": URL})
    return BillingClient(s, client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))


@pytest.mark.asyncio
async def test_fetch_parses_records_in_order(settings):
    def handler(request):
        assert str(request.url) == URL
        return httpx.Response(200, json=[
            {"nome": "Ana", "dataVenc": "2024-01-04", "numero": 5511900000001},
            {"nome": "Bruno", "dataVenc": "2024-01-05T12:00:00Z", "numero": "5511900000002"},
        ])

    customers = await _client(settings, handler).fetch_customers()
    assert [c.name for c in customers] == ["Ana", "Bruno"]
    assert customers[0].contact == "5511900000001"
    assert customers[1].due_date == "2024-01-05T12:00:00Z"


@pytest.mark.asyncio
@pytest.mark.parametrize("response", [
    httpx.Response(500, json={"error": "boom"}),
    httpx.Response(200, text="<html>not json</html>"),
    httpx.Response(200, json={"clientes": []}),
    httpx.Response(200, json=[{"nome": "", "dataVenc": "2024-01-04", "numero": 1}]),
    httpx.Response(200, json=[{"nome": "Ana", "numero": 1}]),
])
async def test_bad_responses_become_network_error(settings, response):
    with pytest.raises(NetworkError):
        await _client(settings, lambda request: response).fetch_customers()


@pytest.mark.asyncio
async def test_connection_error_becomes_network_error(settings):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(NetworkError):
        await _client(settings, handler).fetch_customers()
