"""Tests for the FastAPI endpoints."""

from decimal import Decimal

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from nearswap.api.app import create_app
from nearswap.routing.base import SwapRequest
from nearswap.routing.dry_run import DryRunRouteResolver
from nearswap.routing.intear import IntearRouteResolver
from nearswap.routing.tokens import TokenListService
from nearswap.web.contracts.routes import RouteRequest
from nearswap.web.services.route_service import RouteService, get_route_service
from nearswap.web.services.token_service import TokenService, get_token_service

ROUTE_BODY = {
    "tokenIn": "near",
    "tokenOut": "usdc.near",
    "amountIn": "1",
    "decimalsOut": 6,
}


@pytest.fixture
def test_app():
    """Application with a deterministic dry-run resolver."""
    app = create_app()
    service = RouteService(DryRunRouteResolver(add_random_variance=False))
    app.dependency_overrides[get_route_service] = lambda: service
    yield app
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(test_app):
    """Create async test client."""
    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def use_router(test_app, settings):
    """Point the route endpoint at a mocked router; returns a setter for the handler."""
    upstream = []

    def install(handler):
        upstream_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        upstream.append(upstream_client)
        service = RouteService(IntearRouteResolver(settings=settings, client=upstream_client))
        test_app.dependency_overrides[get_route_service] = lambda: service

    yield install

    for upstream_client in upstream:
        await upstream_client.aclose()


class TestHealthEndpoints:
    """Tests for health check endpoints."""

    @pytest.mark.asyncio
    async def test_health_check(self, client):
        """Test basic health check."""
        response = await client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["service"] == "nearswap"

    @pytest.mark.asyncio
    async def test_detailed_health(self, client):
        """Test detailed health check."""
        response = await client.get("/health/detailed")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["resolver"] == "dry_run"
        assert data["mode"] == "live"
        assert data["config"]["environment"] == "test"
        assert "urls" in data["config"]["router"]


class TestAppFactory:
    """Tests for create_app()."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("environment,docs_status", [("test", 200), ("production", 404), ("PRODUCTION", 404)])
    async def test_docs_hidden_in_production(self, settings, environment, docs_status):
        app = create_app(settings.model_copy(update={"environment": environment}))

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            docs = await ac.get("/openapi.json")
            health = await ac.get("/health")

        assert docs.status_code == docs_status
        assert health.status_code == 200


class TestSwapRouteEndpoint:
    """Tests for POST /api/swap-route."""

    @pytest.mark.asyncio
    async def test_route(self, client):
        response = await client.post("/api/swap-route", json=ROUTE_BODY)

        assert response.status_code == 200
        data = response.json()
        assert data["amountOut"] == "0.980000"
        assert data["minimumReceived"] == "0.950000"
        assert data["route"] == ["Rhea"]
        assert data["useIntents"] is False
        assert data["transactions"][0]["NearTransaction"]["receiver_id"] == "wrap.near"

    @pytest.mark.asyncio
    async def test_numeric_amount(self, client):
        response = await client.post("/api/swap-route", json={**ROUTE_BODY, "amountIn": 2.5})

        assert response.status_code == 200
        assert response.json()["amountOut"] == "2.450000"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", ["0", "-1", "abc"])
    async def test_invalid_amount(self, client, amount):
        response = await client.post("/api/swap-route", json={**ROUTE_BODY, "amountIn": amount})

        assert response.status_code == 400
        data = response.json()
        assert data["kind"] == "InvalidInput"
        assert data["action"] == "fix_input"

    @pytest.mark.asyncio
    async def test_missing_field(self, client):
        """Schema violations answer 400 {error}, not FastAPI's 422."""
        response = await client.post("/api/swap-route", json={"tokenIn": "near", "amountIn": "1"})

        assert response.status_code == 400
        assert "tokenOut" in response.json()["error"]

    @pytest.mark.asyncio
    async def test_unknown_slippage_type(self, client):
        response = await client.post("/api/swap-route", json={**ROUTE_BODY, "slippageType": "Whatever"})

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_negative_decimals(self, client):
        response = await client.post("/api/swap-route", json={**ROUTE_BODY, "decimalsIn": -1})

        assert response.status_code == 400

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "upstream_status,expected_status,kind",
        [
            (429, 429, "RateLimited"),
            (404, 404, "NoRouteAvailable"),
            (400, 400, "InvalidInput"),
            (500, 500, "UpstreamError"),
        ],
    )
    async def test_router_status_mapping(self, client, use_router, upstream_status, expected_status, kind):
        use_router(lambda request: httpx.Response(upstream_status, text="router error"))

        response = await client.post("/api/swap-route", json=ROUTE_BODY)

        assert response.status_code == expected_status
        assert response.json()["kind"] == kind

    @pytest.mark.asyncio
    async def test_slippage_defaults_from_settings(self, test_app, client, settings):
        """Omitted slippage bounds come from DEFAULT_MAX_SLIPPAGE / DEFAULT_MIN_SLIPPAGE."""
        custom = settings.model_copy(
            update={"default_max_slippage": Decimal("0.02"), "default_min_slippage": Decimal("0.005")}
        )
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json=[])

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as upstream:
            service = RouteService(IntearRouteResolver(settings=custom, client=upstream), settings=custom)
            test_app.dependency_overrides[get_route_service] = lambda: service

            await client.post("/api/swap-route", json=ROUTE_BODY)
            await client.post("/api/swap-route", json={**ROUTE_BODY, "maxSlippage": 0.1})

        assert seen[0].url.params["max_slippage"] == "0.02"
        assert seen[0].url.params["min_slippage"] == "0.005"
        assert seen[1].url.params["max_slippage"] == "0.1"
        assert seen[1].url.params["min_slippage"] == "0.005"

    def test_fixed_slippage_falls_back_to_configured_ceiling(self, settings):
        request = RouteRequest(tokenIn="near", tokenOut="usdc.near", amountIn="1", slippageType="Fixed")

        policy = request.to_slippage_policy(settings.model_copy(update={"default_max_slippage": Decimal("0.03")}))

        assert policy.to_params() == {"slippage_type": "Fixed", "slippage": "0.03"}

    @pytest.mark.asyncio
    async def test_router_timeout(self, client, use_router):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        use_router(handler)

        response = await client.post("/api/swap-route", json=ROUTE_BODY)

        assert response.status_code == 408
        assert response.json()["action"] == "retry_later"

    @pytest.mark.asyncio
    async def test_router_unreachable(self, client, use_router):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        use_router(handler)

        response = await client.post("/api/swap-route", json=ROUTE_BODY)

        assert response.status_code == 503
        assert response.json()["kind"] == "UpstreamUnavailable"

    @pytest.mark.asyncio
    async def test_empty_route_list(self, client, use_router):
        use_router(lambda request: httpx.Response(200, json=[]))

        response = await client.post("/api/swap-route", json=ROUTE_BODY)

        assert response.status_code == 404
        assert response.json()["error"] == "No routes available"


class TestTokensEndpoint:
    """Tests for GET /api/tokens."""

    @pytest.mark.asyncio
    async def test_tokens(self, test_app, client, settings):
        payload = [{
            "account_id": "wrap.near",
            "price_usd": "3.1",
            "change_24h": 1.5,
            "metadata": {"symbol": "wNEAR", "name": "Wrapped NEAR", "decimals": 24},
        }]
        async with httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200, json=payload))) as upstream:
            service = TokenService(TokenListService(settings, client=upstream))
            test_app.dependency_overrides[get_token_service] = lambda: service

            response = await client.get("/api/tokens")

        assert response.status_code == 200
        tokens = response.json()
        assert tokens[0]["id"] == "wrap.near"
        assert tokens[0]["decimals"] == 24
        assert tokens[0]["change24h"] == 1.5
        assert tokens[0]["price"] == pytest.approx(3.1)

    @pytest.mark.asyncio
    async def test_tokens_upstream_failure(self, test_app, client, settings):
        async with httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(502))) as upstream:
            service = TokenService(TokenListService(settings, client=upstream))
            test_app.dependency_overrides[get_token_service] = lambda: service

            response = await client.get("/api/tokens")

        assert response.status_code == 500
        data = response.json()
        assert data["error"] == "Failed to fetch tokens"
        assert "502" in data["details"]


class TestDryRunResolver:
    """Tests for the simulated resolver."""

    @pytest.mark.asyncio
    async def test_native_input_goes_through_wrap(self):
        route = await DryRunRouteResolver(add_random_variance=False).fetch_route(
            SwapRequest(token_in="near", token_out="usdc.near", amount_in="10", decimals_out=6)
        )

        assert route.amount_out == "9.800000"
        assert route.fee == "0.030000"
        assert route.steps[0].receiver_id == "wrap.near"
        assert route.steps[0].actions[0].deposit_amount == 1

    @pytest.mark.asyncio
    async def test_token_input_targets_token_contract(self):
        route = await DryRunRouteResolver().fetch_route(
            SwapRequest(token_in="usdc.near", token_out="near", amount_in="5", decimals_in=6)
        )

        assert route.steps[0].receiver_id == "usdc.near"
        assert route.raw_response == {"simulated": True}
