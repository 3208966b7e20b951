"""Integration tests for the HTTP API.

Tests the full path through each route: query parsing → handler → core →
JSON serialisation. Upstream recipe sites are mocked with respx.
"""

from __future__ import annotations

from typing import TYPE_CHECKING
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
import respx
from starlette.testclient import TestClient

from recipescout.config import Settings
from recipescout.server import create_app
from tests.pages import DOUGUO_HTML, XIACHUFANG_HTML

if TYPE_CHECKING:
    from recipescout.state import AppState


def _mock_sites(*, meishij: httpx.Response | Exception) -> dict[str, respx.Route]:
    """Mock the three stub search URLs for the query 'tomato'."""
    routes = {
        "xiachufang": respx.get(host="www.xiachufang.com", path="/search/").mock(
            return_value=httpx.Response(200, text=XIACHUFANG_HTML)
        ),
        "douguo": respx.get(host="www.douguo.com", path="/search/tomato").mock(
            return_value=httpx.Response(200, text=DOUGUO_HTML)
        ),
    }
    meishij_route = respx.get(host="www.meishij.net", path="/search.php")
    if isinstance(meishij, Exception):
        meishij_route.mock(side_effect=meishij)
    else:
        meishij_route.mock(return_value=meishij)
    routes["meishij"] = meishij_route
    return routes


# ---------------------------------------------------------------------------
# /api/health
# ---------------------------------------------------------------------------


class TestHealth:
    async def test_ok(self, api_client: httpx.AsyncClient) -> None:
        response = await api_client.get("/api/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


# ---------------------------------------------------------------------------
# /api/search
# ---------------------------------------------------------------------------


class TestSearchRoute:
    async def test_missing_query_returns_400(self, api_client: httpx.AsyncClient) -> None:
        response = await api_client.get("/api/search")
        assert response.status_code == 400
        assert response.json()["error"] == "Please provide a search keyword"

    async def test_empty_query_returns_400(self, api_client: httpx.AsyncClient) -> None:
        response = await api_client.get("/api/search", params={"query": ""})
        assert response.status_code == 400
        assert "error" in response.json()

    @respx.mock
    async def test_stubs_returned_then_backfilled(
        self, api_client: httpx.AsyncClient, app_state: AppState
    ) -> None:
        routes = _mock_sites(meishij=httpx.Response(500))

        first = await api_client.get("/api/search", params={"query": "tomato"})

        assert first.status_code == 200
        recipes = first.json()["recipes"]
        assert [r["source"] for r in recipes] == ["Xiachufang", "Meishij", "Douguo"]
        assert recipes[0] == {
            "title": "How to Make tomato",
            "source": "Xiachufang",
            "url": "https://www.xiachufang.com/search/?keyword=tomato",
            "content": None,
        }
        assert all(r["content"] is None for r in recipes)

        await app_state.orchestrator.drain()
        second = await api_client.get("/api/search", params={"query": "tomato"})

        assert second.status_code == 200
        backfilled = second.json()["recipes"]
        assert [r["url"] for r in backfilled] == [r["url"] for r in recipes]
        assert backfilled[0]["content"] == {
            "title": "Tomato Scrambled Eggs",
            "ingredients": ["Tomato 2", "Egg 3", "Salt"],
            "steps": ["Beat the eggs.", "Fry the tomatoes."],
            "image": "https://i2.chuimg.com/tomato-egg.jpg",
        }
        assert backfilled[1]["content"] is None
        assert backfilled[2]["content"]["title"] == "Mapo Tofu"
        # Second search was a cache hit: each site was contacted exactly once.
        assert all(route.call_count == 1 for route in routes.values())

    @respx.mock
    async def test_every_site_failing_still_returns_stubs(
        self, api_client: httpx.AsyncClient, app_state: AppState
    ) -> None:
        respx.route(host__regex=r".*").mock(side_effect=httpx.ConnectError("unreachable"))

        first = await api_client.get("/api/search", params={"query": "tomato"})
        await app_state.orchestrator.drain()
        second = await api_client.get("/api/search", params={"query": "tomato"})

        assert first.status_code == 200
        assert second.status_code == 200
        assert all(r["content"] is None for r in second.json()["recipes"])

    async def test_unexpected_error_returns_500(
        self,
        api_client: httpx.AsyncClient,
        app_state: AppState,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setattr(
            app_state.orchestrator, "search", MagicMock(side_effect=RuntimeError("boom"))
        )
        response = await api_client.get("/api/search", params={"query": "tomato"})
        assert response.status_code == 500
        assert response.json()["error"] == "Search service error"


# ---------------------------------------------------------------------------
# /api/recipe
# ---------------------------------------------------------------------------


class TestRecipeRoute:
    async def test_missing_url_returns_400(self, api_client: httpx.AsyncClient) -> None:
        response = await api_client.get("/api/recipe")
        assert response.status_code == 400
        assert response.json()["error"] == "Please provide a recipe URL"

    @respx.mock
    async def test_known_site_returns_recipe(self, api_client: httpx.AsyncClient) -> None:
        respx.get("https://www.douguo.com/cookbook/42.html").mock(
            return_value=httpx.Response(200, text=DOUGUO_HTML)
        )

        response = await api_client.get(
            "/api/recipe", params={"url": "https://www.douguo.com/cookbook/42.html"}
        )

        assert response.status_code == 200
        assert response.json() == {
            "title": "Mapo Tofu",
            "ingredients": ["Tofu", "Doubanjiang"],
            "steps": ["Cube the tofu."],
            "image": "https://cp1.douguo.com/mapo.jpg",
        }

    @respx.mock
    async def test_repeat_request_served_from_cache(self, api_client: httpx.AsyncClient) -> None:
        route = respx.get("https://www.douguo.com/cookbook/42.html").mock(
            return_value=httpx.Response(200, text=DOUGUO_HTML)
        )
        params = {"url": "https://www.douguo.com/cookbook/42.html"}

        first = await api_client.get("/api/recipe", params=params)
        second = await api_client.get("/api/recipe", params=params)

        assert first.json() == second.json()
        assert route.call_count == 1

    @respx.mock
    async def test_unreachable_host_returns_404(self, api_client: httpx.AsyncClient) -> None:
        respx.get("https://www.xiachufang.com/r/123").mock(
            side_effect=httpx.ConnectError("Connection refused")
        )

        response = await api_client.get(
            "/api/recipe", params={"url": "https://www.xiachufang.com/r/123"}
        )

        assert response.status_code == 404
        assert response.json()["error"] == "Unable to fetch recipe content"

    @respx.mock
    async def test_timeout_returns_404(self, api_client: httpx.AsyncClient) -> None:
        respx.get("https://www.meishij.net/zuofa/1.html").mock(
            side_effect=httpx.ReadTimeout("timed out")
        )

        response = await api_client.get(
            "/api/recipe", params={"url": "https://www.meishij.net/zuofa/1.html"}
        )

        assert response.status_code == 404

    @respx.mock(assert_all_called=False)
    async def test_unknown_site_returns_404_without_fetch(
        self, api_client: httpx.AsyncClient
    ) -> None:
        route = respx.get("https://example.com/recipe").mock(
            return_value=httpx.Response(200, text=XIACHUFANG_HTML)
        )

        response = await api_client.get(
            "/api/recipe", params={"url": "https://example.com/recipe"}
        )

        assert response.status_code == 404
        assert not route.called

    @pytest.mark.parametrize(
        "url",
        [
            "http://[xiachufang.com/r/1",
            "https://www.douguo.com]/cookbook/1.html",
            "https:///recipe/1",
            "https://www.xiachufang.com/r/\x01/1",
        ],
    )
    @respx.mock
    async def test_malformed_url_returns_404(self, api_client: httpx.AsyncClient, url: str) -> None:
        response = await api_client.get("/api/recipe", params={"url": url})

        assert response.status_code == 404
        assert response.json() == {
            "error": "Unable to fetch recipe content",
            "code": "RECIPE_NOT_FOUND",
        }

    async def test_unexpected_error_returns_500(
        self,
        api_client: httpx.AsyncClient,
        app_state: AppState,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setattr(
            app_state.pipeline, "fetch_recipe", AsyncMock(side_effect=RuntimeError("boom"))
        )
        response = await api_client.get(
            "/api/recipe", params={"url": "https://www.douguo.com/cookbook/42.html"}
        )
        assert response.status_code == 500
        assert response.json()["error"] == "Failed to fetch recipe details"


# ---------------------------------------------------------------------------
# Middleware and lifespan
# ---------------------------------------------------------------------------


class TestAppWiring:
    async def test_cors_allows_any_origin(self, api_client: httpx.AsyncClient) -> None:
        response = await api_client.get(
            "/api/health", headers={"Origin": "http://frontend.example"}
        )
        assert response.headers["access-control-allow-origin"] == "*"

    async def test_static_files_served(self, app_state: AppState, tmp_path) -> None:
        (tmp_path / "index.html").write_text("<h1>RecipeScout</h1>")
        settings = Settings(server={"static_dir": str(tmp_path)})
        app = create_app(settings=settings, state=app_state)
        async with httpx.AsyncClient(
            transport=httpx.ASGITransport(app=app), base_url="http://localhost"
        ) as client:
            index = await client.get("/")
            health = await client.get("/api/health")
        assert index.status_code == 200
        assert "RecipeScout" in index.text
        assert health.json() == {"status": "ok"}

    def test_lifespan_builds_and_tears_down_state(self) -> None:
        app = create_app(Settings())
        with TestClient(app) as client:
            response = client.get("/api/health")
            state = app.state.app_state
            assert state.cache._sweep_task is not None
        assert response.status_code == 200
        assert state.cache._sweep_task is None
        assert state.http_client.is_closed
