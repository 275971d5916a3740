"""KKPhim client against a mocked transport."""

import httpx
import pytest

from movieboard.services.kkphim import KKPhimClient


def _client(handler):
    return KKPhimClient(base_url="https://phimapi.test", timeout=5, transport=httpx.MockTransport(handler))


class TestMoviesList:
    @pytest.mark.asyncio
    async def test_returns_items_and_pagination(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["page"] = request.url.params.get("page")
            return httpx.Response(200, json={
                "status": True,
                "items": [{"slug": "a"}, {"slug": "b"}],
                "pagination": {"totalItems": 2, "totalItemsPerPage": 24, "currentPage": 3, "totalPages": 1},
            })

        result = await _client(handler).get_movies_list(3)
        assert seen == {"path": "/danh-sach/phim-moi-cap-nhat-v3", "page": "3"}
        assert [m["slug"] for m in result["movies"]] == ["a", "b"]
        assert result["pagination"]["currentPage"] == 3
        assert "error" not in result

    @pytest.mark.asyncio
    async def test_bad_page_falls_back_to_one(self):
        pages = []

        def handler(request):
            pages.append(request.url.params.get("page"))
            return httpx.Response(200, json={"items": []})

        result = await _client(handler).get_movies_list("abc")
        assert pages == ["1"]
        assert result["pagination"]["currentPage"] == 1
        assert result["pagination"]["totalItemsPerPage"] == 24

    @pytest.mark.asyncio
    async def test_upstream_error_never_raises(self):
        result = await _client(lambda request: httpx.Response(502)).get_movies_list(2)
        assert result["movies"] == []
        assert result["pagination"] == {
            "totalItems": 0, "totalItemsPerPage": 24, "currentPage": 2, "totalPages": 0,
        }
        assert "502" in result["error"]

    @pytest.mark.asyncio
    async def test_network_error_never_raises(self):
        def handler(request):
            raise httpx.ConnectError("boom", request=request)

        result = await _client(handler).get_movies_list(1)
        assert result["movies"] == []
        assert result["error"]


class TestMovieDetail:
    @pytest.mark.asyncio
    async def test_found(self):
        def handler(request):
            assert request.url.path == "/phim/squid-game"
            return httpx.Response(200, json={
                "status": True,
                "movie": {"_id": "kk-1", "slug": "squid-game"},
                "episodes": [{"server_name": "Vietsub #1", "server_data": []}],
            })

        result = await _client(handler).get_movie_detail("squid-game")
        assert result["movie"]["slug"] == "squid-game"
        assert result["episodes"][0]["server_name"] == "Vietsub #1"

    @pytest.mark.asyncio
    async def test_invalid_slug(self):
        def handler(request):
            raise AssertionError("no request expected")

        result = await _client(handler).get_movie_detail("   ")
        assert result == {"movie": None, "episodes": [], "error": "Invalid movie slug"}

    @pytest.mark.asyncio
    async def test_status_false_is_not_found(self):
        result = await _client(lambda request: httpx.Response(200, json={"status": False, "msg": "x"})) \
            .get_movie_detail("nope")
        assert result["movie"] is None
        assert result["error"] == "Movie not found"

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        result = await _client(lambda request: httpx.Response(200, content=b"<html>")).get_movie_detail("x")
        assert result["movie"] is None
        assert result["error"] == "Catalog returned invalid JSON"
