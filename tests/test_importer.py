"""Catalog import/update: payload mapping, per-item failures and the HTTP surface."""

from unittest.mock import AsyncMock, patch

from movieboard.models import Episode, EpisodeServer, Genre, Movie
from movieboard.services import importer
from movieboard.services.kkphim import format_import_payload


def _kk_movie(slug="squid-game", _id="kk-1", **extra):
    movie = {
        "_id": _id,
        "name": slug.replace("-", " ").title(),
        "slug": slug,
        "origin_name": "Ojingeo Geim",
        "year": 2021,
        "type": "series",
        "view": 42,
        "actor": ["Lee Jung-jae", "Park Hae-soo"],
        "director": ["Hwang Dong-hyuk"],
        "category": [{"name": "Hành Động", "slug": "hanh-dong"}],
        "country": [{"name": "Hàn Quốc", "slug": "han-quoc"}],
        "tmdb": {"type": "tv", "id": 93405, "season": 1, "vote_average": 7.8, "vote_count": 14000},
        "imdb": {"id": "tt10919420"},
    }
    movie.update(extra)
    return movie


def _kk_detail(movie, groups):
    return {
        "movie": movie,
        "episodes": [
            {
                "server_name": name,
                "server_data": [
                    {"name": f"Tập {n}", "slug": f"tap-{n:02d}", "filename": f"E{n}",
                     "link_embed": f"https://embed/{n}", "link_m3u8": f"https://hls/{n}.m3u8"}
                    for n in range(1, episodes + 1)
                ],
            }
            for name, episodes in groups
        ],
    }


class TestFormatImportPayload:
    def test_dedupes_episodes_across_server_groups(self):
        payload = format_import_payload([
            _kk_detail(_kk_movie(), [("Vietsub #1", 2), ("Lồng Tiếng #1", 2)]),
        ])
        assert len(payload["movies"]) == 1
        assert [e["slug"] for e in payload["episodes"]] == ["tap-01", "tap-02"]
        assert len(payload["episode_servers"]) == 4
        assert {s["server_name"] for s in payload["episode_servers"]} == {"Vietsub #1", "Lồng Tiếng #1"}
        assert all(e["movie_id"] == "kk-1" for e in payload["episodes"])

    def test_skips_missing_movies(self):
        payload = format_import_payload([{"movie": None, "episodes": []}])
        assert payload == {"movies": [], "episodes": [], "episode_servers": []}


class TestImportMovies:
    def test_imports_movie_with_relations(self, db_session):
        payload = format_import_payload([_kk_detail(_kk_movie(), [("Vietsub #1", 2)])])
        report = importer.import_movies(db_session, payload)

        assert report["success"] is True
        assert report["results"]["movies"] == {"processed": 1, "succeeded": 1, "failed": 0}
        assert report["results"]["episodes"]["succeeded"] == 2
        assert report["results"]["episode_servers"]["succeeded"] == 2

        movie = db_session.query(Movie).filter_by(slug="squid-game").one()
        assert movie.is_imported is True
        assert movie.view == 42
        assert movie.type.slug == "series"
        assert [g.slug for g in movie.genres] == ["hanh-dong"]
        assert [c.slug for c in movie.countries] == ["han-quoc"]
        assert movie.tmdb_id == "93405"
        assert movie.vote_average == 7.8
        assert movie.imdb_id == "tt10919420"
        assert movie.actor == ["Lee Jung-jae", "Park Hae-soo"]

    def test_shared_genre_is_reused(self, db_session):
        payload = format_import_payload([
            _kk_detail(_kk_movie("a", "kk-a"), []),
            _kk_detail(_kk_movie("b", "kk-b"), []),
        ])
        report = importer.import_movies(db_session, payload)
        assert report["results"]["movies"]["succeeded"] == 2
        assert db_session.query(Genre).count() == 1

    def test_duplicate_slug_fails_but_rest_continue(self, db_session, make_movie):
        make_movie(slug="taken")
        payload = {
            "movies": [_kk_movie("taken", "kk-t"), _kk_movie("fresh", "kk-f")],
            "episodes": [
                {"name": "Tập 1", "slug": "tap-01", "movie_id": "kk-t"},
                {"name": "Tập 1", "slug": "tap-01", "movie_id": "kk-f"},
            ],
            "episode_servers": [],
        }
        report = importer.import_movies(db_session, payload)

        assert report["success"] is False
        assert report["results"]["movies"] == {"processed": 2, "succeeded": 1, "failed": 1}
        assert report["results"]["episodes"] == {"processed": 2, "succeeded": 1, "failed": 1}
        kinds = [e["type"] for e in report["errors"]]
        assert kinds == ["movie", "episode"]
        assert "already exists" in report["errors"][0]["message"]

    def test_missing_name_is_reported(self, db_session):
        report = importer.import_movies(db_session, {
            "movies": [{"slug": "nameless"}], "episodes": [], "episode_servers": [],
        })
        assert report["results"]["movies"]["failed"] == 1
        assert db_session.query(Movie).count() == 0

    def test_server_without_episode(self, db_session):
        report = importer.import_movies(db_session, {
            "movies": [],
            "episodes": [],
            "episode_servers": [{"server_name": "s", "movie_id": "ghost", "slug": "tap-01"}],
        })
        assert report["results"]["episode_servers"]["failed"] == 1
        assert report["errors"][0]["type"] == "episode_server"


class TestUpdateMovies:
    def test_updates_existing_and_adds_missing_children(self, db_session, make_movie, make_episode):
        movie = make_movie(slug="squid-game", name="Old name")
        make_episode(movie, "tap-01", servers=["Vietsub #1"])

        payload = format_import_payload([_kk_detail(_kk_movie(), [("Vietsub #1", 2)])])
        payload["movies"].append(_kk_movie("unknown", "kk-u"))
        report = importer.update_movies(db_session, payload)

        assert report["success"] is True
        assert report["results"]["movies"] == {"processed": 2, "succeeded": 1, "failed": 0, "skipped": 1}
        assert report["results"]["episodes"] == {"processed": 2, "succeeded": 1, "failed": 0, "skipped": 1}
        assert report["results"]["episode_servers"] == {"processed": 2, "succeeded": 1, "failed": 0, "skipped": 1}

        db_session.expire_all()
        refreshed = db_session.query(Movie).filter_by(slug="squid-game").one()
        assert refreshed.name == "Squid Game"
        assert [g.slug for g in refreshed.genres] == ["hanh-dong"]
        assert db_session.query(Episode).count() == 2
        assert db_session.query(EpisodeServer).count() == 2
        assert db_session.query(Movie).filter_by(slug="unknown").first() is None


class TestImportRoutes:
    def test_requires_arrays(self, client):
        resp = client.post("/api/v1/movies/import", json={"movies": [], "episodes": []})
        assert resp.status_code == 400
        assert resp.json()["detail"] == "episode_servers must be an array"

    def test_import_route(self, client):
        payload = format_import_payload([_kk_detail(_kk_movie(), [("Vietsub #1", 1)])])
        resp = client.post("/api/v1/movies/import", json=payload)
        assert resp.status_code == 200
        assert resp.json()["results"]["movies"]["succeeded"] == 1

    def test_update_route(self, client, make_movie):
        make_movie(slug="squid-game")
        resp = client.post("/api/v1/movies/update-movies", json={
            "movies": [_kk_movie()], "episodes": [], "episode_servers": [],
        })
        assert resp.status_code == 200
        assert resp.json()["results"]["movies"]["succeeded"] == 1

    def test_catalog_import(self, client, db_session):
        async def fake_detail(slug):
            if slug == "squid-game":
                return _kk_detail(_kk_movie(), [("Vietsub #1", 2)])
            return {"movie": None, "episodes": [], "error": "Movie not found"}

        with patch("movieboard.services.kkphim.kkphim_client.get_movie_detail",
                   new=AsyncMock(side_effect=fake_detail)):
            resp = client.post("/api/v1/catalog/import", json={"slugs": ["squid-game", "nope"]})

        assert resp.status_code == 200
        body = resp.json()
        assert body["results"]["movies"]["succeeded"] == 1
        assert body["results"]["episodes"]["succeeded"] == 2
        assert body["fetch_errors"] == [{"slug": "nope", "message": "Movie not found"}]

    def test_catalog_import_requires_slugs(self, client):
        assert client.post("/api/v1/catalog/import", json={"slugs": []}).status_code == 400

    def test_catalog_detail_not_found(self, client):
        with patch("movieboard.services.kkphim.kkphim_client.get_movie_detail",
                   new=AsyncMock(return_value={"movie": None, "episodes": [], "error": "Movie not found"})):
            resp = client.get("/api/v1/catalog/movies/nope")
        assert resp.status_code == 404
        assert resp.json()["detail"] == "Movie not found"

    def test_catalog_list_passthrough(self, client):
        listing = {"movies": [{"slug": "a"}], "pagination": {"currentPage": 2}}
        with patch("movieboard.services.kkphim.kkphim_client.get_movies_list",
                   new=AsyncMock(return_value=listing)) as mock_list:
            resp = client.get("/api/v1/catalog/movies", params={"page": 2})
        assert resp.json() == listing
        mock_list.assert_awaited_once_with(2)
