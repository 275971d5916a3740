"""Dashboard movie management: CRUD, filter, bulk delete, import check."""

from movieboard.models import Episode, EpisodeServer, Movie, User, UserRole

from tests.conftest import utc


def _movie_payload(**overrides):
    payload = {
        "name": "Squid Game",
        "slug": "squid-game",
        "origin_name": "Ojingeo Geim",
        "year": 2021,
        "quality": "FHD",
        "lang": "Vietsub",
        "actor": ["Lee Jung-jae"],
        "director": ["Hwang Dong-hyuk"],
    }
    payload.update(overrides)
    return payload


class TestMovieCrud:
    def test_create_with_relations(self, client, make_genre, make_country, make_type):
        genre = make_genre("hanh-dong")
        country = make_country("han-quoc")
        movie_type = make_type("series")

        resp = client.post("/api/v1/movies", json=_movie_payload(
            type_id=movie_type.id, genre_ids=[genre.id], country_ids=[country.id],
        ))
        assert resp.status_code == 201
        body = resp.json()
        assert body["slug"] == "squid-game"
        assert body["is_imported"] is False
        assert body["type"]["slug"] == "series"
        assert [g["slug"] for g in body["genres"]] == ["hanh-dong"]
        assert [c["slug"] for c in body["countries"]] == ["han-quoc"]
        assert body["actor"] == ["Lee Jung-jae"]

    def test_create_duplicate_slug(self, client, make_movie):
        make_movie(slug="squid-game")
        resp = client.post("/api/v1/movies", json=_movie_payload())
        assert resp.status_code == 400

    def test_create_unknown_genre(self, client):
        resp = client.post("/api/v1/movies", json=_movie_payload(genre_ids=["missing"]))
        assert resp.status_code == 400

    def test_create_missing_required(self, client):
        resp = client.post("/api/v1/movies", json={"name": "No slug"})
        assert resp.status_code == 400

    def test_list_paginates_by_updated_at(self, client, make_movie):
        make_movie(slug="old", updated_at=utc(3))
        make_movie(slug="mid", updated_at=utc(2))
        make_movie(slug="new", updated_at=utc(1))

        resp = client.get("/api/v1/movies", params={"page": 1, "limit": 2})
        assert resp.status_code == 200
        body = resp.json()
        assert [m["slug"] for m in body["movies"]] == ["new", "mid"]
        assert body["pagination"] == {"total": 3, "page": 1, "limit": 2, "pages": 2}

        page2 = client.get("/api/v1/movies", params={"page": 2, "limit": 2}).json()
        assert [m["slug"] for m in page2["movies"]] == ["old"]

    def test_get_detail_with_episodes(self, client, make_movie, make_episode):
        movie = make_movie()
        make_episode(movie, "tap-01", created_at=utc(2), servers=["Vietsub #1"])
        make_episode(movie, "tap-02", created_at=utc(1))

        body = client.get(f"/api/v1/movies/{movie.id}").json()
        assert [e["slug"] for e in body["episodes"]] == ["tap-01", "tap-02"]
        assert body["episodes"][0]["servers"][0]["server_name"] == "Vietsub #1"

    def test_get_missing(self, client):
        assert client.get("/api/v1/movies/missing").status_code == 404

    def test_update(self, client, make_movie, make_genre):
        movie = make_movie()
        genre = make_genre("tinh-cam")
        resp = client.patch(f"/api/v1/movies/{movie.id}", json={"name": "Renamed", "genre_ids": [genre.id]})
        assert resp.status_code == 200
        assert resp.json()["name"] == "Renamed"
        assert [g["slug"] for g in resp.json()["genres"]] == ["tinh-cam"]

    def test_update_missing(self, client):
        assert client.patch("/api/v1/movies/missing", json={"name": "x"}).status_code == 404

    def test_delete_cascades(self, client, db_session, make_movie, make_episode):
        movie = make_movie()
        make_episode(movie, servers=["s1", "s2"])

        resp = client.delete(f"/api/v1/movies/{movie.id}")
        assert resp.status_code == 200
        db_session.expire_all()
        assert db_session.query(Movie).count() == 0
        assert db_session.query(Episode).count() == 0
        assert db_session.query(EpisodeServer).count() == 0

    def test_delete_missing(self, client):
        assert client.delete("/api/v1/movies/missing").status_code == 404


class TestMovieFilter:
    def test_filters_and_sort(self, client, make_movie, make_genre, make_country, make_type):
        action = make_genre("hanh-dong")
        drama = make_genre("chinh-kich")
        korea = make_country("han-quoc")
        series = make_type("series")
        make_movie(slug="a", name="Alpha", year=2020, genres=[action], countries=[korea], movie_type=series, view=5)
        make_movie(slug="b", name="Beta", year=2022, genres=[drama], countries=[korea], movie_type=series, view=50)
        make_movie(slug="c", name="Gamma", year=2015, genres=[drama], view=500)

        resp = client.post("/api/v1/movies/filter", json={
            "genre_ids": [action.id, drama.id],
            "country_id": korea.id,
            "sort_by": "view",
            "sort_direction": "desc",
            "include_statistics": True,
        })
        assert resp.status_code == 200
        body = resp.json()
        assert [m["slug"] for m in body["data"]] == ["b", "a"]
        assert body["pagination"]["total_count"] == 2
        assert body["pagination"]["limit"] == 24
        assert body["sort"] == {"sort_by": "view", "sort_direction": "desc"}
        stats = body["metadata"]["statistics"]
        assert stats["by_type"] == [{"type_id": series.id, "type_name": "series", "count": 2}]

    def test_year_range_and_name(self, client, make_movie):
        make_movie(slug="a", name="The Batman", year=2022)
        make_movie(slug="b", name="Batman Begins", year=2005)
        make_movie(slug="c", name="Joker", year=2019)

        body = client.post("/api/v1/movies/filter", json={
            "name": "batman", "start_year": 2010, "end_year": 2023,
        }).json()
        assert [m["slug"] for m in body["data"]] == ["a"]
        assert body["metadata"]["statistics"] is None

    def test_limit_capped_and_bad_sort_defaults(self, client, make_movie):
        make_movie()
        body = client.post("/api/v1/movies/filter", json={"limit": 1000, "sort_by": "nope"}).json()
        assert body["pagination"]["limit"] == 100
        assert body["sort"]["sort_by"] == "updated_at"


class TestBulkDelete:
    def test_admin_deletes(self, client, make_movie):
        a = make_movie()
        b = make_movie()
        resp = client.post("/api/v1/movies/bulk-delete", json={"movie_ids": [a.id, b.id, "ghost"]})
        assert resp.status_code == 200
        body = resp.json()
        assert body["count"] == 2
        assert set(body["deleted_ids"]) == {a.id, b.id}
        assert body["not_found_ids"] == ["ghost"]

    def test_non_admin_forbidden(self, anon_client, db_session, make_movie):
        db_session.add(User(id="staff", name="Staff", role=UserRole.CUSTOMER))
        db_session.commit()
        movie = make_movie()
        anon_client.cookies.set("auth_session", "session-staff")
        resp = anon_client.post("/api/v1/movies/bulk-delete", json={"movie_ids": [movie.id]})
        assert resp.status_code == 403

    def test_session_without_user_row_forbidden(self, anon_client, make_movie):
        movie = make_movie()
        anon_client.cookies.set("auth_session", "session-nobody")
        resp = anon_client.post("/api/v1/movies/bulk-delete", json={"movie_ids": [movie.id]})
        assert resp.status_code == 403
        assert resp.json()["detail"] == "Admin privileges required"

    def test_empty_list(self, client):
        assert client.post("/api/v1/movies/bulk-delete", json={"movie_ids": []}).status_code == 400

    def test_none_found(self, client):
        assert client.post("/api/v1/movies/bulk-delete", json={"movie_ids": ["x"]}).status_code == 404


class TestCheckImport:
    def test_existing_slugs(self, client, make_movie):
        make_movie(slug="have-it")
        resp = client.post("/api/v1/movies/check-import", json={"slugs": ["have-it", "new-one"]})
        assert resp.status_code == 200
        assert resp.json() == {"existing_slugs": ["have-it"]}

    def test_slugs_must_be_list(self, client):
        assert client.post("/api/v1/movies/check-import", json={}).status_code == 400
        assert client.post("/api/v1/movies/check-import", json={"slugs": "x"}).status_code == 400
