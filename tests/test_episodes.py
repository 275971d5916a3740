"""Episodes and episode servers nested under a movie."""


def _base(movie_id):
    return f"/api/v1/movies/{movie_id}/episodes"


class TestEpisodes:
    def test_create_and_list(self, client, make_movie):
        movie = make_movie()
        resp = client.post(_base(movie.id), json={"name": "Tập 1", "slug": "tap-01"})
        assert resp.status_code == 201
        assert resp.json()["movie_id"] == movie.id
        assert resp.json()["servers"] == []

        listed = client.get(_base(movie.id)).json()
        assert [e["slug"] for e in listed] == ["tap-01"]

    def test_create_requires_name_and_slug(self, client, make_movie):
        movie = make_movie()
        resp = client.post(_base(movie.id), json={"name": "Tập 1"})
        assert resp.status_code == 400

    def test_create_for_missing_movie(self, client):
        resp = client.post(_base("missing"), json={"name": "Tập 1", "slug": "tap-01"})
        assert resp.status_code == 404

    def test_slug_unique_per_movie(self, client, make_movie, make_episode):
        first = make_movie()
        second = make_movie()
        make_episode(first, "tap-01")

        assert client.post(_base(first.id), json={"name": "x", "slug": "tap-01"}).status_code == 400
        assert client.post(_base(second.id), json={"name": "x", "slug": "tap-01"}).status_code == 201

    def test_update(self, client, make_movie, make_episode):
        movie = make_movie()
        episode = make_episode(movie, "tap-01")
        resp = client.patch(f"{_base(movie.id)}/{episode.id}", json={"name": "Tập Một", "slug": "tap-1"})
        assert resp.status_code == 200
        assert resp.json()["name"] == "Tập Một"
        assert resp.json()["slug"] == "tap-1"

    def test_update_requires_name_and_slug(self, client, make_movie, make_episode):
        movie = make_movie()
        episode = make_episode(movie, "tap-01")
        resp = client.patch(f"{_base(movie.id)}/{episode.id}", json={"name": "Tập Một", "slug": ""})
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Name and slug are required"

    def test_update_wrong_movie(self, client, make_movie, make_episode):
        owner = make_movie()
        other = make_movie()
        episode = make_episode(owner)
        resp = client.patch(f"{_base(other.id)}/{episode.id}", json={"name": "x", "slug": "x"})
        assert resp.status_code == 400

    def test_delete(self, client, make_movie, make_episode):
        movie = make_movie()
        episode = make_episode(movie, servers=["s1"])
        resp = client.delete(f"{_base(movie.id)}/{episode.id}")
        assert resp.status_code == 200
        assert client.get(_base(movie.id)).json() == []

    def test_delete_missing(self, client, make_movie):
        movie = make_movie()
        assert client.delete(f"{_base(movie.id)}/nope").status_code == 404


class TestEpisodeServers:
    def test_create_server(self, client, make_movie, make_episode):
        movie = make_movie()
        episode = make_episode(movie)
        resp = client.post(f"{_base(movie.id)}/{episode.id}/servers", json={
            "server_name": "Vietsub #1",
            "link_m3u8": "https://cdn.example.com/a.m3u8",
            "link_mp4": "https://cdn.example.com/a.mp4",
        })
        assert resp.status_code == 201
        body = resp.json()
        assert body["episode_id"] == episode.id
        assert body["link_mp4"] == "https://cdn.example.com/a.mp4"

    def test_server_name_required(self, client, make_movie, make_episode):
        movie = make_movie()
        episode = make_episode(movie)
        resp = client.post(f"{_base(movie.id)}/{episode.id}/servers", json={"link_m3u8": "x"})
        assert resp.status_code == 400

    def test_server_name_unique(self, client, make_movie, make_episode):
        movie = make_movie()
        episode = make_episode(movie, servers=["Vietsub #1"])
        resp = client.post(f"{_base(movie.id)}/{episode.id}/servers", json={"server_name": "Vietsub #1"})
        assert resp.status_code == 400

    def test_server_on_foreign_episode(self, client, make_movie, make_episode):
        owner = make_movie()
        other = make_movie()
        episode = make_episode(owner)
        resp = client.post(f"{_base(other.id)}/{episode.id}/servers", json={"server_name": "s"})
        assert resp.status_code == 404

    def test_update_and_delete_server(self, client, make_movie, make_episode):
        movie = make_movie()
        episode = make_episode(movie, servers=["Vietsub #1", "Lồng Tiếng #1"])
        listed = client.get(_base(movie.id)).json()[0]["servers"]
        server_id = next(s["id"] for s in listed if s["server_name"] == "Vietsub #1")
        url = f"{_base(movie.id)}/{episode.id}/servers/{server_id}"

        conflict = client.patch(url, json={"server_name": "Lồng Tiếng #1"})
        assert conflict.status_code == 400

        resp = client.patch(url, json={"link_embed": "https://player.example.com/e/1"})
        assert resp.status_code == 200
        assert resp.json()["link_embed"] == "https://player.example.com/e/1"
        assert resp.json()["server_name"] == "Vietsub #1"

        assert client.delete(url).status_code == 200
        assert client.delete(url).status_code == 404
