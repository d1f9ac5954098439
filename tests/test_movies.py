import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from shotdeck.main import app
from shotdeck.schemas.movie import normalize_links
from shotdeck.services import catalog
from shotdeck.services.storage import S3Storage, get_storage


def _movie_payload(**overrides):
    payload = {"title": "Thief", "director": "Michael Mann", "year": 1981, "runtime_minutes": 122}
    payload.update(overrides)
    return payload


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"ok": True}


def test_create_movie_defaults(heat):
    assert heat["id"]
    assert heat["title"] == "Heat"
    assert heat["links"] == []
    assert heat["cover_image_key"] is None
    assert heat["cover_image_url"] is None
    assert heat["created_at"]


def test_create_movie_rejects_bad_shapes(client):
    cases = [
        _movie_payload(title=""),
        _movie_payload(title="   "),
        _movie_payload(director=7),
        _movie_payload(year="1995"),
        _movie_payload(year=1700),
        _movie_payload(runtime_minutes=0),
        _movie_payload(runtime_minutes=True),
        _movie_payload(links={"a": 1}),
        _movie_payload(links=["http://a", 3]),
    ]
    for payload in cases:
        response = client.post("/movies", json=payload)
        assert response.status_code == 400, payload
        assert response.json()["error"].startswith("Invalid body. Expected")
    assert client.get("/movies").json() == []


def test_create_movie_rejects_non_object_body(client):
    response = client.post("/movies", json=["Heat"])
    assert response.status_code == 400
    assert "error" in response.json()


def test_links_round_trip_in_order(client):
    created = client.post("/movies", json=_movie_payload(links=["http://a", "http://b"])).json()
    fetched = client.get(f"/movies/{created['id']}").json()
    assert fetched["links"] == ["http://a", "http://b"]


def test_links_string_is_split_on_line_breaks(client):
    created = client.post(
        "/movies", json=_movie_payload(links="http://a\r\n  \nhttp://b  \n")
    ).json()
    assert created["links"] == ["http://a", "http://b"]


def test_normalize_links():
    assert normalize_links(None) == []
    assert normalize_links([" x ", "", "  ", "y"]) == ["x", "y"]
    assert normalize_links("x\ny") == ["x", "y"]


def test_list_movies_newest_first(client):
    first = client.post("/movies", json=_movie_payload(title="First")).json()
    second = client.post("/movies", json=_movie_payload(title="Second")).json()
    ids = [movie["id"] for movie in client.get("/movies").json()]
    assert ids == [second["id"], first["id"]]


def test_cover_url_resolved_on_every_read(client, storage):
    created = client.post(
        "/movies", json=_movie_payload(cover_image_key="covers/m1/abc.png")
    ).json()
    assert created["cover_image_url"] == "https://signed.test/get/covers/m1/abc.png"

    client.get(f"/movies/{created['id']}")
    client.get("/movies")
    assert storage.get_calls == ["covers/m1/abc.png"] * 3


def test_get_missing_movie(client):
    response = client.get("/movies/does-not-exist")
    assert response.status_code == 404
    assert response.json() == {"error": "Movie not found"}


def test_update_movie_preserves_omitted_links_and_cover(client):
    created = client.post(
        "/movies",
        json=_movie_payload(cover_image_key="covers/x/1.jpg", links=["http://a", "http://b"]),
    ).json()

    response = client.put(f"/movies/{created['id']}", json=_movie_payload(title="Thief (1981)"))
    assert response.status_code == 200
    body = response.json()
    assert body["title"] == "Thief (1981)"
    assert body["links"] == ["http://a", "http://b"]
    assert body["cover_image_key"] == "covers/x/1.jpg"
    assert body["created_at"] == created["created_at"]


def test_update_movie_explicit_null_clears_cover(client):
    created = client.post("/movies", json=_movie_payload(cover_image_key="covers/x/1.jpg")).json()
    body = client.put(
        f"/movies/{created['id']}", json=_movie_payload(cover_image_key=None)
    ).json()
    assert body["cover_image_key"] is None
    assert body["cover_image_url"] is None


def test_update_movie_replaces_links_when_given(client):
    created = client.post("/movies", json=_movie_payload(links=["http://a"])).json()
    body = client.put(f"/movies/{created['id']}", json=_movie_payload(links=[])).json()
    assert body["links"] == []


def test_update_movie_validation_and_not_found(client, heat):
    bad = client.put(f"/movies/{heat['id']}", json={"title": "Heat"})
    assert bad.status_code == 400

    missing = client.put("/movies/nope", json=_movie_payload())
    assert missing.status_code == 404


def test_persistence_failure_is_generic_500(client, monkeypatch):
    def _boom(db):
        raise OperationalError("SELECT * FROM movies", {}, Exception("connection refused"))

    monkeypatch.setattr(catalog, "list_movies", _boom)
    response = client.get("/movies")
    assert response.status_code == 500
    assert response.json() == {"error": "Database request failed"}


@pytest.mark.parametrize(
    "key", ["covers/m/my cover.jpg", "covers/a..b.png", "etc/passwd", "covers/m/a?.png", "co"]
)
def test_create_movie_rejects_unsafe_cover_key(client, key):
    response = client.post("/movies", json=_movie_payload(cover_image_key=key))
    assert response.status_code == 400
    assert "cover_image_key" in response.json()["error"]

    listed = client.get("/movies")
    assert listed.status_code == 200
    assert listed.json() == []


def test_update_movie_rejects_unsafe_cover_key(client):
    created = client.post("/movies", json=_movie_payload(cover_image_key="covers/x/1.jpg")).json()
    response = client.put(
        f"/movies/{created['id']}", json=_movie_payload(cover_image_key="covers/x/../1.jpg")
    )
    assert response.status_code == 400
    assert client.get(f"/movies/{created['id']}").json()["cover_image_key"] == "covers/x/1.jpg"


def test_list_movies_with_real_gateway_after_rejected_key(client, monkeypatch):
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.delenv("AWS_SESSION_TOKEN", raising=False)
    monkeypatch.delenv("AWS_PROFILE", raising=False)
    s3_storage = S3Storage(bucket="shotdeck-test", region="us-west-2", endpoint_url="", cdn_base_url="")
    app.dependency_overrides[get_storage] = lambda: s3_storage

    rejected = client.post("/movies", json=_movie_payload(cover_image_key="covers/m/my cover.jpg"))
    assert rejected.status_code == 400
    accepted = client.post("/movies", json=_movie_payload(cover_image_key="covers/m/cover.jpg"))
    assert accepted.status_code == 201

    listed = client.get("/movies")
    assert listed.status_code == 200
    assert [movie["cover_image_key"] for movie in listed.json()] == ["covers/m/cover.jpg"]
    assert "covers/m/cover.jpg" in listed.json()[0]["cover_image_url"]


def test_unhandled_error_is_json_500(client, monkeypatch):
    def _boom(db):
        raise RuntimeError("unexpected")

    monkeypatch.setattr(catalog, "list_movies", _boom)
    with TestClient(app, raise_server_exceptions=False) as quiet_client:
        response = quiet_client.get("/movies")
    assert response.status_code == 500
    assert response.headers["content-type"].startswith("application/json")
    assert response.json() == {"error": "Internal server error"}
