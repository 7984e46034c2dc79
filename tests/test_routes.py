"""Integration tests for Flask routes."""
from __future__ import annotations

from pathlib import Path
from typing import Iterator

import pytest

from ambient_gallery import create_app
from ambient_gallery.selection_store import (
    SelectionKey,
    SelectionStore,
    StorageReadFailed,
    StorageWriteFailed,
)


@pytest.fixture
def public_dir(tmp_path: Path) -> Path:
    """Return a public directory with a small thumbnail-style catalog."""

    public = tmp_path / "public"
    backgrounds = public / "bkgs"
    backgrounds.mkdir(parents=True)
    for name in ("Autumn_Rain.mov", "Autumn_Rain.webp", "River_Fire.mov", "notes.txt"):
        (backgrounds / name).write_bytes(b"MEDIA")
    sounds = public / "sounds"
    sounds.mkdir()
    (sounds / "rain.mp3").write_bytes(b"ID3")
    return public


@pytest.fixture
def store(tmp_path: Path) -> SelectionStore:
    return SelectionStore.open(tmp_path / "settings.db")


@pytest.fixture
def app(public_dir: Path, store: SelectionStore) -> Iterator:
    """Create a Flask app serving the sample public directory."""

    application = create_app(public_dir, store=store)
    yield application


@pytest.fixture
def client(app) -> Iterator:
    """Provide a Flask test client."""

    with app.test_client() as client:
        yield client


class _BrokenStore:
    """Store double whose every operation fails."""

    db_path = Path("broken.db")

    def get_selection(self, key):
        raise StorageReadFailed("disk gone")

    def set_selection(self, key, value):
        raise StorageWriteFailed("disk gone")


@pytest.fixture
def broken_client(public_dir: Path) -> Iterator:
    application = create_app(public_dir, store=_BrokenStore())
    with application.test_client() as client:
        yield client


def test_index_lists_backgrounds_and_sounds(client) -> None:
    response = client.get("/")
    assert response.status_code == 200
    html = response.get_data(as_text=True)
    assert "Autumn Rain" in html
    assert "River Fire" in html
    assert html.count('data-bg-path="Autumn_Rain.mov"') == 1
    assert "/public/bkgs/River_Fire.webp" in html
    assert "notes.txt" not in html
    assert 'data-sound-path="thunder.mp3"' in html


def test_index_without_backgrounds_directory(tmp_path: Path, store: SelectionStore) -> None:
    application = create_app(tmp_path / "empty", store=store)
    with application.test_client() as client:
        response = client.get("/")
    assert response.status_code == 200
    assert "No backgrounds available." in response.get_data(as_text=True)


def test_index_in_mixed_mode(public_dir: Path, store: SelectionStore) -> None:
    (public_dir / "bkgs" / "Beach.png").write_bytes(b"PNG")
    application = create_app(public_dir, store=store, catalog_mode="mixed")
    with application.test_client() as client:
        html = client.get("/").get_data(as_text=True)
    assert 'data-bg-path="Beach.png" data-bg-type="image"' in html
    assert 'data-bg-path="Autumn_Rain.mov" data-bg-type="video"' in html


def test_public_files_are_served(client) -> None:
    response = client.get("/public/sounds/rain.mp3")
    assert response.status_code == 200
    assert response.data == b"ID3"

    assert client.get("/public/bkgs/missing.mov").status_code == 404
    assert client.get("/public/../settings.db").status_code == 404


def test_unknown_path_is_not_found(client) -> None:
    assert client.get("/nope").status_code == 404


def test_health_endpoint(client) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json == {"status": "ok"}


def test_get_selection_defaults_to_empty(client) -> None:
    assert client.get("/api/get-background").get_json() == {"background": ""}
    assert client.get("/api/get-sound").get_json() == {"sound": ""}


def test_save_and_get_background(client, store: SelectionStore) -> None:
    response = client.post("/api/save-background", json={"background": "River_Fire.mov"})
    assert response.status_code == 200
    assert response.get_json() == {"status": "ok"}

    assert client.get("/api/get-background").get_json() == {"background": "River_Fire.mov"}
    assert store.get_selection(SelectionKey.BACKGROUND) == "River_Fire.mov"
    # The sound key is untouched.
    assert client.get("/api/get-sound").get_json() == {"sound": ""}


def test_save_and_get_sound_use_the_sound_key(client, store: SelectionStore) -> None:
    client.post("/api/save-background", json={"background": "River_Fire.mov"})
    response = client.post("/api/save-sound", json={"sound": "rain.mp3"})
    assert response.status_code == 200

    assert client.get("/api/get-sound").get_json() == {"sound": "rain.mp3"}
    assert client.get("/api/get-background").get_json() == {"background": "River_Fire.mov"}
    assert store.get_selection(SelectionKey.SOUND) == "rain.mp3"


def test_body_without_json_content_type_is_accepted(client) -> None:
    response = client.post("/api/save-sound", data='{"sound": "fire.mp3"}')
    assert response.status_code == 200
    assert client.get("/api/get-sound").get_json() == {"sound": "fire.mp3"}


@pytest.mark.parametrize(
    "body",
    [
        "{not json",
        "",
        '["River_Fire.mov"]',
        '{"sound": "rain.mp3"}',
        '{"background": 3}',
        '{"background": null}',
    ],
)
def test_malformed_body_is_rejected_without_mutation(client, store: SelectionStore, body: str) -> None:
    store.set_selection(SelectionKey.BACKGROUND, "Autumn_Rain.mov")

    response = client.post(
        "/api/save-background", data=body, content_type="application/json"
    )

    assert response.status_code == 400
    assert response.mimetype == "text/plain"
    assert response.get_data(as_text=True) == "Invalid request"
    assert store.get_selection(SelectionKey.BACKGROUND) == "Autumn_Rain.mov"


@pytest.mark.parametrize("path", ["/api/save-background", "/api/save-sound"])
def test_save_requires_post(client, path: str) -> None:
    response = client.get(path)
    assert response.status_code == 405
    assert response.mimetype == "text/plain"
    assert response.get_data(as_text=True) == "Method not allowed"


def test_storage_failures_map_to_500(broken_client) -> None:
    read = broken_client.get("/api/get-background")
    assert read.status_code == 500
    assert read.get_data(as_text=True) == "Failed to get background"

    read_sound = broken_client.get("/api/get-sound")
    assert read_sound.status_code == 500
    assert read_sound.get_data(as_text=True) == "Failed to get sound"

    write = broken_client.post("/api/save-sound", json={"sound": "rain.mp3"})
    assert write.status_code == 500
    assert write.mimetype == "text/plain"
    assert write.get_data(as_text=True) == "Failed to save sound"


def test_selection_survives_app_restart(public_dir: Path, tmp_path: Path) -> None:
    db_path = tmp_path / "restart.db"
    first = create_app(public_dir, db_path=db_path)
    with first.test_client() as client:
        client.post("/api/save-background", json={"background": "River_Fire.mov"})

    second = create_app(public_dir, db_path=db_path)
    with second.test_client() as client:
        assert client.get("/api/get-background").get_json() == {"background": "River_Fire.mov"}


def test_index_has_elements_the_page_script_binds(client) -> None:
    html = client.get("/").get_data(as_text=True)
    for element_id in (
        "background",
        "backgroundVideo",
        "bgButton",
        "bgModal",
        "closeModal",
        "soundButton",
        "soundModal",
        "closeSoundModal",
        "globalVolumeSlider",
        "globalVolumeValue",
        "activeSoundsContainer",
        "activeSoundsList",
    ):
        assert f'id="{element_id}"' in html
    assert html.count('class="sound-button-grid"') == 6


@pytest.mark.parametrize("path", ["/api/get-background", "/api/get-sound"])
def test_get_selection_requires_get(client, path: str) -> None:
    response = client.post(path, json={})
    assert response.status_code == 405
    assert response.get_data(as_text=True) == "Method not allowed"
