"""Flask application factory for the ambient gallery.

The module exposes :func:`create_app` which is used both by ``app.py`` and the
test-suite to instantiate a fully configured Flask application. The page
lists the available backgrounds and sounds, and a small JSON API reads and
writes the user's current selection.
"""
from __future__ import annotations

from pathlib import Path

from flask import Flask, abort, jsonify, render_template, request, send_from_directory
from werkzeug.exceptions import HTTPException

from .catalog import (
    BackgroundEntry,
    CatalogDirectoryError,
    CatalogMode,
    MediaKind,
    SoundEntry,
    list_backgrounds,
    list_sounds,
    scan_backgrounds,
)
from .selection_store import (
    SelectionKey,
    SelectionStore,
    StorageError,
    StorageReadFailed,
    StorageUnavailable,
    StorageWriteFailed,
)

_DEFAULT_PUBLIC_DIR = Path("public")
_DEFAULT_DB_PATH = Path("settings.db")
_BACKGROUNDS_SUBDIR = "bkgs"
_PUBLIC_URL_PATH = "/public"


def create_app(
    public_dir: Path | None = None,
    *,
    store: SelectionStore | None = None,
    db_path: Path | None = None,
    catalog_mode: CatalogMode | str | None = None,
) -> Flask:
    """Create and configure the Flask application.

    Parameters
    ----------
    public_dir:
        Directory served under ``/public``. Backgrounds are read from its
        ``bkgs`` subdirectory and sounds are served from ``sounds``. Defaults
        to ``public`` relative to the working directory.
    store:
        Selection store to use. Takes precedence over *db_path*.
    db_path:
        SQLite file opened when no *store* is given. Defaults to
        ``settings.db``.
    catalog_mode:
        How background files are turned into gallery entries. Defaults to
        :attr:`CatalogMode.THUMBNAILS`.

    Returns
    -------
    flask.Flask
        A ready-to-use Flask application with ``PUBLIC_DIRECTORY``,
        ``BACKGROUNDS_DIRECTORY`` and ``CATALOG_MODE`` configured.

    Raises
    ------
    StorageUnavailable
        If the selection store cannot be opened. The server must not start
        without one.

    Examples
    --------
    >>> from ambient_gallery import create_app
    >>> app = create_app(db_path=Path('settings.db'))  # doctest: +SKIP
    >>> app.test_client().get('/health').status_code  # doctest: +SKIP
    200
    """

    app = Flask(__name__, template_folder="templates", static_folder=None)

    public_directory = (public_dir or _DEFAULT_PUBLIC_DIR).resolve()
    backgrounds_directory = public_directory / _BACKGROUNDS_SUBDIR
    mode = catalog_mode if isinstance(catalog_mode, CatalogMode) else CatalogMode.from_value(catalog_mode)

    app.config["PUBLIC_DIRECTORY"] = public_directory
    app.config["BACKGROUNDS_DIRECTORY"] = backgrounds_directory
    app.config["CATALOG_MODE"] = mode
    app.logger.info("Public directory: %s", public_directory)
    app.logger.info("Catalog mode: %s", mode.value)

    if store is None:
        store = SelectionStore.open(db_path or _DEFAULT_DB_PATH)
    selection_store = store
    app.logger.info("Selection database: %s", selection_store.db_path)

    def read_selection(field: str, key: SelectionKey):
        try:
            value = selection_store.get_selection(key)
        except StorageReadFailed as exc:
            app.logger.error("Unable to read %s: %s", key.value, exc)
            abort(500, description=f"Failed to get {field}")
        return jsonify({field: value or ""})

    def save_selection(field: str, key: SelectionKey):
        value = _parse_selection_body(field)
        try:
            selection_store.set_selection(key, value)
        except StorageWriteFailed as exc:
            app.logger.error("Unable to save %s: %s", key.value, exc)
            abort(500, description=f"Failed to save {field}")
        app.logger.info("Saved %s: %s", field, value)
        return jsonify({"status": "ok"})

    @app.route("/")
    def index():
        """Render the gallery with the backgrounds and sounds on offer."""
        backgrounds = list_backgrounds(backgrounds_directory, mode=mode, logger=app.logger)
        return render_template(
            "index.html",
            backgrounds=backgrounds,
            sounds=list_sounds(),
            public_url_path=_PUBLIC_URL_PATH,
        )

    @app.route(f"{_PUBLIC_URL_PATH}/<path:filename>")
    def public(filename: str):
        """Serve backgrounds, sounds and page assets from the public directory."""
        return send_from_directory(public_directory, filename)

    @app.route("/api/get-background")
    def get_background():
        return read_selection("background", SelectionKey.BACKGROUND)

    @app.route("/api/save-background", methods=["POST"])
    def save_background():
        return save_selection("background", SelectionKey.BACKGROUND)

    @app.route("/api/get-sound")
    def get_sound():
        return read_selection("sound", SelectionKey.SOUND)

    @app.route("/api/save-sound", methods=["POST"])
    def save_sound():
        return save_selection("sound", SelectionKey.SOUND)

    @app.route("/health")
    def health():
        """Lightweight health check used by monitoring and dev tooling."""
        return jsonify({"status": "ok"})

    @app.errorhandler(HTTPException)
    def api_error(exc: HTTPException):
        """Answer API errors with a short plain-text message."""
        response = exc.get_response()
        if not request.path.startswith("/api/"):
            return response
        message = "Method not allowed" if exc.code == 405 else exc.description
        response.set_data(message or "")
        response.content_type = "text/plain; charset=utf-8"
        return response

    return app


def _parse_selection_body(field: str) -> str:
    """Return the string stored under *field* in the JSON request body.

    Aborts with 400 when the body is not a JSON object holding a string value
    for *field*.
    """

    data = request.get_json(force=True, silent=True)
    if not isinstance(data, dict):
        abort(400, description="Invalid request")
    value = data.get(field)
    if not isinstance(value, str):
        abort(400, description="Invalid request")
    return value


__all__ = [
    "BackgroundEntry",
    "CatalogDirectoryError",
    "CatalogMode",
    "MediaKind",
    "SelectionKey",
    "SelectionStore",
    "SoundEntry",
    "StorageError",
    "StorageReadFailed",
    "StorageUnavailable",
    "StorageWriteFailed",
    "create_app",
    "list_backgrounds",
    "list_sounds",
    "scan_backgrounds",
]
