"""Title cache routes: /api/titles and /."""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from titlecache.batch import parse_uris
from titlecache.config import merge_config
from titlecache.errors import BatchFileError, TitleCacheError
from titlecache.models import Envelope, TitleRequest
from titlecache.service import TitleCache

titles_bp = Blueprint("titles", __name__)


def _request_uris() -> list[str]:
    """URIs from an uploaded ``uris-from`` file, else from ``uris``."""
    upload = request.files.get("uris-from")
    if upload is not None:
        try:
            return upload.read().decode("utf-8").split("\n")
        except UnicodeDecodeError as exc:
            raise BatchFileError(f"Urifile is not valid UTF-8: {exc}") from exc
    values = request.values.getlist("uris")
    if len(values) == 1:
        return parse_uris(values[0])
    return values


@titles_bp.route("/", methods=["GET", "POST"], strict_slashes=False)
def handle():
    """Create the cache for a graph or look up titles.

    Parameters (query string or form): ``action`` (create|get),
    ``graph``, ``uris`` (comma-separated or repeated), ``lang`` and an
    optional ``uris-from`` file upload. Always answers with a JSON list
    holding one result envelope.
    """
    params = request.values
    try:
        title_request = TitleRequest(
            action=params.get("action") or None,
            graph=params.get("graph") or None,
            uris=_request_uris(),
            lang=params.get("lang") or None,
        )
        config = merge_config(current_app.config["TITLECACHE"])
    except TitleCacheError as exc:
        return jsonify([Envelope.error(exc.message).model_dump()])

    result = TitleCache(config).run(title_request)
    return jsonify([result.model_dump()])
