"""Batch jobs from YAML action files, and result files.

An action file looks like::

    actions:
      - action: create
        graph: http://example.org/
      - action: get
        graph: http://example.org/
        uris-from: uris.txt
        lang: de
        config:
          cache:
            backend: redis
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Mapping, Optional, Union

import yaml

from titlecache.config import merge_config
from titlecache.errors import BatchFileError, TitleCacheError
from titlecache.models import Envelope, TitleRequest
from titlecache.service import TitleCache

logger = logging.getLogger(__name__)

__all__ = [
    "load_actions",
    "parse_uris",
    "read_uri_file",
    "request_from_mapping",
    "run_actions",
    "write_results",
]


def parse_uris(value: Union[str, list, tuple, None]) -> list[str]:
    """Accept a comma-separated string or a list of URIs."""
    if not value:
        return []
    if isinstance(value, str):
        return value.split(",")
    return [str(v) for v in value]


def read_uri_file(path: Union[str, Path]) -> list[str]:
    """Read a newline-separated URI list."""
    path = Path(path)
    if not path.is_file():
        raise BatchFileError(f"Urifile not found: {path}")
    return path.read_text(encoding="utf-8").split("\n")


def request_from_mapping(params: Mapping[str, Any]) -> TitleRequest:
    """Build a request from a batch item or a flat parameter mapping.

    ``uris-from`` (a file path) replaces ``uris`` when given.
    """
    uris = parse_uris(params.get("uris"))
    if params.get("uris-from"):
        uris = read_uri_file(params["uris-from"])
    return TitleRequest(
        action=params.get("action") or None,
        graph=params.get("graph") or None,
        uris=uris,
        lang=params.get("lang") or None,
    )


def load_actions(path: Union[str, Path]) -> list[dict[str, Any]]:
    """Load the ``actions`` list of a YAML action file."""
    path = Path(path)
    if not path.is_file():
        raise BatchFileError(f"Unable to open file: {path}")
    try:
        value = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise BatchFileError(f"Unable to parse the YAML string: {exc}") from exc

    if not isinstance(value, dict) or not value.get("actions"):
        raise BatchFileError(
            f"No action parameter (get or create) given in file: {path}"
        )
    actions = value["actions"]
    if not isinstance(actions, list) or not all(isinstance(a, dict) for a in actions):
        raise BatchFileError(f"'actions' must be a list of mappings in file: {path}")
    return actions


def run_actions(
    path: Union[str, Path],
    base_overrides: Optional[Mapping[str, Any]] = None,
) -> list[Envelope]:
    """Run every action of an action file, each with its own config.

    A file-level problem yields a single error envelope.
    """
    try:
        actions = load_actions(path)
    except BatchFileError as exc:
        return [Envelope.error(exc.message)]

    results: list[Envelope] = []
    for index, action in enumerate(actions):
        try:
            request = request_from_mapping(action)
            config = merge_config(base_overrides, action.get("config"))
        except TitleCacheError as exc:
            # stop at the first broken action
            results.append(Envelope.error(exc.message))
            break
        logger.info("Running batch action %d (%s)", index, request.action)
        results.append(TitleCache(config).run(request))
    return results


def write_results(results: list[Envelope], directory: Union[str, Path]) -> list[Path]:
    """Write each envelope as YAML to ``result-<i>.txt`` in *directory*."""
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    written = []
    for index, result in enumerate(results):
        target = directory / f"result-{index}.txt"
        target.write_text(
            yaml.safe_dump(result.model_dump(), sort_keys=False, allow_unicode=True),
            encoding="utf-8",
        )
        written.append(target)
    logger.info("Wrote %d result file(s) to %s", len(written), directory)
    return written
