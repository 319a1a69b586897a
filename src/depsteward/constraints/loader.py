"""Loading of remote policy documents: migrations, ignores, pins, retractions
and scalafix migrations.

Documents are fetched from ``http(s)://`` or ``file://`` URLs. Those ending in
``.conf`` are HOCON, the format of the upstream Scala Steward documents;
anything else is parsed as YAML (which also accepts JSON). Each URL is
fetched and decoded at most once per ``PolicyDocumentCache``; callers create
one cache per resolution run and drop it afterwards, nothing is persisted.

Problems are reported, never raised: an unreachable or unparsable document
yields no entries and a malformed entry is skipped with a warning naming the
URL and index, while the rest of the document still loads.
"""
from __future__ import annotations

import logging
import os
import threading
import urllib.parse
import urllib.request
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

import yaml
from pyhocon import ConfigFactory
from pyhocon.exceptions import ConfigException
from pyparsing import ParseBaseException

from depsteward.common.http_client import get_text
from depsteward.common.logging_utils import extra_context, is_debug_enabled, safe_url
from depsteward.constants import Constants, PolicyKind
from depsteward.exceptions import ConfigurationError, DepstewardError
from .entries import (
    decode_artifact_migration,
    decode_retracted_artifact,
    decode_retraction_group,
    decode_scalafix_migration,
    decode_update_ignore,
    decode_update_pin,
)

logger = logging.getLogger(__name__)

_DECODERS: Dict[PolicyKind, Callable[[Any], Any]] = {
    PolicyKind.MIGRATIONS: decode_artifact_migration,
    PolicyKind.IGNORES: decode_update_ignore,
    PolicyKind.PINS: decode_update_pin,
    PolicyKind.SCALAFIX_MIGRATIONS: decode_scalafix_migration,
}


def _read_url(url: str, timeout: Optional[float]) -> Optional[str]:
    """Return the raw text behind ``url`` or None when there is nothing there."""
    parts = urllib.parse.urlsplit(url)
    if parts.scheme in ("http", "https"):
        _, text = get_text(url, context="policy", timeout=timeout)
        return text
    if parts.scheme == "file":
        path = urllib.request.url2pathname(parts.path)
    elif parts.scheme == "":
        path = url
    else:
        raise ConfigurationError(f"unsupported URL scheme '{parts.scheme}'")
    if not os.path.isfile(path):
        return None
    with open(path, "r", encoding="utf-8") as fh:
        return fh.read()


def _is_hocon(url: str) -> bool:
    path = urllib.parse.urlsplit(url).path or url
    return path.lower().endswith(Constants.HOCON_EXTENSIONS)


def parse_document(text: str, hocon: bool = False) -> Any:
    """Parse a policy document as HOCON or YAML.

    Raises:
        ConfigurationError: The text is not valid in the chosen format.
    """
    if hocon:
        try:
            return ConfigFactory.parse_string(text, resolve=True).as_plain_ordered_dict()
        except (ConfigException, ParseBaseException) as exc:
            raise ConfigurationError(f"unparsable HOCON: {exc}") from exc
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"unparsable: {exc}") from exc


def lookup_path(document: Any, path: str) -> Any:
    """Follow a dotted key path through nested mappings; None when absent."""
    node = document
    for key in path.split("."):
        if not isinstance(node, dict) or key not in node:
            return None
        node = node[key]
    return node


class PolicyDocumentCache:
    """Per-run cache of parsed policy documents and their decoded entries.

    Keyed by URL, so several policy kinds reading the same document trigger a
    single fetch. Thread-safe.
    """

    def __init__(self, timeout: Optional[float] = None):
        """Initialize an empty cache.

        Args:
            timeout: Seconds allowed for each HTTP fetch.
        """
        self._timeout = timeout
        self._documents: Dict[str, Optional[Dict[str, Any]]] = {}
        self._entries: Dict[Tuple[PolicyKind, str], List[Any]] = {}
        self._lock = threading.RLock()

    def document(self, url: str) -> Optional[Dict[str, Any]]:
        """Return the parsed document for ``url``, fetching it on first use.

        Failed fetches are remembered as None so they are reported only once.
        """
        with self._lock:
            if url in self._documents:
                return self._documents[url]
            document = self._fetch(url)
            self._documents[url] = document
            return document

    def _fetch(self, url: str) -> Optional[Dict[str, Any]]:
        logger.info("Loading policy document from %s", safe_url(url))
        try:
            text = _read_url(url, self._timeout)
        except (DepstewardError, OSError, UnicodeDecodeError) as exc:
            logger.warning("Skipping policy document %s: %s", safe_url(url), exc)
            return None
        if text is None:
            logger.warning("Skipping policy document %s: not found", safe_url(url))
            return None
        try:
            parsed = parse_document(text, hocon=_is_hocon(url))
        except ConfigurationError as exc:
            logger.warning("Skipping policy document %s: %s", safe_url(url), exc)
            return None
        if parsed is None:
            return {}
        if not isinstance(parsed, dict):
            logger.warning("Skipping policy document %s: top level is not an object", safe_url(url))
            return None
        return parsed

    def entries(self, kind: PolicyKind, url: str) -> List[Any]:
        """Decoded entries of one kind from one document."""
        key = (kind, url)
        with self._lock:
            if key not in self._entries:
                self._entries[key] = self._decode(kind, url)
            return self._entries[key]

    def load(self, kind: PolicyKind, urls: Iterable[str]) -> List[Any]:
        """Concatenate the entries of ``kind`` from every URL, in order."""
        loaded: List[Any] = []
        for url in urls:
            loaded.extend(self.entries(kind, url))
        return loaded

    def _decode(self, kind: PolicyKind, url: str) -> List[Any]:
        document = self.document(url)
        if document is None:
            return []

        path = Constants.POLICY_KEYS[kind]
        raw_entries = lookup_path(document, path)
        if raw_entries is None:
            if is_debug_enabled(logger):
                logger.debug(
                    "No %s entries in %s",
                    kind.value,
                    safe_url(url),
                    extra=extra_context(event="policy_load", outcome="missing_key", url=safe_url(url)),
                )
            return []
        if not isinstance(raw_entries, list):
            logger.warning(
                "Skipping malformed %s from %s: '%s' must be an array", kind.value, safe_url(url), path
            )
            return []

        if kind is PolicyKind.RETRACTIONS:
            decoded = _decode_retractions(raw_entries, url)
        else:
            decoded = _decode_list(kind, raw_entries, url)

        logger.debug("Loaded %d %s entries from %s", len(decoded), kind.value, safe_url(url))
        return decoded


def _warn_skipped(kind: PolicyKind, url: str, where: str, error: ConfigurationError) -> None:
    logger.warning(
        "Skipping malformed %s from %s: %s: %s",
        kind.value,
        safe_url(url),
        where,
        error,
        extra=extra_context(event="policy_load", outcome="skipped_entry", url=safe_url(url)),
    )


def _decode_list(kind: PolicyKind, raw_entries: List[Any], url: str) -> List[Any]:
    decoder = _DECODERS[kind]
    decoded = []
    for index, raw in enumerate(raw_entries):
        try:
            decoded.append(decoder(raw))
        except ConfigurationError as exc:
            _warn_skipped(kind, url, f"entry at index {index}", exc)
    return decoded


def _decode_retractions(raw_groups: List[Any], url: str) -> List[Any]:
    decoded = []
    for index, raw_group in enumerate(raw_groups):
        try:
            artifacts = decode_retraction_group(raw_group)
        except ConfigurationError as exc:
            _warn_skipped(PolicyKind.RETRACTIONS, url, f"entry at index {index}", exc)
            continue
        for artifact_index, raw_artifact in enumerate(artifacts):
            try:
                decoded.append(decode_retracted_artifact(raw_group, raw_artifact))
            except ConfigurationError as exc:
                _warn_skipped(
                    PolicyKind.RETRACTIONS,
                    url,
                    f"entry at index {index}, artifact at index {artifact_index}",
                    exc,
                )
    return decoded
