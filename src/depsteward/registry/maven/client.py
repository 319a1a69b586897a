"""Version source reading Maven-layout repositories.

Versions come from ``maven-metadata.xml``. Build-tool plugins are looked up
under both the Maven-style binary name (``name_2.12_1.0``) and the legacy
Ivy layout of the plugin repository, whose directory listing names one
directory per version; both answers are unioned.
"""
from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from typing import Iterable, List, Optional, Sequence

from depsteward.common.http_client import get_text
from depsteward.common.logging_utils import extra_context, is_debug_enabled, Timer
from depsteward.constants import Constants
from depsteward.versioning.models import NumericVersion
from depsteward.versioning.parser import parse_numeric
from depsteward.versioning.sources import VersionSource

logger = logging.getLogger(__name__)

_LISTING_ENTRY = re.compile(r'href="(?:\./)?([^"/?#]+)/"')


def metadata_url(repository: str, organization: str, name: str) -> str:
    """URL of the ``maven-metadata.xml`` for an artifact in ``repository``."""
    group_path = organization.replace(".", "/")
    return f"{repository.rstrip('/')}/{group_path}/{name}/{Constants.MAVEN_METADATA_FILE}"


def parse_metadata_versions(text: str) -> List[str]:
    """Return versions listed in maven-metadata.xml in source order.

    Raises:
        xml.etree.ElementTree.ParseError: The document is not XML.
    """
    root = ET.fromstring(text)
    versions_elem = root.find("versioning/versions")
    if versions_elem is None:
        return []
    versions = []
    for item in versions_elem.findall("version"):
        if isinstance(item.text, str) and item.text.strip():
            versions.append(item.text.strip())
    return versions


def parse_directory_listing(text: str) -> List[str]:
    """Return sub-directory names from an HTML directory listing."""
    return [name for name in _LISTING_ENTRY.findall(text) if name not in ("..", ".")]


def to_numeric(raw_versions: Iterable[str]) -> List[NumericVersion]:
    """Parse raw version strings, dropping non-numeric ones and duplicates."""
    seen = set()
    versions: List[NumericVersion] = []
    for raw in raw_versions:
        version = parse_numeric(raw)
        if version is None or raw in seen:
            continue
        seen.add(raw)
        versions.append(version)
    return versions


class MavenRepositorySource(VersionSource):
    """``VersionSource`` backed by one or more Maven repositories over HTTP."""

    def __init__(
        self,
        repositories: Optional[Sequence[str]] = None,
        scala_binary_version: str = Constants.DEFAULT_SCALA_BINARY_VERSION,
        timeout: Optional[float] = None,
        plugin_repository: Optional[str] = Constants.SBT_PLUGIN_IVY_URL,
    ):
        """Initialize the source.

        Args:
            repositories: Repository base URLs, queried in order. Defaults to Maven Central.
            scala_binary_version: Binary suffix appended to cross-built artifact names.
            timeout: Seconds allowed for each HTTP request.
            plugin_repository: Ivy-layout plugin repository, or None to skip it.
        """
        self.repositories = list(repositories or [Constants.MAVEN_CENTRAL_URL])
        self.scala_binary_version = scala_binary_version
        self.timeout = timeout
        self.plugin_repository = plugin_repository

    def find(self, organization: str, name: str, is_cross: bool, is_plugin: bool) -> List[NumericVersion]:
        if is_cross:
            raw = self._metadata_versions(organization, f"{name}_{self.scala_binary_version}")
        elif is_plugin:
            binary_name = f"{name}_{Constants.SBT_PLUGIN_SCALA_VERSION}_{Constants.SBT_PLUGIN_SBT_VERSION}"
            raw = self._metadata_versions(organization, binary_name) + self._ivy_plugin_versions(
                organization, name
            )
        else:
            raw = self._metadata_versions(organization, name)

        versions = to_numeric(raw)
        if is_debug_enabled(logger):
            logger.debug(
                "Retrieved %d versions for `%s:%s`: %s",
                len(versions),
                organization,
                name,
                ", ".join(f"`{v.show()}`" for v in versions),
                extra=extra_context(event="function_exit", component="maven", action="find", count=len(versions)),
            )
        return versions

    def _metadata_versions(self, organization: str, name: str) -> List[str]:
        versions: List[str] = []
        for repository in self.repositories:
            url = metadata_url(repository, organization, name)
            with Timer() as timer:
                _, text = get_text(url, context="maven", timeout=self.timeout)
            if text is None:
                continue
            try:
                versions.extend(parse_metadata_versions(text))
            except ET.ParseError:
                logger.warning(
                    "Ignoring unparsable Maven metadata for %s:%s",
                    organization,
                    name,
                    extra=extra_context(event="anomaly", component="maven", outcome="parse_error", url=url),
                )
                continue
            if is_debug_enabled(logger):
                logger.debug(
                    "Maven metadata fetched",
                    extra=extra_context(
                        event="http_response", component="maven", duration_ms=timer.duration_ms(), url=url
                    ),
                )
        return versions

    def _ivy_plugin_versions(self, organization: str, name: str) -> List[str]:
        if not self.plugin_repository:
            return []
        url = (
            f"{self.plugin_repository.rstrip('/')}/{organization}/{name}/"
            f"scala_{Constants.SBT_PLUGIN_SCALA_VERSION}/sbt_{Constants.SBT_PLUGIN_SBT_VERSION}/"
        )
        _, text = get_text(url, context="maven", timeout=self.timeout)
        if text is None:
            return []
        return parse_directory_listing(text)
