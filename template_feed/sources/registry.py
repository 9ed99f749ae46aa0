"""
Source registry: adapters by name.
"""
import logging
from typing import Dict, List, Optional

from template_feed.core.net import DEFAULT_TIMEOUT, HTTPClient
from template_feed.pipeline.parser import TemplateParser
from template_feed.sources.base import SourceAdapter
from template_feed.sources.devto import DevToSource
from template_feed.sources.freecodecamp import FreeCodeCampSource
from template_feed.sources.github_trending import GitHubTrendingSource
from template_feed.sources.roadmap import RoadmapSource

logger = logging.getLogger(__name__)

DEFAULT_SOURCE_CLASSES = [GitHubTrendingSource, DevToSource, FreeCodeCampSource, RoadmapSource]


class SourceRegistry:
    """Registry of source adapters, in registration order"""

    def __init__(self, sources: Optional[List[SourceAdapter]] = None):
        self._sources: Dict[str, SourceAdapter] = {}
        for source in sources or []:
            self.register(source)

    def register(self, source: SourceAdapter):
        if source.name in self._sources:
            logger.warning(f"[registry] Replacing source adapter: {source.name}")
        self._sources[source.name] = source
        logger.debug(f"[registry] Registered source: {source.name}")

    def get(self, name: str) -> Optional[SourceAdapter]:
        return self._sources.get(name)

    def names(self) -> List[str]:
        return list(self._sources)

    def all(self) -> List[SourceAdapter]:
        return list(self._sources.values())

    def __contains__(self, name: str) -> bool:
        return name in self._sources

    def __len__(self) -> int:
        return len(self._sources)


def build_default_registry(
    http_client: HTTPClient,
    parser: Optional[TemplateParser] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> SourceRegistry:
    """Create the four built-in adapters sharing one HTTP client and parser"""
    parser = parser or TemplateParser()
    return SourceRegistry([cls(http_client, parser=parser, timeout=timeout) for cls in DEFAULT_SOURCE_CLASSES])
