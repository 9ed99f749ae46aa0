"""
Template source adapters.
"""
from template_feed.sources.base import SourceAdapter
from template_feed.sources.registry import SourceRegistry, build_default_registry
from template_feed.sources.github_trending import GitHubTrendingSource
from template_feed.sources.devto import DevToSource
from template_feed.sources.freecodecamp import FreeCodeCampSource
from template_feed.sources.roadmap import RoadmapSource

__all__ = [
    "SourceAdapter",
    "SourceRegistry",
    "build_default_registry",
    "GitHubTrendingSource",
    "DevToSource",
    "FreeCodeCampSource",
    "RoadmapSource",
]
