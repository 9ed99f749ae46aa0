"""
Template feed: resilient aggregation of project template recommendations.

Templates are scraped from several public sources, normalized into one
schema, cached, and served with circuit breaking, retries, request
coalescing, and a static fallback dataset.
"""
from template_feed.models import ProjectTemplate, LearningResource, RawTemplate
from template_feed.orchestrator import TemplateOrchestrator, FetchOptions

__version__ = "0.1.0"

__all__ = [
    "ProjectTemplate",
    "LearningResource",
    "RawTemplate",
    "TemplateOrchestrator",
    "FetchOptions",
]
