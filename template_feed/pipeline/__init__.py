"""
Normalization pipeline: raw scraped records in, ProjectTemplate out.
"""
from template_feed.pipeline.parser import TemplateParser
from template_feed.pipeline.fallbacks import FALLBACK_TEMPLATES

__all__ = ["TemplateParser", "FALLBACK_TEMPLATES"]
