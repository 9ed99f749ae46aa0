"""
Dev.to tutorial listing.

Only articles that look like buildable projects are kept.
"""
from typing import Iterable, List, Optional

from bs4 import BeautifulSoup, Tag

from template_feed.models import RawTemplate
from template_feed.sources.base import SourceAdapter

PROJECT_KEYWORDS = [
    "project", "build", "create", "tutorial", "guide",
    "app", "application", "develop", "coding", "programming",
]


def is_project_related(title: str, description: str, tags: List[str]) -> bool:
    content = f"{title} {description} {' '.join(tags)}".lower()
    return any(keyword in content for keyword in PROJECT_KEYWORDS)


class DevToSource(SourceAdapter):
    name = "devto"
    url = "https://dev.to/t/tutorial"
    base_url = "https://dev.to"

    def select_blocks(self, soup: BeautifulSoup) -> Iterable[Tag]:
        return soup.select("article.crayons-story")

    def extract_block(self, block: Tag) -> Optional[RawTemplate]:
        title = self.text_of(block.select_one("h2.crayons-story__title a"))
        if not title:
            return None

        url = None
        nav_link = block.select_one("a.crayons-story__hidden-navigation-link[href]")
        if nav_link is not None:
            href = nav_link["href"].strip()
            url = href if href.startswith("http") else f"{self.base_url}{href}"

        tags = [self.text_of(tag).lstrip("#").strip() for tag in block.select("a.crayons-tag")]
        tags = [tag for tag in tags if tag]
        description = self.text_of(block.select_one(".crayons-story__snippet"))

        if not is_project_related(title, description, tags):
            return None

        return {
            "title": title,
            "name": title,
            "description": description or f"Tutorial: {title}",
            "tags": tags,
            "languages": tags,
            "url": url,
        }
