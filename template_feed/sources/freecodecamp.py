"""
FreeCodeCamp news articles tagged "projects".
"""
from typing import Iterable, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from template_feed.models import RawTemplate
from template_feed.sources.base import SourceAdapter


class FreeCodeCampSource(SourceAdapter):
    name = "freecodecamp"
    url = "https://www.freecodecamp.org/news/tag/projects/"

    def select_blocks(self, soup: BeautifulSoup) -> Iterable[Tag]:
        return soup.select("article.post-card")

    def extract_block(self, block: Tag) -> Optional[RawTemplate]:
        title = self.text_of(block.select_one(".post-card-title"))
        if not title:
            return None

        url = None
        link = block.select_one("a.post-card-content-link[href]")
        if link is not None:
            url = urljoin(self.url, link["href"].strip())

        tags = [self.text_of(tag) for tag in block.select("span.post-card-tag")]
        tags = [tag for tag in tags if tag and tag.lower() != "projects"]
        description = self.text_of(block.select_one(".post-card-excerpt"))

        return {
            "title": title,
            "name": title,
            "description": description or f"FreeCodeCamp project tutorial: {title}",
            "tags": tags,
            "languages": tags,
            "url": url,
        }
