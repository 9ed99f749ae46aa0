"""
Roadmap.sh project ideas.

Cards carry a difficulty badge, which is passed through so the parser does
not need to infer it.
"""
from typing import Iterable, Optional

from bs4 import BeautifulSoup, Tag

from template_feed.models import RawTemplate
from template_feed.sources.base import SourceAdapter

DIFFICULTY_WORDS = ("beginner", "intermediate", "advanced")


class RoadmapSource(SourceAdapter):
    name = "roadmap"
    url = "https://roadmap.sh/projects"

    def select_blocks(self, soup: BeautifulSoup) -> Iterable[Tag]:
        return soup.select('a.group[href^="/projects/"]')

    def extract_block(self, block: Tag) -> Optional[RawTemplate]:
        slug = block.get("href", "")[len("/projects/"):].strip("/")
        title = self.text_of(block.select_one("h3.text-lg"))
        if not slug or not title:
            return None

        description = self.text_of(block.select_one("p.text-sm"))
        difficulty = self.text_of(block.select_one("span.rounded-full")).lower()

        tags = []
        for span in block.select("span.inline-flex"):
            tag = self.text_of(span)
            if tag and not any(word in tag.lower() for word in DIFFICULTY_WORDS):
                tags.append(tag)

        return {
            "title": title,
            "name": title,
            "description": description or f"Roadmap.sh project: {title}",
            "difficulty": difficulty,
            "tags": tags,
            "languages": tags,
            "url": f"https://roadmap.sh/projects/{slug}",
        }
