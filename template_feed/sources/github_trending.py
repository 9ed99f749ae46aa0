"""
GitHub Trending repositories.
"""
import re
from typing import Iterable, Optional

from bs4 import BeautifulSoup, Tag

from template_feed.models import RawTemplate
from template_feed.sources.base import SourceAdapter

STARS_TODAY_RE = re.compile(r"(\d+(?:,\d+)*)\s*stars?\s*today", re.IGNORECASE)


class GitHubTrendingSource(SourceAdapter):
    name = "github-trending"
    url = "https://github.com/trending"

    def select_blocks(self, soup: BeautifulSoup) -> Iterable[Tag]:
        return soup.select("article.Box-row")

    def extract_block(self, block: Tag) -> Optional[RawTemplate]:
        link = block.select_one("h2 a[href]")
        if link is None:
            return None

        repo_path = link.get("href", "").strip().strip("/")
        repo_name = repo_path.split("/")[-1] if repo_path else ""
        if not repo_name:
            return None

        description = self.text_of(block.select_one("p.col-9"))
        language = self.text_of(block.select_one("[itemprop=programmingLanguage]"))

        stars = 0
        stars_match = STARS_TODAY_RE.search(block.get_text(" ", strip=True))
        if stars_match:
            stars = int(stars_match.group(1).replace(",", ""))

        fallback = f"Trending {language} repository" if language else "Trending repository"
        return {
            "title": repo_name,
            "name": repo_name,
            "description": description or fallback,
            "language": language,
            "languages": [language] if language else [],
            "tags": [language] if language else [],
            "stars": stars,
            "url": f"https://github.com/{repo_path}",
        }
