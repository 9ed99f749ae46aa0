"""
Base interface for template source adapters.
"""
import logging
from abc import ABC, abstractmethod
from typing import Iterable, List, Optional

from bs4 import BeautifulSoup, Tag

from template_feed.core.net import DEFAULT_TIMEOUT, HTTPClient
from template_feed.models import ProjectTemplate, RawTemplate
from template_feed.pipeline.parser import TemplateParser

logger = logging.getLogger(__name__)


class SourceAdapter(ABC):
    """
    Base class for source adapters.

    Each adapter owns one public page. It:
    1. Fetches the page HTML with a bounded timeout
    2. Finds the repeated listing blocks and extracts a RawTemplate from each
    3. Delegates normalization to TemplateParser

    Fetch errors propagate so the orchestrator can retry them. A block that
    fails to extract, or a record that fails to parse, is dropped on its own.
    """

    name: str = ""
    url: str = ""

    def __init__(
        self,
        http_client: HTTPClient,
        parser: Optional[TemplateParser] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        """
        Initialize adapter.

        Args:
            http_client: Shared HTTP client
            parser: Template parser (a fresh one if omitted)
            timeout: Per-request deadline in seconds
        """
        self.http = http_client
        self.parser = parser or TemplateParser()
        self.timeout = timeout
        self.logger = logging.getLogger(f"{__name__}.{self.name}")

    async def fetch(self) -> List[RawTemplate]:
        """Fetch the source page and extract raw records from it"""
        html = await self.http.get_text(self.url, source=self.name, timeout=self.timeout)
        items = self.extract(html)
        self.logger.info(f"[source:{self.name}] Extracted {len(items)} raw templates")
        return items

    def extract(self, html: str) -> List[RawTemplate]:
        soup = self.get_soup(html)
        items: List[RawTemplate] = []
        for block in self.select_blocks(soup):
            try:
                raw = self.extract_block(block)
            except Exception as e:
                self.logger.warning(f"[source:{self.name}] Skipping malformed block: {e}")
                continue
            if raw:
                raw["source"] = self.name
                items.append(raw)
        return items

    @abstractmethod
    def select_blocks(self, soup: BeautifulSoup) -> Iterable[Tag]:
        """Return the repeated listing elements of the page"""
        pass

    @abstractmethod
    def extract_block(self, block: Tag) -> Optional[RawTemplate]:
        """
        Extract one raw record from a listing element.

        Returns:
            RawTemplate, or None if the block is not a usable listing
        """
        pass

    def parse(self, raw: RawTemplate) -> Optional[ProjectTemplate]:
        return self.parser.parse(raw, self.name, apply_defaults=True)

    def get_soup(self, html: str) -> BeautifulSoup:
        """Helper to create BeautifulSoup instance"""
        return BeautifulSoup(html, "lxml")

    @staticmethod
    def text_of(element: Optional[Tag]) -> str:
        if element is None:
            return ""
        return " ".join(element.get_text(" ", strip=True).split())

    def __repr__(self):
        return f"<{self.__class__.__name__}(name={self.name}, url={self.url})>"
