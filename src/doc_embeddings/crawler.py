"""Documentation crawler — harvest a docs site into one text file per page.

The crawler reads the sidebar of a site's start page, visits every linked
page in sidebar order and saves the plain text of the page's main content
region to ``<data_dir>/<site>/<encoded-url>.txt``. That folder is what
``doc-embeddings ingest <site>`` reads.

Only server-rendered markup is seen; a site whose sidebar or content is
rendered client-side yields no links / empty pages (which are skipped).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import urljoin

import requests
from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SiteProfile:
    """Where to start and which elements to read on a documentation site."""

    name: str
    base_url: str
    start_path: str
    nav_selector: str
    content_selector: str

    @property
    def start_url(self) -> str:
        return urljoin(self.base_url, self.start_path)


SITES: dict[str, SiteProfile] = {
    "nextjs": SiteProfile(
        name="nextjs",
        base_url="https://nextjs.org",
        start_path="/docs",
        nav_selector="nav.styled-scrollbar a",
        content_selector="div.prose.prose-vercel",
    ),
    "vuejs": SiteProfile(
        name="vuejs",
        base_url="https://vuejs.org",
        start_path="/guide/introduction.html",
        nav_selector="nav#VPSidebarNav div.group a",
        content_selector="div.vt-doc div",
    ),
}


def encode_url_filename(url: str) -> str:
    """``https://nextjs.org/docs/app`` → ``nextjsorg_docs_app``."""
    return url.replace("https://", "", 1).replace("/", "_").replace(".", "")


class DocsCrawler:
    """Crawl one :class:`SiteProfile` into a folder of text files.

    Parameters
    ----------
    profile:
        Site to crawl.
    data_dir:
        Root data folder; pages land in ``data_dir / profile.name``.
    session:
        Optional ``requests.Session`` (tests inject a mock).
    timeout:
        Per-request timeout in seconds.
    """

    def __init__(
        self,
        profile: SiteProfile,
        data_dir: str | Path = "data",
        session: requests.Session | None = None,
        timeout: int = 60,
    ) -> None:
        self.profile = profile
        self.output_dir = Path(data_dir) / profile.name
        self.session = session or requests.Session()
        self.timeout = timeout

    def _soup(self, url: str) -> BeautifulSoup:
        resp = self.session.get(url, timeout=self.timeout)
        resp.raise_for_status()
        return BeautifulSoup(resp.text, "html.parser")

    def page_urls(self) -> list[str]:
        """Absolute URLs of the sidebar links, in sidebar order."""
        soup = self._soup(self.profile.start_url)
        nav_links = soup.select(self.profile.nav_selector)
        if not nav_links:
            logger.warning("No navigation links matched %r on %s",
                           self.profile.nav_selector, self.profile.start_url)
        urls = []
        for link in nav_links:
            href = link.get("href")
            if href:
                urls.append(urljoin(self.profile.base_url, href))
        return urls

    def page_text(self, url: str) -> str | None:
        """Text of the content region of *url*, or ``None`` when absent/empty."""
        element = self._soup(url).select_one(self.profile.content_selector)
        if element is None:
            return None
        return element.get_text() or None

    def crawl(self) -> list[Path]:
        """Fetch every page and write its text. Returns the written files."""
        self.output_dir.mkdir(parents=True, exist_ok=True)
        written: list[Path] = []
        for url in self.page_urls():
            logger.info("Visiting %s", url)
            text = self.page_text(url)
            if not text:
                logger.info("No content on %s, skipping", url)
                continue
            path = self.output_dir / f"{encode_url_filename(url)}.txt"
            path.write_text(text, encoding="utf-8")
            written.append(path)
            logger.info("Saved %s (%d chars)", path, len(text))

        logger.info("Crawled %d pages from %s", len(written), self.profile.name)
        return written
