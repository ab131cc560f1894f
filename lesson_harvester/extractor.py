"""
Course structure extraction: turns the course table of contents into an
ordered list of LessonEntry.
"""
import asyncio
import json
import logging
from typing import Awaitable, Callable, Optional
from urllib.parse import urlsplit, urlunsplit

from lesson_harvester.config import Selectors
from lesson_harvester.errors import ExtractionError, SessionError
from lesson_harvester.models import LessonEntry
from lesson_harvester.session import BrowserSession

log = logging.getLogger(__name__)

DURATION_UNIT = "video"


def toc_script(sel: Selectors) -> str:
    """In-page script returning the raw table of contents.

    Shape: [{section, items: [{href, title, labels}]}], with href and title
    null when the item has no link or no title text.
    """
    return """(() => {
    const sel = %s;
    return Array.from(document.querySelectorAll(sel.section)).map(section => ({
        section: section.querySelector(sel.sectionTitle)?.innerText.trim() ?? "",
        items: Array.from(section.querySelectorAll(sel.item)).map(item => {
            const link = item.querySelector(sel.link);
            const titleEl = item.querySelector(sel.title);
            const titleNode = titleEl
                ? Array.from(titleEl.childNodes).find(n => n.nodeType === Node.TEXT_NODE && n.textContent.trim())
                : null;
            return {
                href: link ? link.href : null,
                title: titleNode ? titleNode.textContent.trim() : null,
                labels: Array.from(item.querySelectorAll("span")).map(el => el.innerText.trim()),
            };
        }),
    }));
})()""" % json.dumps({
        'section': sel.section,
        'sectionTitle': sel.section_title,
        'item': sel.lesson_item,
        'link': sel.lesson_link,
        'title': sel.lesson_title,
    })


def normalize_link(href: str) -> str:
    """Drop the query string and re-serialize an absolute http(s) URL."""
    try:
        parts = urlsplit(href.strip())
    except ValueError as e:
        raise ExtractionError(f"bad url {href!r}: {e}") from e
    if parts.scheme not in ('http', 'https') or not parts.netloc:
        raise ExtractionError(f"bad url {href!r}: not an absolute http(s) URL")
    return urlunsplit((parts.scheme, parts.netloc, parts.path, '', parts.fragment))


def parse_duration_label(labels: list[str]) -> str:
    """Find the "<n>m <n>s video" label and strip the unit word: "5m 23s video" -> "5m23s"."""
    for label in labels:
        text = (label or "").strip()
        if text.lower().endswith(DURATION_UNIT):
            return "".join(text.split(" ")[:-1])
    return ""


def build_entries(raw_sections) -> list[LessonEntry]:
    """Build LessonEntry objects from the raw table of contents.

    Items without a link are dropped and do not consume an index.
    """
    if not isinstance(raw_sections, list):
        raise ExtractionError(f"unexpected table of contents payload: {type(raw_sections).__name__}")

    lessons = []
    for raw in raw_sections:
        if not isinstance(raw, dict):
            raise ExtractionError(f"unexpected section payload: {raw!r}")
        section_title = raw.get('section') or ""
        index = 0
        for item in raw.get('items') or []:
            if not isinstance(item, dict):
                raise ExtractionError(f"unexpected lesson payload in section {section_title!r}: {item!r}")
            href = item.get('href')
            if not href:
                log.debug(f"Skipping item without link in section {section_title!r}: {item.get('title')!r}")
                continue
            index += 1
            lessons.append(LessonEntry(
                link=normalize_link(href),
                section_title=section_title,
                section_index=index,
                title=item.get('title'),
                duration=parse_duration_label(item.get('labels') or []),
            ))
    return lessons


class CourseExtractor:
    def __init__(
        self,
        session: BrowserSession,
        selectors: Selectors = Selectors(),
        settle: float = 1.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        logger: Optional[logging.Logger] = None,
    ):
        self.session = session
        self.selectors = selectors
        self.settle = settle
        self.sleep = sleep
        self.logger = logger or log

    async def extract(self, course_url: str) -> list[LessonEntry]:
        """Load the course page and return its lessons in document order."""
        self.logger.info("Parsing course structure...")
        try:
            await self.session.navigate(course_url)
            await self.session.wait_visible(self.selectors.section)
            await self.sleep(self.settle)
            raw = await self.session.evaluate(toc_script(self.selectors))
        except SessionError as e:
            raise ExtractionError(f"failed to read course page {course_url}: {e}") from e
        return build_entries(raw)
