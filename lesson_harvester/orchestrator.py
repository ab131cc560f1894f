"""
Traversal orchestration: login, course extraction, then every lesson in order.
"""
import asyncio
import logging
from pathlib import Path
from typing import Awaitable, Callable, Optional, Protocol

import httpx
from playwright.async_api import Error as PlaywrightError, async_playwright

from lesson_harvester.config import Selectors, Settings
from lesson_harvester.errors import (
    ArtifactFetchError,
    AuthenticationError,
    FatalSetupError,
    NavigationExhausted,
    SessionError,
    StructuralUnavailable,
)
from lesson_harvester.extractor import CourseExtractor
from lesson_harvester.fetchers import TranscriptFetcher, VideoFetcher
from lesson_harvester.models import (
    LessonEntry,
    LessonReport,
    TraversalOutcome,
    TraversalReport,
    count_sections,
)
from lesson_harvester.navigator import Navigator
from lesson_harvester.session import BrowserSession, PlaywrightSession

log = logging.getLogger(__name__)


class Fetcher(Protocol):
    name: str

    def target(self, lesson: LessonEntry) -> Path: ...

    async def fetch(self, session: BrowserSession, lesson: LessonEntry): ...


class Orchestrator:
    """
    Drives one browser session through the whole course.

    Login and extraction failures are fatal. Everything that goes wrong with a
    single lesson is logged and the traversal moves on to the next lesson.
    """

    def __init__(
        self,
        session: BrowserSession,
        extractor: CourseExtractor,
        navigator: Navigator,
        fetchers: list[Fetcher],
        sso_url: str,
        course_url: str,
        timeout: float,
        sso_timeout: Optional[int] = None,
        selectors: Selectors = Selectors(),
        logger: Optional[logging.Logger] = None,
    ):
        self.session = session
        self.extractor = extractor
        self.navigator = navigator
        self.fetchers = fetchers
        self.sso_url = sso_url
        self.course_url = course_url
        self.timeout = timeout
        self.sso_timeout = sso_timeout
        self.selectors = selectors
        self.logger = logger or log

    async def authenticate(self) -> None:
        """Open the SSO page and wait until the platform shows the logged-in marker."""
        self.logger.info("Logging in via SSO...")
        try:
            await self.session.navigate(self.sso_url)
            await self.session.wait_visible(self.selectors.logged_in, self.sso_timeout)
        except SessionError as e:
            raise AuthenticationError(f"SSO login failed: {e}") from e
        self.logger.info("Logged in.")

    async def process(self, lesson: LessonEntry) -> LessonReport:
        try:
            await self.navigator.reach(lesson)
        except StructuralUnavailable as e:
            self.logger.warning(f"Skipping lesson: {e}")
            return LessonReport(lesson, TraversalOutcome.NO_ARTIFACT_AVAILABLE, reason=str(e))
        except NavigationExhausted as e:
            self.logger.warning(f"Skipping lesson: {e}")
            return LessonReport(lesson, TraversalOutcome.EXHAUSTED, reason=str(e))

        report = LessonReport(lesson, TraversalOutcome.READY)
        for fetcher in self.fetchers:
            try:
                await fetcher.fetch(self.session, lesson)
            except ArtifactFetchError as e:
                self.logger.warning(f"{fetcher.name} failed: {e} -> skipping lesson.")
                report.outcome = TraversalOutcome.FETCH_FAILED
                report.reason = f"{fetcher.name}: {e}"
                break
            report.saved.append(fetcher.target(lesson))
        return report

    async def run(self) -> TraversalReport:
        report = TraversalReport()
        lessons = None
        try:
            async with asyncio.timeout(self.timeout):
                await self.authenticate()
                lessons = await self.extractor.extract(self.course_url)
                report.total = len(lessons)
                self.logger.info(f"Found {len(lessons)} lesson(s) across {count_sections(lessons)} section(s)")

                for i, lesson in enumerate(lessons, 1):
                    self.logger.info(f"[{i}/{len(lessons)}] {lesson.section_title}: {lesson.title}")
                    report.lessons.append(await self.process(lesson))
        except TimeoutError as e:
            if lessons is None:
                raise FatalSetupError(
                    f"global timeout of {self.timeout:g}s elapsed before the course was read"
                ) from e
            remaining = lessons[len(report.lessons):]
            for lesson in remaining:
                report.lessons.append(LessonReport(lesson, TraversalOutcome.SKIPPED, reason="global timeout"))
            report.timed_out = True
            self.logger.error(
                f"Global timeout of {self.timeout:g}s elapsed; skipped {len(remaining)} remaining lesson(s)"
            )

        self.log_summary(report)
        return report

    def log_summary(self, report: TraversalReport) -> None:
        ready = report.count(TraversalOutcome.READY)
        self.logger.info(
            f"Done: {ready}/{report.total} lesson(s) complete, {len(report.saved_files)} file(s) saved"
        )
        for r in report.lessons:
            if r.outcome is not TraversalOutcome.READY:
                self.logger.info(f"  {r.outcome.value}: {r.lesson.link}")


def build_orchestrator(
    session: BrowserSession,
    client: httpx.AsyncClient,
    settings: Settings,
    selectors: Selectors = Selectors(),
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    logger: Optional[logging.Logger] = None,
) -> Orchestrator:
    """Wire extractor, navigator and the requested fetchers from settings."""
    output_dir = Path(settings.OUTPUT_DIR)
    fetchers = []
    if settings.DOWNLOAD_TRANSCRIPTS:
        fetchers.append(TranscriptFetcher(
            output_dir,
            save_json=settings.SAVE_JSON,
            selectors=selectors,
            settle=settings.TRANSCRIPT_SETTLE,
            wait_timeout=settings.DOM_WAIT_TIMEOUT,
            sleep=sleep,
            logger=logger,
        ))
    if settings.DOWNLOAD_VIDEOS:
        fetchers.append(VideoFetcher(
            client,
            output_dir,
            selectors=selectors,
            wait_timeout=settings.DOM_WAIT_TIMEOUT,
            logger=logger,
        ))
    if not fetchers:
        raise FatalSetupError("nothing to download: enable transcripts and/or videos")

    # A lesson counts as available when it has the first artifact we are after.
    availability = selectors.transcript_button if settings.DOWNLOAD_TRANSCRIPTS else selectors.video

    return Orchestrator(
        session,
        CourseExtractor(session, selectors, settle=settings.TOC_SETTLE, sleep=sleep, logger=logger),
        Navigator(
            session,
            backoff=settings.BACKOFF,
            max_attempts=settings.MAX_RETRY,
            selectors=selectors,
            availability_selector=availability,
            sleep=sleep,
            logger=logger,
        ),
        fetchers,
        sso_url=settings.SSO_URL,
        course_url=settings.COURSE_URL,
        timeout=settings.TIMEOUT,
        sso_timeout=settings.SSO_TIMEOUT,
        selectors=selectors,
        logger=logger,
    )


async def harvest(settings: Settings, logger: Optional[logging.Logger] = None) -> TraversalReport:
    """Launch the browser, run the traversal and always close the browser."""
    out = logger or log
    if not settings.SSO_URL or not settings.COURSE_URL:
        raise FatalSetupError("both an SSO URL and a course URL are required")
    output_dir = Path(settings.OUTPUT_DIR)
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise FatalSetupError(f"could not create output directory {output_dir}: {e}") from e

    async with async_playwright() as p:
        try:
            browser = await p.chromium.launch(headless=settings.HEADLESS, args=['--start-maximized'])
        except PlaywrightError as e:
            raise FatalSetupError(f"could not launch browser: {e}") from e
        try:
            try:
                context = await browser.new_context(no_viewport=True)
                page = await context.new_page()
            except PlaywrightError as e:
                raise FatalSetupError(f"could not open browser page: {e}") from e
            session = PlaywrightSession(page, settings.PAGE_LOAD_TIMEOUT, settings.DOM_WAIT_TIMEOUT)
            async with httpx.AsyncClient(follow_redirects=True, timeout=httpx.Timeout(60.0, connect=30.0)) as client:
                orchestrator = build_orchestrator(session, client, settings, logger=logger)
                return await orchestrator.run()
        finally:
            try:
                await browser.close()
            except Exception as e:
                out.warning(f"Error while closing browser: {e}")
