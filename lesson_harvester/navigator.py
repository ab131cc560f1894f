"""
Resilient lesson navigation.

The platform rate limits sessions that move too fast, and the browser drops
navigations now and then. Both are retried the same way: sleep the backoff,
navigate again, with one attempt counter shared between the two causes.
"""
import asyncio
import logging
from typing import Awaitable, Callable, Optional

from lesson_harvester.config import Selectors
from lesson_harvester.errors import NavigationExhausted, SessionError, StructuralUnavailable
from lesson_harvester.models import LessonEntry, TraversalOutcome
from lesson_harvester.session import BrowserSession, presence_script

log = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 6


class Navigator:
    def __init__(
        self,
        session: BrowserSession,
        backoff: float,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        selectors: Selectors = Selectors(),
        availability_selector: Optional[str] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        logger: Optional[logging.Logger] = None,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.session = session
        self.backoff = backoff
        self.max_attempts = max_attempts
        self.rate_limit_selector = selectors.rate_limited
        self.availability_selector = availability_selector or selectors.transcript_button
        self.sleep = sleep
        self.logger = logger or log

    async def _attempt(self, link: str) -> TraversalOutcome:
        await self.session.navigate(link)
        rate_limited = await self.session.evaluate(presence_script(self.rate_limit_selector))
        available = await self.session.evaluate(presence_script(self.availability_selector))
        if rate_limited:
            return TraversalOutcome.RATE_LIMITED
        if not available:
            return TraversalOutcome.NO_ARTIFACT_AVAILABLE
        return TraversalOutcome.READY

    async def reach(self, lesson: LessonEntry, backoff: Optional[float] = None) -> TraversalOutcome:
        """
        Navigate to the lesson until its page is ready for extraction.

        Returns:
            TraversalOutcome.READY

        Raises:
            StructuralUnavailable: page loaded but the availability marker is missing (no retry)
            NavigationExhausted: every attempt failed or was rate limited
        """
        delay = self.backoff if backoff is None else backoff
        outcome = TraversalOutcome.NAVIGATION_FAILED
        cause = None

        for attempt in range(1, self.max_attempts + 1):
            if attempt > 1:
                await self.sleep(delay)
            try:
                outcome = await self._attempt(lesson.link)
                cause = None
            except SessionError as e:
                outcome = TraversalOutcome.NAVIGATION_FAILED
                cause = e

            if outcome is TraversalOutcome.READY:
                return outcome
            if outcome is TraversalOutcome.NO_ARTIFACT_AVAILABLE:
                raise StructuralUnavailable(lesson.link, self.availability_selector)

            if attempt < self.max_attempts:
                if outcome is TraversalOutcome.RATE_LIMITED:
                    self.logger.warning(
                        f"Rate limited on {lesson.link} (attempt {attempt}/{self.max_attempts}), "
                        f"retrying in {delay:g}s"
                    )
                else:
                    self.logger.warning(
                        f"Navigation failed on {lesson.link} (attempt {attempt}/{self.max_attempts}): {cause}; "
                        f"retrying in {delay:g}s"
                    )

        self.logger.error(f"Giving up on {lesson.link} after {self.max_attempts} attempt(s): {outcome.value}")
        raise NavigationExhausted(lesson.link, self.max_attempts, outcome, cause)
