"""
Error taxonomy.

Only FatalSetupError subclasses end the run; every other error is recovered
per lesson by the orchestrator and reported through logging.
"""
from typing import Optional


class HarvestError(Exception):
    """Base class for all harvester errors."""


class FatalSetupError(HarvestError):
    """Bad arguments, failed login or unreadable course page. Aborts the run."""


class AuthenticationError(FatalSetupError):
    pass


class ExtractionError(FatalSetupError):
    pass


class SessionError(HarvestError):
    """A browser capability (navigate, evaluate, wait, click...) failed."""


class TransientNavigationError(HarvestError):
    """Navigation fault or rate limiting. Retried with backoff."""


class NavigationExhausted(TransientNavigationError):
    def __init__(self, link: str, attempts: int, last_outcome, cause: Optional[BaseException] = None):
        self.link = link
        self.attempts = attempts
        self.last_outcome = last_outcome
        self.cause = cause
        reason = f"{last_outcome.value}" if cause is None else f"{last_outcome.value}: {cause}"
        super().__init__(f"navigation failed after {attempts} attempt(s) ({reason}): {link}")


class StructuralUnavailable(HarvestError):
    """The lesson page loaded but carries no artifact. Never retried."""

    def __init__(self, link: str, marker: str):
        self.link = link
        self.marker = marker
        super().__init__(f"no artifact available (missing {marker!r}): {link}")


class ArtifactFetchError(HarvestError):
    """DOM timeout, empty video source, bad HTTP status or write failure."""
