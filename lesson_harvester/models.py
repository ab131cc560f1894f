"""
Data model shared by the extractor, navigator, fetchers and orchestrator.
"""
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel

from lesson_harvester.sanitize import sanitize_filename


class TraversalOutcome(str, Enum):
    READY = "ready"
    RATE_LIMITED = "rate limited"
    NAVIGATION_FAILED = "navigation failed"
    NO_ARTIFACT_AVAILABLE = "no artifact available"
    EXHAUSTED = "retries exhausted"
    # Report-only outcomes
    FETCH_FAILED = "fetch failed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class LessonEntry:
    """One lesson of the course table of contents."""
    # Absolute URL with the query string removed
    link: str
    section_title: str
    section_index: int
    title: Optional[str] = None
    duration: str = ""

    @property
    def output_stem(self) -> str:
        """Base name shared by every artifact of this lesson."""
        return sanitize_filename(f"{self.section_title}.{self.section_index:02d}.{self.title or ''}")


def count_sections(lessons: list[LessonEntry]) -> int:
    return len({lesson.section_title for lesson in lessons})


class TranscriptRecord(BaseModel):
    href: str
    section: str
    title: str
    index: int
    duration: str
    transcript: Optional[str] = None

    @classmethod
    def from_lesson(cls, lesson: LessonEntry, transcript: str) -> "TranscriptRecord":
        return cls(
            href=lesson.link,
            section=lesson.section_title,
            title=lesson.title or "",
            index=lesson.section_index,
            duration=lesson.duration,
            transcript=transcript or None,
        )

    def to_json(self) -> str:
        return self.model_dump_json(exclude_none=True) + "\n"

    def to_text(self) -> str:
        return (
            f"URL: {self.href}\n"
            f"Section: {self.section}\n"
            f"Title: {self.title}\n"
            f"Index: {self.index}\n"
            f"Duration: {self.duration}\n"
            f"Transcript:\n{self.transcript or ''}\n"
        )


@dataclass
class LessonReport:
    lesson: LessonEntry
    outcome: TraversalOutcome
    saved: list[Path] = field(default_factory=list)
    reason: str = ""


@dataclass
class TraversalReport:
    lessons: list[LessonReport] = field(default_factory=list)
    total: int = 0
    timed_out: bool = False

    def count(self, outcome: TraversalOutcome) -> int:
        return sum(1 for r in self.lessons if r.outcome is outcome)

    @property
    def saved_files(self) -> list[Path]:
        return [path for r in self.lessons for path in r.saved]
