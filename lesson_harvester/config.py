"""
Settings, DOM selectors and duration parsing.
"""
import re
from dataclasses import dataclass
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings

_DURATION_PART = re.compile(r'(\d+(?:\.\d+)?)(ms|s|m|h)')
_DURATION_UNITS = {'ms': 0.001, 's': 1, 'm': 60, 'h': 3600}


def parse_duration(value) -> float:
    """Parse a Go-style duration ("90s", "1m", "1h30m", "250ms") or bare seconds into seconds."""
    if isinstance(value, (int, float)):
        seconds = float(value)
    else:
        text = str(value).strip().lower()
        if not text:
            raise ValueError("empty duration")
        try:
            seconds = float(text)
        except ValueError:
            pos = 0
            seconds = 0.0
            for m in _DURATION_PART.finditer(text):
                if m.start() != pos:
                    raise ValueError(f"invalid duration: {value!r}")
                seconds += float(m.group(1)) * _DURATION_UNITS[m.group(2)]
                pos = m.end()
            if pos == 0 or pos != len(text):
                raise ValueError(f"invalid duration: {value!r}")
    if seconds < 0:
        raise ValueError(f"negative duration: {value!r}")
    return seconds


# Settings loader using pydantic
class Settings(BaseSettings):
    SSO_URL: Optional[str] = None
    COURSE_URL: Optional[str] = None
    DOWNLOAD_TRANSCRIPTS: bool = False
    DOWNLOAD_VIDEOS: bool = False
    SAVE_JSON: bool = False
    TIMEOUT: float = 3600.0
    BACKOFF: float = 60.0
    MAX_RETRY: int = 6
    OUTPUT_DIR: str = "."
    HEADLESS: bool = False
    PAGE_LOAD_TIMEOUT: int = 60000
    SSO_TIMEOUT: int = 600000
    DOM_WAIT_TIMEOUT: int = 30000
    TOC_SETTLE: float = 1.0
    TRANSCRIPT_SETTLE: float = 2.0
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

    @field_validator('TIMEOUT', 'BACKOFF', 'TOC_SETTLE', 'TRANSCRIPT_SETTLE', mode='before')
    @classmethod
    def _duration(cls, v):
        return parse_duration(v)

    @field_validator('MAX_RETRY')
    @classmethod
    def _positive_retry(cls, v: int) -> int:
        if v < 1:
            raise ValueError("MAX_RETRY must be at least 1")
        return v


@dataclass(frozen=True)
class Selectors:
    """CSS selectors of the learning platform's pages."""
    # Element that only appears once the SSO flow has landed on the platform
    logged_in: str = 'h3.chatbot-banner-dynamic__subheading-two'

    # Course table of contents
    section: str = 'section.classroom-toc-section'
    section_title: str = '.classroom-toc-section__toggle-title'
    lesson_item: str = 'li.classroom-toc-item'
    lesson_link: str = 'a.classroom-toc-item__link'
    lesson_title: str = '.classroom-toc-item__title'

    # Lesson page
    rate_limited: str = '.error-body'
    transcript_button: str = 'button[id*="TRANSCRIPT"]'
    transcript_line: str = '.content-transcript-line'
    video: str = 'video.vjs-tech'
