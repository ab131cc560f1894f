"""
Artifact fetchers. Each one works on a lesson page the navigator has already
reached, and writes one artifact next to the others under the lesson's output stem.
"""
import asyncio
import json
import logging
from pathlib import Path
from typing import Awaitable, Callable, Optional
from urllib.parse import urljoin

import httpx

from lesson_harvester.config import Selectors
from lesson_harvester.errors import ArtifactFetchError, SessionError
from lesson_harvester.models import LessonEntry, TranscriptRecord
from lesson_harvester.session import BrowserSession

log = logging.getLogger(__name__)

CHUNK_SIZE = 1 << 16


def lines_script(selector: str) -> str:
    return f"Array.from(document.querySelectorAll({json.dumps(selector)})).map(x => x.textContent.trim())"


class TranscriptFetcher:
    """Opens the transcript panel, reads every line and saves it as .txt or .json."""

    name = "transcript"

    def __init__(
        self,
        output_dir: Path,
        save_json: bool = False,
        selectors: Selectors = Selectors(),
        settle: float = 2.0,
        wait_timeout: Optional[int] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        logger: Optional[logging.Logger] = None,
    ):
        self.output_dir = Path(output_dir)
        self.save_json = save_json
        self.selectors = selectors
        self.settle = settle
        self.wait_timeout = wait_timeout
        self.sleep = sleep
        self.logger = logger or log

    def target(self, lesson: LessonEntry) -> Path:
        ext = ".json" if self.save_json else ".txt"
        return self.output_dir / f"{lesson.output_stem}{ext}"

    async def fetch(self, session: BrowserSession, lesson: LessonEntry) -> TranscriptRecord:
        button = self.selectors.transcript_button
        try:
            await session.scroll_into_view(button)
            await session.click(button)
            await self.sleep(self.settle)
            await session.wait_visible(self.selectors.transcript_line, self.wait_timeout)
            lines = await session.evaluate(lines_script(self.selectors.transcript_line))
        except SessionError as e:
            raise ArtifactFetchError(f"failed to scrape transcript of {lesson.link}: {e}") from e

        record = TranscriptRecord.from_lesson(lesson, "\n".join(lines or []))
        path = self.target(lesson)
        try:
            path.write_text(record.to_json() if self.save_json else record.to_text(), encoding='utf-8')
        except OSError as e:
            raise ArtifactFetchError(f"failed to write transcript {path}: {e}") from e

        self.logger.info(f"Transcript saved: {path}")
        return record


class VideoFetcher:
    """Reads the player's source URL and streams the video to disk."""

    name = "video"

    def __init__(
        self,
        client: httpx.AsyncClient,
        output_dir: Path,
        selectors: Selectors = Selectors(),
        wait_timeout: Optional[int] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.client = client
        self.output_dir = Path(output_dir)
        self.selectors = selectors
        self.wait_timeout = wait_timeout
        self.logger = logger or log

    def target(self, lesson: LessonEntry) -> Path:
        return self.output_dir / f"{lesson.output_stem}.mp4"

    async def fetch(self, session: BrowserSession, lesson: LessonEntry) -> Path:
        try:
            await session.wait_visible(self.selectors.video, self.wait_timeout)
            video_url = await session.read_attribute(self.selectors.video, 'src')
        except SessionError as e:
            raise ArtifactFetchError(f"failed to find video on {lesson.link}: {e}") from e
        if not video_url:
            raise ArtifactFetchError(f"empty video URL found on {lesson.link}")
        # The attribute is the raw src, which may be relative to the lesson page.
        video_url = urljoin(lesson.link, video_url)

        path = self.target(lesson)
        opened = False
        completed = False
        written = 0
        try:
            async with self.client.stream('GET', video_url) as resp:
                if resp.status_code != httpx.codes.OK:
                    raise ArtifactFetchError(
                        f"server returned status {resp.status_code} {resp.reason_phrase} for video of {lesson.link}"
                    )
                with path.open('wb') as f:
                    opened = True
                    async for chunk in resp.aiter_bytes(CHUNK_SIZE):
                        f.write(chunk)
                        written += len(chunk)
            completed = True
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise ArtifactFetchError(f"failed to download video of {lesson.link}: {e}") from e
        except OSError as e:
            raise ArtifactFetchError(f"failed to save video {path}: {e}") from e
        finally:
            # Also runs on cancellation at the global deadline.
            if opened and not completed:
                path.unlink(missing_ok=True)
                self.logger.warning(f"Removed partial video {path} ({written} bytes)")

        self.logger.info(f"Video saved: {path} ({written} bytes)")
        return path
