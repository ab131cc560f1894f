"""
Shared pytest fixtures: a scripted in-memory browser session, settings and
lesson factories. No real browser or network is used by the test suite.
"""
import sys
from pathlib import Path

import pytest

# Add project root to path so the package imports without installation
sys.path.insert(0, str(Path(__file__).parent.parent))

from lesson_harvester.config import Selectors, Settings
from lesson_harvester.errors import SessionError
from lesson_harvester.models import LessonEntry
from lesson_harvester.session import presence_script

SELECTORS = Selectors()


class FakeSession:
    """
    BrowserSession double driven by plain data.

    - navigate_failures: queue consumed by navigate(); an exception instance is raised,
      None means success. Empty queue means success.
    - scripts: script -> value. A list wrapped in Sequence() is consumed one value per
      call, sticking to the last one. Exception instances are raised.
    - visible: selectors for which wait_visible succeeds.
    - pages: url -> {script: value, (selector, name): value} overriding `scripts`
      and `attributes` while that url is loaded.
    - attributes: (selector, name) -> value
    """

    def __init__(self):
        self.navigate_failures = []
        self.scripts = {}
        self.pages = {}
        self.visible = set()
        self.attributes = {}
        self.calls = []
        self.current_url = None

    @property
    def navigations(self):
        return [args[0] for name, args in self.calls if name == 'navigate']

    async def navigate(self, url):
        self.calls.append(('navigate', (url,)))
        if self.navigate_failures:
            failure = self.navigate_failures.pop(0)
            if failure is not None:
                raise failure
        self.current_url = url

    async def evaluate(self, script):
        self.calls.append(('evaluate', (script,)))
        scripts = {**self.scripts, **self.pages.get(self.current_url, {})}
        if script not in scripts:
            raise SessionError(f"unexpected script: {script[:60]}")
        value = scripts[script]
        if isinstance(value, Sequence):
            value = value.next()
        if isinstance(value, Exception):
            raise value
        return value

    async def wait_visible(self, selector, timeout=None):
        self.calls.append(('wait_visible', (selector, timeout)))
        if selector not in self.visible:
            raise SessionError(f"timeout waiting for {selector!r}")

    async def scroll_into_view(self, selector):
        self.calls.append(('scroll_into_view', (selector,)))
        if selector not in self.visible and presence_script(selector) not in self.scripts:
            raise SessionError(f"no element {selector!r}")

    async def click(self, selector):
        self.calls.append(('click', (selector,)))

    async def read_attribute(self, selector, name):
        self.calls.append(('read_attribute', (selector, name)))
        page_attributes = self.pages.get(self.current_url, {})
        if (selector, name) in page_attributes:
            return page_attributes[(selector, name)]
        return self.attributes.get((selector, name))


class Sequence:
    def __init__(self, *values):
        self.values = list(values)

    def next(self):
        if len(self.values) > 1:
            return self.values.pop(0)
        return self.values[0]


class SleepRecorder:
    def __init__(self):
        self.calls = []

    async def __call__(self, seconds):
        self.calls.append(seconds)


@pytest.fixture
def selectors():
    return SELECTORS


@pytest.fixture
def fake_session():
    return FakeSession()


@pytest.fixture
def sleep():
    return SleepRecorder()


@pytest.fixture
def make_lesson():
    def _make(section="Introduction", index=1, title="Welcome", link=None, duration="3m12s"):
        return LessonEntry(
            link=link or f"https://www.linkedin.com/learning/course/{title.lower().replace(' ', '-')}",
            section_title=section,
            section_index=index,
            title=title,
            duration=duration,
        )
    return _make


@pytest.fixture
def settings(tmp_path):
    """Settings isolated from the environment and any local .env file."""
    return Settings(
        _env_file=None,
        SSO_URL="https://sso.example.com/start",
        COURSE_URL="https://www.linkedin.com/learning/python-essentials",
        DOWNLOAD_TRANSCRIPTS=True,
        DOWNLOAD_VIDEOS=False,
        TIMEOUT=30,
        BACKOFF=60,
        OUTPUT_DIR=str(tmp_path),
    )
