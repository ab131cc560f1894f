"""
Unit tests for file name sanitization and output stems.
"""
import re

import pytest

from lesson_harvester.models import LessonEntry
from lesson_harvester.sanitize import sanitize_filename

SAFE = re.compile(r'^[A-Za-z0-9._-]*$')

SAMPLES = [
    "",
    "   ",
    "Welcome",
    "Python Essentials | LinkedIn Learning",
    "  Chapter 1: Getting started  ",
    "Ünïcode & spaces // slashes",
    "already_safe-name.01.txt",
    "a|b|c",
    "__double__",
    "tabs\tand\nnewlines",
]


@pytest.mark.unit
@pytest.mark.parametrize("text", SAMPLES)
def test_sanitize_is_idempotent(text):
    once = sanitize_filename(text)
    assert sanitize_filename(once) == once


@pytest.mark.unit
@pytest.mark.parametrize("text", SAMPLES)
def test_sanitize_only_emits_safe_characters(text):
    assert SAFE.match(sanitize_filename(text))


@pytest.mark.unit
def test_sanitize_strips_branding_and_whitespace():
    assert sanitize_filename("  Python Essentials | LinkedIn Learning ") == "Python_Essentials"


@pytest.mark.unit
def test_sanitize_collapses_runs_into_single_underscore():
    assert sanitize_filename("Chapter 1: Getting started") == "Chapter_1_Getting_started"
    assert sanitize_filename("a  /\\  b") == "a_b"


@pytest.mark.unit
def test_sanitize_empty_string():
    assert sanitize_filename("") == ""


@pytest.mark.unit
def test_sanitize_keeps_underscores_already_present():
    assert sanitize_filename("__double__") == "__double__"


@pytest.mark.unit
def test_output_stem_uses_section_padded_index_and_title():
    lesson = LessonEntry(
        link="https://www.linkedin.com/learning/course/welcome",
        section_title="1. Getting Started",
        section_index=3,
        title="What you should know",
    )
    assert lesson.output_stem == "1._Getting_Started.03.What_you_should_know"


@pytest.mark.unit
def test_output_stem_without_title():
    lesson = LessonEntry(link="https://example.com/l", section_title="Intro", section_index=12)
    assert lesson.output_stem == "Intro.12."
