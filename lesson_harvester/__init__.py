"""
Lesson harvester: walks an SSO-protected online course lesson by lesson and
saves transcripts and videos.
"""
from lesson_harvester.models import LessonEntry, TraversalOutcome, TranscriptRecord
from lesson_harvester.sanitize import sanitize_filename

__all__ = ['LessonEntry', 'TraversalOutcome', 'TranscriptRecord', 'sanitize_filename']

__version__ = "0.1.0"
