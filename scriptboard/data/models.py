"""
Data models for the Script/Section/Chapter/Task system.

These models define the in-memory shape of a production script as it is
stored in the checklist markdown files.
"""

import math
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional


SCRIPT_ID_KEY = "scriptId"
TITLE_KEY = "title"
EXPORT_DATE_KEY = "exportDate"
VIDEO_PROGRESS_KEY = "videoProgress"
AUDIO_PROGRESS_KEY = "audioProgress"
AUTHOR_KEY = "author"
STATUS_KEY = "status"

# Recomputed from task state on every export, never read back.
DERIVED_KEYS = (VIDEO_PROGRESS_KEY, AUDIO_PROGRESS_KEY)


def _metadata_property(key: str, doc: str) -> property:
    def getter(self) -> str:
        return self.get(key, "")

    def setter(self, value: str) -> None:
        self[key] = value

    return property(getter, setter, doc=doc)


class ScriptMetadata(dict):
    """Ordered frontmatter key/value pairs with accessors for the known keys."""

    script_id = _metadata_property(SCRIPT_ID_KEY, "Globally unique script id.")
    title = _metadata_property(TITLE_KEY, "Script title.")
    export_date = _metadata_property(EXPORT_DATE_KEY, "ISO-8601 time of the last export.")
    video_progress = _metadata_property(VIDEO_PROGRESS_KEY, "Video completion, e.g. '50%'.")
    audio_progress = _metadata_property(AUDIO_PROGRESS_KEY, "Audio completion, e.g. '50%'.")
    author = _metadata_property(AUTHOR_KEY, "Free-form author name.")
    status = _metadata_property(STATUS_KEY, "Free-form script status.")


@dataclass
class Task:
    """A single row of trackable work with two completion flags."""
    id: str
    video: bool = False
    audio: bool = False
    timestamp: str = ""
    content: str = ""
    dialogue: str = ""
    notes: str = ""
    extra: Dict[str, str] = field(default_factory=dict)  # unmapped columns by header label


@dataclass
class Chapter:
    """A subgrouping of tasks under a section (### heading)."""
    title: str
    tasks: List[Task] = field(default_factory=list)
    header: Optional[List[str]] = None


@dataclass
class Section:
    """A top-level grouping of tasks (## heading)."""
    title: str
    tasks: List[Task] = field(default_factory=list)
    chapters: List[Chapter] = field(default_factory=list)
    header: Optional[List[str]] = None

    def iter_tasks(self) -> Iterator[Task]:
        yield from self.tasks
        for chapter in self.chapters:
            yield from chapter.tasks


@dataclass
class Progress:
    """Video and audio completion percentages (0-100)."""
    video_percentage: int = 0
    audio_percentage: int = 0


def _percentage(done: int, total: int) -> int:
    if total == 0:
        return 0
    return int(math.floor(done * 100 / total + 0.5))


@dataclass
class Document:
    """A complete production script."""
    metadata: ScriptMetadata = field(default_factory=ScriptMetadata)
    sections: List[Section] = field(default_factory=list)

    def __post_init__(self):
        if not isinstance(self.metadata, ScriptMetadata):
            self.metadata = ScriptMetadata(self.metadata)

    @property
    def id(self) -> str:
        return self.metadata.script_id

    @id.setter
    def id(self, value: str) -> None:
        self.metadata.script_id = value

    @property
    def title(self) -> str:
        return self.metadata.title

    @title.setter
    def title(self, value: str) -> None:
        self.metadata.title = value

    def iter_tasks(self) -> Iterator[Task]:
        """Yield every task in document order."""
        for section in self.sections:
            yield from section.iter_tasks()

    def find_task(self, task_id: str) -> Optional[Task]:
        for task in self.iter_tasks():
            if task.id == task_id:
                return task
        return None

    def set_task_flags(
        self,
        task_id: str,
        video: Optional[bool] = None,
        audio: Optional[bool] = None,
    ) -> bool:
        """
        Update the completion flags of the task with the given id.

        Flags passed as None are left untouched.

        Returns:
            True if the task was found, False otherwise
        """
        task = self.find_task(task_id)
        if task is None:
            return False
        if video is not None:
            task.video = video
        if audio is not None:
            task.audio = audio
        return True

    def calculate_progress(self) -> Progress:
        return calculate_progress(self)


def calculate_progress(document: Document) -> Progress:
    """
    Compute video/audio completion over all tasks of a document.

    Percentages are rounded half up, and a document without tasks is at 0%.
    """
    total = video_done = audio_done = 0
    for task in document.iter_tasks():
        total += 1
        video_done += task.video
        audio_done += task.audio
    return Progress(
        video_percentage=_percentage(video_done, total),
        audio_percentage=_percentage(audio_done, total),
    )


@dataclass
class ParseIssue:
    """A non-fatal problem found while decoding, with location and details."""
    line_number: Optional[int] = None
    message: str = ""
    hint: str = ""

    def __str__(self):
        location = f"line {self.line_number}: " if self.line_number is not None else ""
        text = f"{location}{self.message}"
        if self.hint:
            text += f". {self.hint}"
        return text
