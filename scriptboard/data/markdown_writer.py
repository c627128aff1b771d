"""
Markdown writer for scriptboard script files.

The writer always produces the canonical layout: frontmatter, title, then one
table per section/chapter with a freshly computed identity marker on every
row, so any encoded document decodes back with the same task identities.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, List, Optional, Union

from .markdown_parser import (
    AUDIO,
    CANONICAL_HEADER,
    CHECKMARK,
    FRONTMATTER_DELIMITER,
    LINE_BREAK,
    LINE_ENDING_RE,
    TABLE_END_MARKER,
    TABLE_START_MARKER,
    TIMESTAMP,
    VIDEO,
    extra_column_keys,
    map_header,
)
from .models import (
    DERIVED_KEYS,
    EXPORT_DATE_KEY,
    SCRIPT_ID_KEY,
    TITLE_KEY,
    AUDIO_PROGRESS_KEY,
    VIDEO_PROGRESS_KEY,
    Chapter,
    Document,
    Progress,
    ScriptMetadata,
    Section,
    Task,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

CENTERED_COLUMNS = (VIDEO, AUDIO)
DEFAULT_FILENAME_TITLE_LENGTH = 20


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _single_line(text) -> str:
    return " ".join(str(text).splitlines())


def format_export_date(moment: datetime) -> str:
    """
    Format a datetime as an ISO-8601 UTC timestamp with milliseconds.

    Naive datetimes are taken to be UTC.

    Examples:
        >>> format_export_date(datetime(2024, 5, 1, 8, 30, 0, 250000))
        '2024-05-01T08:30:00.250Z'
    """
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.strftime('%Y-%m-%dT%H:%M:%S') + f".{moment.microsecond // 1000:03d}Z"


def escape_cell(text: str) -> str:
    """
    Escape pipes and line breaks so the text fits in a single table cell.

    CR, LF and CRLF each become the line-break placeholder.
    """
    text = str(text).replace('|', '\\|')
    return LINE_ENDING_RE.sub(LINE_BREAK, text)


def format_identity_marker(task: Task) -> str:
    """
    Render the hidden marker carrying a task's id and flags.

    Raises:
        ValueError: If the id is empty or contains whitespace
    """
    if not task.id or any(ch.isspace() for ch in task.id):
        raise ValueError(f"Task id {task.id!r} cannot be written to a marker")
    video_status = 'checked' if task.video else 'unchecked'
    audio_status = 'checked' if task.audio else 'unchecked'
    return f"<!-- id:{task.id} video:{video_status} audio:{audio_status} -->"


def format_frontmatter(
    metadata: ScriptMetadata,
    progress: Optional[Progress] = None,
    export_date: str = "",
) -> List[str]:
    """Render the ---...--- block; exportDate is always written last."""
    lines = [FRONTMATTER_DELIMITER]
    for key, value in metadata.items():
        if key == EXPORT_DATE_KEY or key in DERIVED_KEYS:
            continue
        if key in (SCRIPT_ID_KEY, TITLE_KEY) and not value:
            continue
        lines.append(f'{key}: "{_single_line(value)}"')
    if progress is not None:
        lines.append(f'{VIDEO_PROGRESS_KEY}: "{progress.video_percentage}%"')
        lines.append(f'{AUDIO_PROGRESS_KEY}: "{progress.audio_percentage}%"')
    lines.append(f'{EXPORT_DATE_KEY}: "{export_date}"')
    lines.append(FRONTMATTER_DELIMITER)
    return lines


def _format_row(cells) -> str:
    return "| " + " | ".join(cells) + " |"


def _cell_value(task: Task, prop: Optional[str], extra_key: Optional[str]) -> str:
    if prop == VIDEO:
        return CHECKMARK if task.video else ' '
    if prop == AUDIO:
        return CHECKMARK if task.audio else ' '
    if prop is None:
        return escape_cell(task.extra.get(extra_key, ''))
    return escape_cell(getattr(task, prop))


def format_table(tasks: List[Task], header: Optional[List[str]] = None) -> List[str]:
    """
    Render tasks as a delimited table.

    Args:
        tasks: Rows to emit, in order
        header: Column labels to emit; the canonical header when None or empty

    Returns:
        Table lines, start and end markers included
    """
    labels = list(header) if header else list(CANONICAL_HEADER)
    columns = map_header(labels)
    extra_keys = extra_column_keys(labels, columns)
    marker_position = columns.index(TIMESTAMP) if TIMESTAMP in columns else 0

    lines = [
        TABLE_START_MARKER,
        _format_row(escape_cell(label) for label in labels),
        _format_row(':---:' if prop in CENTERED_COLUMNS else '---' for prop in columns),
    ]
    for task in tasks:
        cells = [_cell_value(task, prop, key) for prop, key in zip(columns, extra_keys)]
        cells[marker_position] = format_identity_marker(task) + cells[marker_position]
        lines.append(_format_row(cells))
    lines.append(TABLE_END_MARKER)
    return lines


def _format_group(heading: str, title: str, tasks: List[Task], header: Optional[List[str]]) -> List[str]:
    lines = [f"{heading} {_single_line(title)}", ""]
    if tasks:
        lines.extend(format_table(tasks, header))
        lines.append("")
    return lines


def format_chapter(chapter: Chapter) -> List[str]:
    return _format_group("###", chapter.title, chapter.tasks, chapter.header)


def format_section(section: Section) -> List[str]:
    lines = _format_group("##", section.title, section.tasks, section.header)
    for chapter in section.chapters:
        lines.extend(format_chapter(chapter))
    return lines


def encode(
    document: Document,
    progress: Optional[Progress] = None,
    clock: Optional[Clock] = None,
) -> str:
    """
    Serialize a Document to canonical script markdown.

    Args:
        document: Script to serialize
        progress: Percentages to record as videoProgress/audioProgress
        clock: Zero-argument callable returning the export time (UTC now by default)

    Returns:
        The markdown text
    """
    clock = clock or _utc_now
    lines = format_frontmatter(document.metadata, progress, format_export_date(clock()))
    lines.append("")
    lines.append(f"# {_single_line(document.title)}")
    lines.append("")
    for section in document.sections:
        lines.extend(format_section(section))

    logger.debug(f"Encoded script '{document.id}' with {len(document.sections)} sections")
    return "\n".join(lines) + "\n"


def export_filename(document: Document, title_length: int = DEFAULT_FILENAME_TITLE_LENGTH) -> str:
    """
    Suggest a file name for an exported script.

    Examples:
        >>> export_filename(Document(metadata={'scriptId': 's1', 'title': 'Fire'}))
        'Fire.md'
    """
    stem = document.title[:title_length].strip() or document.id
    for separator in ('/', '\\'):
        stem = stem.replace(separator, '_')
    return f"{stem}.md"


def write_script_md(
    path: Union[str, Path],
    document: Document,
    progress: Optional[Progress] = None,
    clock: Optional[Clock] = None,
) -> Path:
    """Encode a document and write it to path as UTF-8."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(encode(document, progress, clock), encoding="utf-8")
    return path
