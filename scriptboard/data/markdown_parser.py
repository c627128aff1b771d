"""
Markdown parser for the scriptboard checklist format.

A script file is a frontmatter block followed by a heading hierarchy:

    ---
    scriptId: "lesson-1"
    title: "Fire Hit Effect"
    ---

    # Fire Hit Effect

    ## Section
    <!-- TABLE_START -->
    | 录视频 | 配音 | 时间轴 | 画面内容 | 旁白/对话 | 备注 |
    | :---: | :---: | --- | --- | --- | --- |
    | ✓ |   | <!-- id:t1 video:checked audio:unchecked -->0:15 | ... | ... | ... |
    <!-- TABLE_END -->

    ### Chapter
    ... (same table format)

Decoding is tolerant: only a missing frontmatter block or a missing scriptId
abort it. Every other anomaly falls back to a well-defined default and is
reported as a ParseIssue.
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Set, Tuple, Union

from .errors import MissingFrontmatterError, MissingScriptIdError
from .models import (
    DERIVED_KEYS,
    Chapter,
    Document,
    ParseIssue,
    ScriptMetadata,
    Section,
    Task,
)

logger = logging.getLogger(__name__)


FRONTMATTER_DELIMITER = '---'
TABLE_START_MARKER = '<!-- TABLE_START -->'
TABLE_END_MARKER = '<!-- TABLE_END -->'
CHECKMARK = '✓'
LINE_BREAK = '<br>'

# Task properties a table column can map to
VIDEO = 'video'
AUDIO = 'audio'
TIMESTAMP = 'timestamp'
CONTENT = 'content'
DIALOGUE = 'dialogue'
NOTES = 'notes'

CANONICAL_HEADER = ['录视频', '配音', '时间轴', '画面内容', '旁白/对话', '备注']

# Lower-cased header label -> task property
HEADER_LABELS = {
    '录视频': VIDEO,
    'video': VIDEO,
    '配音': AUDIO,
    'audio': AUDIO,
    '时间轴': TIMESTAMP,
    'timestamp': TIMESTAMP,
    'time': TIMESTAMP,
    '画面内容': CONTENT,
    'content': CONTENT,
    'visual': CONTENT,
    '旁白/对话': DIALOGUE,
    'dialogue': DIALOGUE,
    'narration': DIALOGUE,
    '备注': NOTES,
    '视觉引导/备注': NOTES,
    'notes': NOTES,
}

IDENTITY_MARKER_RE = re.compile(
    r'<!--\s*id:(\S+)\s+video:(checked|unchecked)\s+audio:(checked|unchecked)\s*-->'
)
_MARKER_FRAGMENT_RE = re.compile(r'<!--\s*id:')
_CELL_SEPARATOR_RE = re.compile(r'(?<!\\)\|')
_LINE_BREAK_RE = re.compile(r'<br\s*/?>', re.IGNORECASE)
_HEADING_RE = re.compile(r'^(#{1,6}) (.*)$')
# Only CR/LF end a line; other Unicode breaks are ordinary cell text
LINE_ENDING_RE = re.compile(r'\r\n|\r|\n')


@dataclass
class DecodeContext:
    """State scoped to a single decode call."""
    section_index: int = -1
    task_counter: int = 0
    issues: List[ParseIssue] = field(default_factory=list)
    seen_ids: Set[str] = field(default_factory=set)

    def mint_task_id(self) -> str:
        """Return a fresh task-<sectionIndex>-<counter> id not used so far."""
        while True:
            task_id = f"task-{max(self.section_index, 0)}-{self.task_counter}"
            self.task_counter += 1
            if task_id not in self.seen_ids:
                return task_id

    def warn(self, line_number: Optional[int], message: str, hint: str = "") -> None:
        issue = ParseIssue(line_number=line_number, message=message, hint=hint)
        self.issues.append(issue)
        logger.debug(f"Tolerated decode issue: {issue}")


# ============================================================================
# Frontmatter
# ============================================================================

def _strip_quotes(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ('"', "'"):
        return value[1:-1]
    return value


def parse_frontmatter_line(line: str) -> Optional[Tuple[str, str]]:
    """
    Parse a `key: value` frontmatter line.

    The first colon separates key and value, so values may contain colons.

    Examples:
        >>> parse_frontmatter_line('title: "Fire: Part 1"')
        ('title', 'Fire: Part 1')
        >>> parse_frontmatter_line('no colon here') is None
        True
    """
    if ':' not in line:
        return None
    key, value = line.split(':', 1)
    key = key.strip()
    if not key:
        return None
    return (key, _strip_quotes(value.strip()))


def parse_frontmatter(
    lines: List[str],
    context: Optional[DecodeContext] = None,
) -> Tuple[ScriptMetadata, int]:
    """
    Parse the leading ---...--- block.

    Args:
        lines: Lines of the whole document
        context: Decode context collecting non-fatal issues

    Returns:
        Tuple of (metadata, index of the first body line)

    Raises:
        MissingFrontmatterError: If the block is absent or never closed
    """
    if not lines or lines[0].rstrip() != FRONTMATTER_DELIMITER:
        raise MissingFrontmatterError()

    end_idx = None
    for idx in range(1, len(lines)):
        if lines[idx].rstrip() == FRONTMATTER_DELIMITER:
            end_idx = idx
            break
    if end_idx is None:
        raise MissingFrontmatterError()

    metadata = ScriptMetadata()
    for idx in range(1, end_idx):
        result = parse_frontmatter_line(lines[idx])
        if result is None:
            if lines[idx].strip() and context is not None:
                context.warn(idx + 1, "Frontmatter line is not a key: value pair", "Line ignored")
            continue
        key, value = result
        # Progress is recomputed from task state on export
        if key in DERIVED_KEYS:
            continue
        metadata[key] = value

    return (metadata, end_idx + 1)


# ============================================================================
# Headings
# ============================================================================

def parse_heading(line: str) -> Optional[Tuple[int, str]]:
    """
    Parse a markdown heading.

    Examples:
        >>> parse_heading('## Intro')
        (2, 'Intro')
        >>> parse_heading('### The Core ')
        (3, 'The Core')
        >>> parse_heading('##no space') is None
        True
    """
    match = _HEADING_RE.match(line)
    if not match:
        return None
    return (len(match.group(1)), match.group(2).strip())


def _is_heading(line: str, level: int) -> bool:
    heading = parse_heading(line)
    return heading is not None and heading[0] == level


def _find_block_end(lines: List[str], start_idx: int) -> int:
    for idx in range(start_idx, len(lines)):
        if _is_heading(lines[idx], 2) or _is_heading(lines[idx], 3):
            return idx
    return len(lines)


# ============================================================================
# Tables
# ============================================================================

def _unescape_cell(text: str) -> str:
    return _LINE_BREAK_RE.sub('\n', text.replace('\\|', '|'))


def parse_table_row(line: str) -> List[str]:
    """
    Split a pipe-delimited table row into trimmed, unescaped cells.

    Examples:
        >>> parse_table_row('| a | b \\\\| c | d<br>e |')
        ['a', 'b | c', 'd\\ne']
    """
    text = line.strip()
    if text.startswith('|'):
        text = text[1:]
    if text.endswith('|') and not text.endswith('\\|'):
        text = text[:-1]
    return [_unescape_cell(cell.strip()) for cell in _CELL_SEPARATOR_RE.split(text)]


def map_header(header: List[str]) -> List[Optional[str]]:
    """Map header labels to task properties, None for unrecognized labels."""
    return [HEADER_LABELS.get(label.strip().lower()) for label in header]


def extra_column_keys(header: List[str], columns: List[Optional[str]]) -> List[Optional[str]]:
    """
    Task.extra key for every unrecognized column, None for mapped ones.

    Repeated labels get a positional suffix so no cell overwrites another.

    Examples:
        >>> extra_column_keys(['Time', 'Take', 'Take'], ['timestamp', None, None])
        [None, 'Take', 'Take#2']
    """
    keys: List[Optional[str]] = []
    used: Set[str] = set()
    for label, prop in zip(header, columns):
        if prop is not None:
            keys.append(None)
            continue
        key, count = label, 1
        while key in used:
            count += 1
            key = f"{label}#{count}"
        used.add(key)
        keys.append(key)
    return keys


def parse_identity_marker(text: str) -> Optional[Tuple[str, bool, bool]]:
    """
    Find an embedded identity marker.

    Returns:
        Tuple of (task_id, video, audio) or None

    Examples:
        >>> parse_identity_marker('<!-- id:t1 video:checked audio:unchecked -->0:15')
        ('t1', True, False)
    """
    match = IDENTITY_MARKER_RE.search(text)
    if not match:
        return None
    return (match.group(1), match.group(2) == 'checked', match.group(3) == 'checked')


def strip_identity_marker(text: str) -> str:
    return IDENTITY_MARKER_RE.sub('', text, count=1).strip()


def _find_table_regions(
    lines: List[str],
    start_idx: int,
    end_idx: int,
    context: DecodeContext,
) -> List[Tuple[int, int]]:
    regions = []
    idx = start_idx
    while idx < end_idx:
        if lines[idx].strip() != TABLE_START_MARKER:
            idx += 1
            continue
        region_end = idx + 1
        while region_end < end_idx and lines[region_end].strip() != TABLE_END_MARKER:
            region_end += 1
        if region_end == end_idx:
            context.warn(idx + 1, "Table start marker has no matching end marker",
                         "Table runs to the end of the block")
        regions.append((idx + 1, region_end))
        idx = region_end + 1
    if regions:
        return regions

    # Legacy layout: no markers, the first run of pipe rows is the table
    for idx in range(start_idx, end_idx):
        if lines[idx].lstrip().startswith('|'):
            run_end = idx
            while run_end < end_idx and lines[run_end].lstrip().startswith('|'):
                run_end += 1
            return [(idx, run_end)]
    return []


def parse_task_row(
    cells: List[str],
    header: List[str],
    columns: List[Optional[str]],
    line_number: Optional[int],
    context: DecodeContext,
) -> Task:
    """Build a Task from the cells of one data row."""
    cells = list(cells)

    marker = None
    marker_positions = []
    if TIMESTAMP in columns:
        marker_positions.append(columns.index(TIMESTAMP))
    if 0 not in marker_positions:
        marker_positions.append(0)
    for position in marker_positions:
        if position < len(cells):
            marker = parse_identity_marker(cells[position])
            if marker:
                cells[position] = strip_identity_marker(cells[position])
                break

    extra_keys = extra_column_keys(header, columns)
    values: Dict[str, str] = {}
    extra: Dict[str, str] = {}
    for position, cell in enumerate(cells):
        prop = columns[position]
        if prop is None:
            extra[extra_keys[position]] = cell
        elif prop not in values:
            values[prop] = cell

    if marker:
        task_id, video, audio = marker
    else:
        if any(_MARKER_FRAGMENT_RE.search(cell) for cell in cells):
            context.warn(line_number, "Malformed identity marker", "A new task id was assigned")
        task_id = context.mint_task_id()
        video = CHECKMARK in values.get(VIDEO, '')
        audio = CHECKMARK in values.get(AUDIO, '')

    if task_id in context.seen_ids:
        context.warn(line_number, f"Duplicate task id '{task_id}'",
                     "Lookups by id will only find the first task")
    context.seen_ids.add(task_id)

    return Task(
        id=task_id,
        video=video,
        audio=audio,
        timestamp=values.get(TIMESTAMP, ''),
        content=values.get(CONTENT, ''),
        dialogue=values.get(DIALOGUE, ''),
        notes=values.get(NOTES, ''),
        extra=extra,
    )


def parse_table(
    lines: List[str],
    start_idx: int,
    end_idx: int,
    context: DecodeContext,
) -> Tuple[Optional[List[str]], List[Task]]:
    """
    Parse the rows of one table region.

    Returns:
        Tuple of (header, tasks). The header is None when the table is
        malformed and was skipped.
    """
    rows = []
    for idx in range(start_idx, end_idx):
        line = lines[idx].strip()
        if not line:
            continue
        if not line.startswith('|'):
            context.warn(idx + 1, "Non-table line inside a table region", "Line ignored")
            continue
        rows.append(idx)

    if not rows:
        return (None, [])

    header_idx = rows[0]
    if len(rows) < 2 or '---' not in lines[rows[1]]:
        context.warn(header_idx + 1, "Table has no '---' separator row", "Table skipped")
        return (None, [])

    header = parse_table_row(lines[header_idx])
    columns = map_header(header)
    for label, key in zip(header, extra_column_keys(header, columns)):
        if key is None:
            continue
        if key == label:
            context.warn(header_idx + 1, f"Unrecognized column '{label}'",
                         "Cells are kept in Task.extra")
        else:
            context.warn(header_idx + 1, f"Duplicate column '{label}'",
                         f"Cells are kept in Task.extra under '{key}'")

    tasks = []
    for idx in rows[2:]:
        cells = parse_table_row(lines[idx])
        if len(cells) > len(header):
            context.warn(idx + 1, f"Row has {len(cells)} cells but the header has {len(header)}",
                         "Row skipped")
            continue
        tasks.append(parse_task_row(cells, header, columns, idx + 1, context))

    return (header, tasks)


def parse_table_block(
    lines: List[str],
    start_idx: int,
    end_idx: int,
    context: DecodeContext,
) -> Tuple[Optional[List[str]], List[Task]]:
    """Parse every table region of a section or chapter block."""
    header = None
    tasks = []
    for region_start, region_end in _find_table_regions(lines, start_idx, end_idx, context):
        region_header, region_tasks = parse_table(lines, region_start, region_end, context)
        if header is None:
            header = region_header
        tasks.extend(region_tasks)
    return (header, tasks)


# ============================================================================
# Hierarchy
# ============================================================================

def parse_chapter(lines: List[str], start_idx: int, context: DecodeContext) -> Tuple[Chapter, int]:
    """
    Parse a chapter block starting at its ### heading.

    Returns:
        Tuple of (chapter, next_line_index)
    """
    _, title = parse_heading(lines[start_idx])
    end_idx = _find_block_end(lines, start_idx + 1)
    header, tasks = parse_table_block(lines, start_idx + 1, end_idx, context)
    return (Chapter(title=title, tasks=tasks, header=header), end_idx)


def parse_section(lines: List[str], start_idx: int, context: DecodeContext) -> Tuple[Section, int]:
    """
    Parse a section block starting at its ## heading, chapters included.

    Returns:
        Tuple of (section, next_line_index)
    """
    _, title = parse_heading(lines[start_idx])
    context.section_index += 1

    end_idx = _find_block_end(lines, start_idx + 1)
    header, tasks = parse_table_block(lines, start_idx + 1, end_idx, context)
    section = Section(title=title, tasks=tasks, header=header)

    idx = end_idx
    while idx < len(lines) and _is_heading(lines[idx], 3):
        chapter, idx = parse_chapter(lines, idx, context)
        section.chapters.append(chapter)

    return (section, idx)


# ============================================================================
# Document
# ============================================================================

def decode_with_issues(text: str) -> Tuple[Document, List[ParseIssue]]:
    """
    Decode script markdown and report what was silently recovered.

    Returns:
        Tuple of (document, issues)

    Raises:
        MissingFrontmatterError: If there is no leading frontmatter block
        MissingScriptIdError: If the frontmatter has no non-empty scriptId
    """
    context = DecodeContext()
    lines = LINE_ENDING_RE.split(text.lstrip('\ufeff'))

    metadata, idx = parse_frontmatter(lines, context)
    if not metadata.script_id:
        raise MissingScriptIdError()

    document = Document(metadata=metadata)

    while idx < len(lines) and not _is_heading(lines[idx], 2):
        if _is_heading(lines[idx], 3):
            context.warn(idx + 1, "Chapter heading before the first section", "Chapter ignored")
        idx += 1

    while idx < len(lines):
        section, idx = parse_section(lines, idx, context)
        document.sections.append(section)

    task_count = sum(1 for _ in document.iter_tasks())
    logger.debug(
        f"Decoded script '{document.id}': {len(document.sections)} sections, "
        f"{task_count} tasks, {len(context.issues)} issues"
    )
    return (document, context.issues)


def decode(text: str) -> Document:
    """Decode script markdown into a Document."""
    document, _ = decode_with_issues(text)
    return document


def parse_script_md(path: Union[str, Path]) -> Tuple[Document, List[ParseIssue]]:
    """
    Read and decode a script markdown file.

    Args:
        path: Path to the .md file

    Returns:
        Tuple of (document, issues)
    """
    text = Path(path).read_text(encoding='utf-8')
    return decode_with_issues(text)
