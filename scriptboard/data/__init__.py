"""
scriptboard data module - script document model and markdown codec.

This module provides the document model together with the parser and writer
for the checklist markdown format, so scripts can be imported, edited and
exported without losing task identity.
"""

from .errors import (
    ScriptDecodeError,
    MissingFrontmatterError,
    MissingScriptIdError,
)
from .models import (
    ScriptMetadata,
    Document,
    Section,
    Chapter,
    Task,
    Progress,
    ParseIssue,
    calculate_progress,
)
from .markdown_parser import (
    CANONICAL_HEADER,
    decode,
    decode_with_issues,
    parse_frontmatter,
    parse_heading,
    parse_identity_marker,
    parse_table_row,
    parse_script_md,
    map_header,
)
from .markdown_writer import (
    encode,
    export_filename,
    format_export_date,
    write_script_md,
)

__all__ = [
    'ScriptDecodeError',
    'MissingFrontmatterError',
    'MissingScriptIdError',
    'ScriptMetadata',
    'Document',
    'Section',
    'Chapter',
    'Task',
    'Progress',
    'ParseIssue',
    'calculate_progress',
    'CANONICAL_HEADER',
    'decode',
    'decode_with_issues',
    'parse_frontmatter',
    'parse_heading',
    'parse_identity_marker',
    'parse_table_row',
    'parse_script_md',
    'map_header',
    'encode',
    'export_filename',
    'format_export_date',
    'write_script_md',
]
