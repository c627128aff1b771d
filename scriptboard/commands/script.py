"""
Script command implementation for scriptboard CLI.

Commands:
- scriptboard check <file> - Decode a script and report what was recovered
- scriptboard export <file> - Re-encode a script to canonical markdown
- scriptboard progress <file> - Show video/audio completion
- scriptboard mark <file> <task_id> - Update a task's completion flags
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Tuple

from scriptboard.config import GlobalConfig
from scriptboard.data import (
    Document,
    ParseIssue,
    ScriptDecodeError,
    calculate_progress,
    export_filename,
    parse_script_md,
    write_script_md,
)
from scriptboard.modules.utils import (
    format_progress_bar,
    print_error,
    print_header,
    print_info,
    print_success,
    print_warning,
    styled_print,
)

logger = logging.getLogger(__name__)


def _load_config(args) -> GlobalConfig:
    """Return the configuration main() attached to args, loading it if absent."""
    config = getattr(args, 'global_config', None)
    if config is None:
        config = GlobalConfig.load(getattr(args, 'config', None))
    return config


def load_script(path: str) -> Optional[Tuple[Document, List[ParseIssue]]]:
    """Decode a script file, printing a user-facing message on failure."""
    try:
        return parse_script_md(path)
    except (ScriptDecodeError, OSError, UnicodeDecodeError) as e:
        logger.debug(f"Failed to import {path}", exc_info=True)
        print_error(f"Error: import failed: {e}")
        return None


def _print_issues(issues: List[ParseIssue]) -> None:
    if not issues:
        return
    print_warning(f"{len(issues)} issue(s) recovered while parsing:")
    for issue in issues:
        print_warning(f"- {issue}", 2)


def _print_progress(document: Document) -> None:
    progress = calculate_progress(document)
    styled_print(f"Video {format_progress_bar(progress.video_percentage)}")
    styled_print(f"Audio {format_progress_bar(progress.audio_percentage)}")


def check_script(args) -> int:
    loaded = load_script(args.file)
    if loaded is None:
        return 1
    document, issues = loaded

    print_header(document.title or document.id)
    print_info(f"Script ID: {document.id}")
    for key, value in document.metadata.items():
        if key not in ('scriptId', 'title'):
            print_info(f"{key}: {value}")
    for section in document.sections:
        styled_print(f"## {section.title} ({len(section.tasks)} tasks)")
        for chapter in section.chapters:
            styled_print(f"### {chapter.title} ({len(chapter.tasks)} tasks)", indent=2)
    _print_progress(document)
    _print_issues(issues)

    if issues and getattr(args, 'strict', False):
        print_error("Error: script was only partially imported")
        return 1
    if not issues:
        print_success("Script parsed without issues")
    return 0


def export_script(args) -> int:
    config = _load_config(args)
    loaded = load_script(args.file)
    if loaded is None:
        return 1
    document, issues = loaded
    _print_issues(issues)

    progress = None
    if config.export.include_progress and not getattr(args, 'no_progress', False):
        progress = calculate_progress(document)

    if getattr(args, 'output', None):
        output = Path(args.output)
    else:
        output = Path(config.export.output_directory) / export_filename(
            document, config.export.filename_title_length
        )

    try:
        write_script_md(output, document, progress)
    except OSError as e:
        print_error(f"Error: export failed: {e}")
        return 1
    print_success(f"Exported '{document.title or document.id}' to {output}")
    return 0


def show_progress(args) -> int:
    loaded = load_script(args.file)
    if loaded is None:
        return 1
    document, _ = loaded
    _print_progress(document)
    return 0


def mark_task(args) -> int:
    if args.video is None and args.audio is None:
        print_error("Error: nothing to change. Use --video/--no-video and/or --audio/--no-audio")
        return 1

    config = _load_config(args)
    loaded = load_script(args.file)
    if loaded is None:
        return 1
    document, _ = loaded

    if not document.set_task_flags(args.task_id, video=args.video, audio=args.audio):
        print_error(f"Error: Task '{args.task_id}' not found.")
        print_info("Use 'scriptboard check <file>' to inspect the script.")
        return 1

    progress = calculate_progress(document) if config.export.include_progress else None
    try:
        write_script_md(args.file, document, progress)
    except OSError as e:
        print_error(f"Error: could not write {args.file}: {e}")
        return 1

    task = document.find_task(args.task_id)
    video = "done" if task.video else "open"
    audio = "done" if task.audio else "open"
    print_success(f"Task {task.id}: video {video}, audio {audio}")
    return 0


def handle_script_command(args) -> int:
    """
    Main handler for script commands.
    """
    handlers = {
        'check': check_script,
        'export': export_script,
        'progress': show_progress,
        'mark': mark_task,
    }
    handler = handlers.get(args.command)
    if handler is None:
        print_error(f"Error: Unknown command '{args.command}'")
        return 1
    return handler(args)


def add_script_parsers(subparsers):
    """
    Add script command parsers to the main argument parser.
    """
    check_parser = subparsers.add_parser(
        'check',
        help='Decode a script and list the issues recovered while parsing'
    )
    check_parser.add_argument('file', help='Script markdown file')
    check_parser.add_argument('--strict', action='store_true',
                              help='Exit with status 1 when any issue was recovered')

    export_parser = subparsers.add_parser(
        'export',
        help='Re-encode a script to canonical markdown'
    )
    export_parser.add_argument('file', help='Script markdown file')
    export_parser.add_argument('-o', '--output', help='Output path (default: <title>.md)')
    export_parser.add_argument('--no-progress', action='store_true',
                               help='Do not record videoProgress/audioProgress')

    progress_parser = subparsers.add_parser(
        'progress',
        help='Show video/audio completion'
    )
    progress_parser.add_argument('file', help='Script markdown file')

    mark_parser = subparsers.add_parser(
        'mark',
        help="Update a task's completion flags in place"
    )
    mark_parser.add_argument('file', help='Script markdown file')
    mark_parser.add_argument('task_id', help='Task id, as shown in the identity marker')
    video_group = mark_parser.add_mutually_exclusive_group()
    video_group.add_argument('--video', dest='video', action='store_const', const=True, default=None,
                             help='Mark the video as recorded')
    video_group.add_argument('--no-video', dest='video', action='store_const', const=False,
                             help='Mark the video as not recorded')
    audio_group = mark_parser.add_mutually_exclusive_group()
    audio_group.add_argument('--audio', dest='audio', action='store_const', const=True, default=None,
                             help='Mark the voice-over as recorded')
    audio_group.add_argument('--no-audio', dest='audio', action='store_const', const=False,
                             help='Mark the voice-over as not recorded')

    return subparsers
