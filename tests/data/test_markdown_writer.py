"""
Unit tests for markdown_writer module.
"""

from datetime import datetime, timedelta, timezone

import pytest

from scriptboard.data.markdown_parser import decode, decode_with_issues, parse_script_md
from scriptboard.data.markdown_writer import (
    encode,
    escape_cell,
    export_filename,
    format_export_date,
    format_identity_marker,
    format_table,
    write_script_md,
)
from scriptboard.data.models import (
    Chapter,
    Document,
    Progress,
    ScriptMetadata,
    Section,
    Task,
)


FIXED_TIME = datetime(2024, 1, 2, 3, 4, 5, 678000, tzinfo=timezone.utc)


def fixed_clock():
    return FIXED_TIME


def _demo_document() -> Document:
    metadata = ScriptMetadata(scriptId="s1", title="Demo", exportDate="old")
    task = Task(id="t1", video=True, timestamp="0:15",
                content="Hello | world", dialogue="line1\nline2")
    return Document(metadata=metadata, sections=[Section(title="Intro", tasks=[task])])


class TestFormatHelpers:
    """Tests for the small formatting helpers."""

    def test_export_date_milliseconds(self):
        assert format_export_date(FIXED_TIME) == "2024-01-02T03:04:05.678Z"

    def test_export_date_converts_to_utc(self):
        moment = datetime(2024, 1, 2, 5, 4, 5, tzinfo=timezone(timedelta(hours=2)))
        assert format_export_date(moment) == "2024-01-02T03:04:05.000Z"

    def test_escape_cell(self):
        assert escape_cell("a | b\nc") == "a \\| b<br>c"

    def test_escape_cell_crlf(self):
        assert escape_cell("a\r\nb") == "a<br>b"

    def test_escape_cell_lone_carriage_return(self):
        assert escape_cell("a\rb") == "a<br>b"

    def test_escape_cell_keeps_unicode_separators(self):
        assert escape_cell("a\u2028b") == "a\u2028b"

    def test_identity_marker(self):
        task = Task(id="t7", video=False, audio=True)
        assert format_identity_marker(task) == "<!-- id:t7 video:unchecked audio:checked -->"

    def test_identity_marker_rejects_whitespace_id(self):
        with pytest.raises(ValueError):
            format_identity_marker(Task(id="my task"))

    def test_identity_marker_rejects_empty_id(self):
        with pytest.raises(ValueError):
            format_identity_marker(Task(id=""))


class TestFormatTable:
    """Tests for format_table function."""

    def test_default_header(self):
        lines = format_table([])
        assert lines == [
            "<!-- TABLE_START -->",
            "| 录视频 | 配音 | 时间轴 | 画面内容 | 旁白/对话 | 备注 |",
            "| :---: | :---: | --- | --- | --- | --- |",
            "<!-- TABLE_END -->",
        ]

    def test_custom_header_order(self):
        task = Task(id="x", audio=True, timestamp="0:05", notes="n1")
        lines = format_table([task], ["Notes", "Time", "Audio"])
        assert lines[1] == "| Notes | Time | Audio |"
        assert lines[2] == "| --- | --- | :---: |"
        assert lines[3] == "| n1 | <!-- id:x video:unchecked audio:checked -->0:05 | ✓ |"

    def test_marker_in_first_column_without_timestamp(self):
        task = Task(id="x", content="shot")
        lines = format_table([task], ["画面内容", "备注"])
        assert lines[3] == "| <!-- id:x video:unchecked audio:unchecked -->shot |  |"

    def test_extra_columns_written(self):
        task = Task(id="x", extra={"Shot": "wide"})
        lines = format_table([task], ["时间轴", "Shot"])
        assert lines[3].endswith("| wide |")

    def test_repeated_extra_labels_written_separately(self):
        task = Task(id="x", timestamp="0:01", extra={"Take": "one", "Take#2": "two"})
        lines = format_table([task], ["Time", "Take", "Take"])
        assert lines[3] == "| <!-- id:x video:unchecked audio:unchecked -->0:01 | one | two |"


class TestEncode:
    """Tests for encode function."""

    def test_exact_output(self):
        text = encode(_demo_document(), Progress(100, 0), clock=fixed_clock)
        expected = "\n".join([
            "---",
            'scriptId: "s1"',
            'title: "Demo"',
            'videoProgress: "100%"',
            'audioProgress: "0%"',
            'exportDate: "2024-01-02T03:04:05.678Z"',
            "---",
            "",
            "# Demo",
            "",
            "## Intro",
            "",
            "<!-- TABLE_START -->",
            "| 录视频 | 配音 | 时间轴 | 画面内容 | 旁白/对话 | 备注 |",
            "| :---: | :---: | --- | --- | --- | --- |",
            "| ✓ |   | <!-- id:t1 video:checked audio:unchecked -->0:15 | Hello \\| world | line1<br>line2 |  |",
            "<!-- TABLE_END -->",
            "",
        ]) + "\n"
        assert text == expected

    def test_without_progress(self):
        text = encode(_demo_document(), clock=fixed_clock)
        assert "videoProgress" not in text
        assert "audioProgress" not in text

    def test_deterministic_for_fixed_clock(self):
        document = _demo_document()
        assert encode(document, clock=fixed_clock) == encode(document, clock=fixed_clock)

    def test_metadata_order_preserved(self):
        metadata = ScriptMetadata(author="A", scriptId="s1", status="draft", title="T")
        text = encode(Document(metadata=metadata), clock=fixed_clock)
        frontmatter = text.split("---\n")[1].splitlines()
        assert frontmatter == [
            'author: "A"',
            'scriptId: "s1"',
            'status: "draft"',
            'title: "T"',
            'exportDate: "2024-01-02T03:04:05.678Z"',
        ]

    def test_empty_section_has_no_table(self):
        document = Document(metadata={"scriptId": "s1", "title": "T"},
                            sections=[Section(title="Empty")])
        text = encode(document, clock=fixed_clock)
        assert "## Empty" in text
        assert "TABLE_START" not in text

    def test_chapters_follow_section_table(self):
        document = Document(
            metadata={"scriptId": "s1", "title": "T"},
            sections=[Section(
                title="A",
                tasks=[Task(id="a1")],
                chapters=[Chapter(title="B", tasks=[Task(id="b1")])],
            )],
        )
        text = encode(document, clock=fixed_clock)
        assert text.index("id:a1") < text.index("### B") < text.index("id:b1")


class TestRoundTrip:
    """Encoding then decoding preserves the document."""

    def test_sample_round_trip(self, sample_script):
        original = decode(sample_script)
        restored, issues = decode_with_issues(encode(original, clock=fixed_clock))

        assert issues == []
        assert restored.id == original.id
        assert restored.title == original.title
        assert restored.metadata.author == "VFX Team"
        assert restored.metadata.export_date == "2024-01-02T03:04:05.678Z"
        assert restored.sections == original.sections

    def test_minted_ids_become_stable(self, sample_script):
        first = decode(sample_script)
        second = decode(encode(first, clock=fixed_clock))
        assert [t.id for t in second.iter_tasks()] == ["t1", "task-0-0", "t3"]

    def test_flags_survive_round_trip(self, sample_script):
        document = decode(sample_script)
        document.set_task_flags("task-0-0", video=True, audio=True)
        restored = decode(encode(document, clock=fixed_clock))
        task = restored.find_task("task-0-0")
        assert (task.video, task.audio) == (True, True)

    def test_custom_header_round_trip(self):
        header = ["Time", "Video", "Audio", "Content", "Shot"]
        task = Task(id="x", video=True, timestamp="0:05", content="c", extra={"Shot": "wide"})
        document = Document(metadata={"scriptId": "s1", "title": "T"},
                            sections=[Section(title="A", tasks=[task], header=header)])
        restored = decode(encode(document, clock=fixed_clock))
        assert restored.sections[0].header == header
        assert restored.sections[0].tasks == [task]

    def test_line_breaks_round_trip(self):
        task = Task(id="x", content="a\u2028b", dialogue="a\rb", notes="n")
        document = Document(metadata={"scriptId": "s1", "title": "T"},
                            sections=[Section(title="A", tasks=[task])])
        restored, issues = decode_with_issues(encode(document, clock=fixed_clock))
        task = restored.sections[0].tasks[0]
        assert issues == []
        assert (task.content, task.dialogue, task.notes) == ("a\u2028b", "a\nb", "n")

    def test_repeated_extra_labels_round_trip(self):
        header = ["Time", "Take", "Take"]
        task = Task(id="x", timestamp="0:01", extra={"Take": "one", "Take#2": "two"})
        document = Document(metadata={"scriptId": "s1", "title": "T"},
                            sections=[Section(title="A", tasks=[task], header=header)])
        restored = decode(encode(document, clock=fixed_clock))
        assert restored.sections[0].tasks == [task]

    def test_empty_title_heading_round_trip(self):
        document = Document(metadata={"scriptId": "s1", "title": "T"},
                            sections=[Section(title="", tasks=[Task(id="a")])])
        restored = decode(encode(document, clock=fixed_clock))
        assert len(restored.sections) == 1
        assert restored.sections[0].title == ""
        assert restored.sections[0].tasks[0].id == "a"


class TestExportFilename:
    """Tests for export_filename function."""

    def test_title_truncated(self):
        document = Document(metadata={"scriptId": "s1", "title": "10分钟火焰命中特效v2 - the extended cut"})
        assert export_filename(document) == "10分钟火焰命中特效v2 - the e.md"

    def test_custom_length(self):
        document = Document(metadata={"scriptId": "s1", "title": "Fire Hit"})
        assert export_filename(document, 4) == "Fire.md"

    def test_falls_back_to_id(self):
        document = Document(metadata={"scriptId": "s1"})
        assert export_filename(document) == "s1.md"

    def test_path_separators_replaced(self):
        document = Document(metadata={"scriptId": "s1", "title": "a/b\\c"})
        assert export_filename(document) == "a_b_c.md"


class TestWriteScriptMd:
    """Tests for write_script_md function."""

    def test_write_and_parse(self, tmp_path):
        path = write_script_md(tmp_path / "out" / "demo.md", _demo_document(),
                               Progress(100, 0), clock=fixed_clock)
        assert path.exists()
        document, issues = parse_script_md(path)
        assert issues == []
        assert document.sections[0].tasks[0].content == "Hello | world"
        assert document.sections[0].tasks[0].dialogue == "line1\nline2"
