from __future__ import annotations

from datetime import date
import unittest

from tasklog.classify import (
    LineKind,
    classify_line,
    date_format_problem,
    format_date,
    parse_date_exact,
    strftime_pattern,
)


def _kind(text: str, previous: LineKind | None = None, *, note_indent: int = 6, date_format: str = "DD/MM/YYYY") -> LineKind:
    return classify_line(text, date_format=date_format, note_indent=note_indent, previous=previous).kind


class TestDateFormats(unittest.TestCase):
    def test_token_format_translates_to_strftime(self) -> None:
        self.assertEqual("%d/%m/%Y", strftime_pattern("DD/MM/YYYY"))
        self.assertEqual("%Y-%m-%d", strftime_pattern("YYYY-MM-DD"))
        self.assertEqual("%d.%m.%y", strftime_pattern("DD.MM.YY"))
        self.assertEqual("%Y/%m/%d", strftime_pattern("%Y/%m/%d"))

    def test_parse_is_exact(self) -> None:
        self.assertEqual(date(2026, 2, 1), parse_date_exact("01/02/2026", "DD/MM/YYYY"))
        self.assertIsNone(parse_date_exact("1/2/2026", "DD/MM/YYYY"))
        self.assertIsNone(parse_date_exact("01-02-2026", "DD/MM/YYYY"))
        self.assertIsNone(parse_date_exact("31/02/2026", "DD/MM/YYYY"))
        self.assertIsNone(parse_date_exact("01/02/2026 ", "DD/MM/YYYY"))

    def test_format_round_trips(self) -> None:
        day = date(2026, 10, 16)
        self.assertEqual("16/10/2026", format_date(day, "DD/MM/YYYY"))
        self.assertEqual(day, parse_date_exact(format_date(day, "YYYY-MM-DD"), "YYYY-MM-DD"))

    def test_format_problems(self) -> None:
        self.assertEqual("", date_format_problem("DD/MM/YYYY"))
        self.assertIn("year", date_format_problem("DD/MM"))
        self.assertIn("empty", date_format_problem(""))


class TestClassifyLine(unittest.TestCase):
    def test_section_header(self) -> None:
        result = classify_line("### 16/10/2026", date_format="DD/MM/YYYY", note_indent=6, previous=None)
        self.assertEqual(LineKind.SECTION, result.kind)
        self.assertEqual(date(2026, 10, 16), result.day)
        self.assertEqual(LineKind.SECTION, _kind("# 16/10/2026"))

    def test_header_near_misses_are_freeform(self) -> None:
        for text in ("### 16-10-2026", "### 32/10/2026", "###16/10/2026", "### 16/10/2026 standup", "####### 16/10/2026"):
            with self.subTest(text=text):
                self.assertEqual(LineKind.FREEFORM, _kind(text))

    def test_task_line(self) -> None:
        result = classify_line(
            "- [x] infra-3 rotate production keys",
            date_format="DD/MM/YYYY",
            note_indent=6,
            previous=None,
        )
        self.assertEqual(LineKind.TASK, result.kind)
        self.assertEqual("infra", result.tag)
        self.assertEqual(3, result.number)
        self.assertTrue(result.done)
        self.assertEqual("rotate production keys", result.title)

    def test_hyphenated_tag(self) -> None:
        result = classify_line("- [ ] dev-ops-12 patch hosts", date_format="DD/MM/YYYY", note_indent=6, previous=None)
        self.assertEqual(LineKind.TASK, result.kind)
        self.assertEqual("dev-ops", result.tag)
        self.assertEqual(12, result.number)
        self.assertFalse(result.done)

    def test_task_near_misses_are_freeform(self) -> None:
        for text in (
            "- [ ]  dev-1 double space",
            "- [ ] dev-1",
            "- [ ] dev- title",
            "- [ ] dev-0 zero",
            "- [ ] dev-01 leading zero",
            "- [X] dev-1 capital x",
            "- [] dev-1 empty box",
            "-  [ ] dev-1 wide dash",
            "  - [ ] dev-1 indented",
            "- [ ] Dev-1 uppercase tag",
            "* [ ] dev-1 star bullet",
        ):
            with self.subTest(text=text):
                self.assertEqual(LineKind.FREEFORM, _kind(text))

    def test_note_requires_task_or_note_above(self) -> None:
        note = "      - blocked on access request"
        self.assertEqual(LineKind.NOTE, _kind(note, LineKind.TASK))
        self.assertEqual(LineKind.NOTE, _kind(note, LineKind.NOTE))
        self.assertEqual(LineKind.FREEFORM, _kind(note, LineKind.FREEFORM))
        self.assertEqual(LineKind.FREEFORM, _kind(note, LineKind.SECTION))
        self.assertEqual(LineKind.FREEFORM, _kind(note, None))

    def test_note_indent_must_be_exact(self) -> None:
        self.assertEqual(LineKind.FREEFORM, _kind("     - five spaces", LineKind.TASK))
        self.assertEqual(LineKind.FREEFORM, _kind("       - seven spaces", LineKind.TASK))
        self.assertEqual(LineKind.NOTE, _kind("  - two spaces", LineKind.TASK, note_indent=2))

    def test_note_text_is_kept_verbatim(self) -> None:
        result = classify_line("      - - [ ] nested", date_format="DD/MM/YYYY", note_indent=6, previous=LineKind.TASK)
        self.assertEqual(LineKind.NOTE, result.kind)
        self.assertEqual("- [ ] nested", result.note)

    def test_everything_else_is_freeform(self) -> None:
        for text in ("", "plain prose", "- a bullet", "## Notes", "```"):
            with self.subTest(text=text):
                self.assertEqual(LineKind.FREEFORM, _kind(text, LineKind.TASK))


if __name__ == "__main__":
    unittest.main()
