# core/visit_report.py

"""
Visit report body codec.

A visit's `notes` column holds a human-readable report. The only
machine-read element is the line

    Completed: <completed>/<total> items

Everything else (preamble notes, itemized lists) is for people.

Format v1 starts with a `[visit-report v1]` marker line. Titles, item
text and item notes are written on a single line each, and preamble
lines that look like a checklist header are indented, so a v1 body has
exactly one header line, immediately followed by its summary line.
Bodies without a marker are legacy records and are decoded by first
match over the whole text.
"""

import re
from typing import Iterable, List, Optional, Sequence

from core.logging_config import logger
from models.enums import CompletionGrade
from models.visit import ChecklistItemResult, VisitReport


REPORT_FORMAT_VERSION = 1

VERSION_MARKER = f"[visit-report v{REPORT_FORMAT_VERSION}]"
VERSION_PATTERN = re.compile(r"\A\s*\[visit-report v(\d+)\]")

BLOCK_HEADER = "=== Checklist: {title} ==="
BLOCK_PATTERN = re.compile(r"^=== Checklist: (.*) ===$", re.MULTILINE)

SUMMARY_LINE = "Completed: {completed}/{total} items"
SUMMARY_PATTERN = re.compile(r"Completed: (\d+)/(\d+) items")

# Header and summary on consecutive lines, as encode_report writes them
V1_BLOCK_PATTERN = re.compile(
    r"^=== Checklist: (.*) ===\nCompleted: (\d+)/(\d+) items$",
    re.MULTILINE,
)

LINE_BREAKS = re.compile(r"[\r\n]+")

COMPLETED_GLYPH = "✓"
INCOMPLETE_GLYPH = "○"


# ============================================================
# Grading
# ============================================================
def completion_percentage(completed: int, total: int) -> Optional[int]:
    """Whole-number percentage rounded half up; None when total is 0."""
    if total <= 0:
        return None
    return (200 * completed + total) // (2 * total)


def grade_for(percentage: Optional[int]) -> CompletionGrade:
    if percentage is None:
        return CompletionGrade.no_data
    if percentage >= 100:
        return CompletionGrade.complete
    if percentage >= 75:
        return CompletionGrade.mostly_done
    if percentage >= 25:
        return CompletionGrade.partial
    return CompletionGrade.started


def _report(title, completed, total, version, items=()) -> VisitReport:
    percentage = completion_percentage(completed, total)
    return VisitReport(
        checklist_title=title,
        total=total,
        completed=completed,
        percentage=percentage,
        grade=grade_for(percentage),
        format_version=version,
        items=list(items),
    )


# ============================================================
# Encode
# ============================================================
def single_line(text: Optional[str]) -> str:
    """Collapse line breaks so user text cannot start a line of its own."""
    return LINE_BREAKS.sub(" ", text or "").strip()


def _preamble_lines(notes: Optional[str]) -> List[str]:
    lines = []
    for line in (notes or "").strip().splitlines():
        if BLOCK_PATTERN.match(line):
            line = f"  {line}"
        lines.append(line)
    return lines


def _item_line(glyph: str, item: ChecklistItemResult) -> str:
    line = f"{glyph} {single_line(item.text)}"
    note = single_line(item.notes)
    if note:
        line += f" (Note: {note})"
    return line


def encode_report(
    checklist_title: Optional[str],
    items: Sequence[ChecklistItemResult],
    notes: Optional[str] = None,
) -> str:
    """
    Build a report body.

    `checklist_title` of None means the visit used no checklist and the
    structured block is left out entirely.
    """
    lines: List[str] = [VERSION_MARKER]

    lines.extend(_preamble_lines(notes))

    if checklist_title is None:
        return "\n".join(lines)

    done = [item for item in items if item.completed]
    not_done = [item for item in items if not item.completed]

    lines.append("")
    lines.append(BLOCK_HEADER.format(title=single_line(checklist_title)))
    lines.append(SUMMARY_LINE.format(completed=len(done), total=len(items)))

    if done:
        lines.append("")
        lines.append("Completed items:")
        lines.extend(_item_line(COMPLETED_GLYPH, item) for item in done)

    if not_done:
        lines.append("")
        lines.append("Incomplete items:")
        lines.extend(_item_line(INCOMPLETE_GLYPH, item) for item in not_done)

    return "\n".join(lines)


def summarize_items(
    checklist_title: Optional[str],
    items: Iterable[ChecklistItemResult],
) -> VisitReport:
    """Structured report straight from live input, item list included."""
    items = list(items)
    if checklist_title is None:
        return VisitReport(format_version=REPORT_FORMAT_VERSION)
    completed = sum(1 for item in items if item.completed)
    return _report(checklist_title, completed, len(items), REPORT_FORMAT_VERSION, items)


# ============================================================
# Decode
# ============================================================
def report_version(body: Optional[str]) -> int:
    """Format version of a body; 0 for legacy, unmarked records."""
    if not body:
        return 0
    match = VERSION_PATTERN.match(body)
    return int(match.group(1)) if match else 0


def decode_report(body: Optional[str]) -> VisitReport:
    """
    Parse completion counts out of a report body.

    A missing summary line is "no data", not an error. Item lists are
    not rebuilt.
    """
    if not body:
        return VisitReport()

    version = report_version(body)
    if version > REPORT_FORMAT_VERSION:
        logger.debug(f"Decoding visit report v{version} with v{REPORT_FORMAT_VERSION} rules")

    if version >= 1:
        block = V1_BLOCK_PATTERN.search(body)
        if block is None:
            return VisitReport(format_version=version)
        completed, total = int(block.group(2)), int(block.group(3))
        return _report(block.group(1), completed, total, version)

    header = BLOCK_PATTERN.search(body)
    title = header.group(1) if header else None

    match = SUMMARY_PATTERN.search(body)
    if match is None:
        return VisitReport(checklist_title=title, format_version=version)

    completed, total = int(match.group(1)), int(match.group(2))
    return _report(title, completed, total, version)
