"""
Campaign Report Formatter - Block Parser & Report Assembler
===========================================================

Turns the free-form text fields of an imported campaign into a typed
document model that both renderers (DOCX and PDF) consume:

  1. TABLE PARSER  – pipe-delimited lines  → Table (headers + rows)
  2. SECTION       – one text field        → ordered Heading / Paragraph / TableRef blocks
  3. ASSEMBLER     – whole campaign        → FormattedReport (title, sections, tables)
  4. FILTER        – report type           → which sections a given export shows

Section order is fixed:
  Executive Summary → Strategic Analysis → Messaging Guide → Action Plan
"""

import enum
import logging
import re

logger = logging.getLogger(__name__)

# ─── Section titles & table-ID prefixes ──────────────────────────────────────

EXECUTIVE_SUMMARY = 'Executive Summary'
STRATEGIC_ANALYSIS = 'Strategic Analysis'
MESSAGING_GUIDE = 'Messaging Guide'
ACTION_PLAN = 'Action Plan'

# (title, CampaignContent attribute, table-ID prefix). The executive summary
# is kept literal, so it never produces tables and has no prefix.
SECTION_SOURCES = (
    (EXECUTIVE_SUMMARY, 'executive_summary', None),
    (STRATEGIC_ANALYSIS, 'step1_analysis', 'analysis'),
    (MESSAGING_GUIDE, 'messaging_guide', 'messaging'),
    (ACTION_PLAN, 'action_plan', 'action'),
)

DEFAULT_REPORT_TITLE = 'Untitled Campaign'

REPORT_TYPE_SECTIONS = {
    'combined': frozenset((EXECUTIVE_SUMMARY, STRATEGIC_ANALYSIS, MESSAGING_GUIDE, ACTION_PLAN)),
    'messaging': frozenset((EXECUTIVE_SUMMARY, STRATEGIC_ANALYSIS, MESSAGING_GUIDE)),
    'action': frozenset((EXECUTIVE_SUMMARY, ACTION_PLAN)),
}

TABLE_DELIMITER = '|'
HEADING_MARKER = '#'
MAX_HEADING_LEVEL = 6

HEADING_RE = re.compile(r'^(#+)\s+(.*)$')
SEPARATOR_CELL_RE = re.compile(r'^[-:]+$')


# ═════════════════════════════════════════════════════════════════════════════
# MODEL — Blocks, tables, sections
# ═════════════════════════════════════════════════════════════════════════════

class _Value:
    """Value semantics shared by the model classes."""

    def __eq__(self, other):
        return type(self) is type(other) and self.__dict__ == other.__dict__

    def __ne__(self, other):
        return not self == other

    __hash__ = None


class HeadingBlock(_Value):
    """A heading line; level 1-6 comes from the number of leading markers."""
    kind = 'heading'

    def __init__(self, text, level):
        self.text = text
        self.level = level

    def as_dict(self):
        return {'type': self.kind, 'text': self.text, 'level': self.level}

    def __repr__(self):
        return f"HeadingBlock({self.level}, '{self.text[:50]}')"


class ParagraphBlock(_Value):
    """One logical paragraph of body text."""
    kind = 'paragraph'

    def __init__(self, text):
        self.text = text

    def as_dict(self):
        return {'type': self.kind, 'text': self.text}

    def __repr__(self):
        return f"ParagraphBlock('{self.text[:50]}...')"


class TableRefBlock(_Value):
    """Placeholder pointing at an entry of FormattedReport.tables."""
    kind = 'table_ref'

    def __init__(self, table_id):
        self.table_id = table_id

    def as_dict(self):
        return {'type': self.kind, 'tableId': self.table_id}

    def __repr__(self):
        return f"TableRefBlock('{self.table_id}')"


class Table(_Value):
    """A parsed table: header cells plus data rows of the same width."""

    def __init__(self, headers, rows):
        self.headers = headers
        self.rows = rows

    def as_dict(self):
        return {'headers': list(self.headers), 'rows': [list(r) for r in self.rows]}

    def __repr__(self):
        return f"Table({len(self.headers)} cols, {len(self.rows)} rows)"


class Section(_Value):
    """Formatted output of one campaign field."""

    def __init__(self, title, blocks):
        self.title = title
        self.blocks = blocks

    def as_dict(self):
        return {'title': self.title, 'blocks': [b.as_dict() for b in self.blocks]}

    def __repr__(self):
        return f"Section('{self.title}', {len(self.blocks)} blocks)"


class FormattedReport(_Value):
    """Title, ordered sections, and every extracted table keyed by ID."""

    def __init__(self, title, sections, tables):
        self.title = title
        self.sections = sections
        self.tables = tables

    def section_titles(self):
        return [s.title for s in self.sections]

    def as_dict(self, report_type=None):
        """
        JSON-ready report. With a report type, only its sections and the
        tables those sections reference are included.
        """
        if report_type is None:
            sections, tables = self.sections, self.tables
        else:
            sections = filter_sections(self, report_type)
            referenced = {b.table_id for s in sections for b in s.blocks if b.kind == 'table_ref'}
            tables = {tid: t for tid, t in self.tables.items() if tid in referenced}
        return {
            'title': self.title,
            'sections': [s.as_dict() for s in sections],
            'tables': {tid: t.as_dict() for tid, t in tables.items()},
        }

    def __repr__(self):
        return f"FormattedReport('{self.title}', {len(self.sections)} sections, {len(self.tables)} tables)"


# ═════════════════════════════════════════════════════════════════════════════
# TABLE PARSER — pipe-delimited lines into a Table
# ═════════════════════════════════════════════════════════════════════════════

def is_table_line(line):
    """True if the trimmed line starts and ends with the pipe delimiter."""
    line = line.strip()
    return len(line) >= 2 and line.startswith(TABLE_DELIMITER) and line.endswith(TABLE_DELIMITER)


def _split_table_row(line):
    """Strip the outer delimiters and split a row into trimmed cells."""
    line = line.strip()
    if line.startswith(TABLE_DELIMITER):
        line = line[1:]
    if line.endswith(TABLE_DELIMITER):
        line = line[:-1]
    return [cell.strip() for cell in line.split(TABLE_DELIMITER)]


def _is_separator_row(cells):
    return all(SEPARATOR_CELL_RE.match(cell) for cell in cells)


def parse_table_lines(lines):
    """
    Parse the lines of one pipe table into a Table.

    Row 0 is the header, row 1 the separator (always skipped, never checked).
    Data rows whose width differs from the header are dropped, as are rows
    made only of dash/colon cells. Returns None when fewer than 3 lines are
    given, the header is blank, or no data row survives.
    """
    if len(lines) < 3:
        return None

    headers = _split_table_row(lines[0])
    if not any(headers):
        return None

    rows = []
    for line in lines[2:]:
        cells = _split_table_row(line)
        if len(cells) != len(headers):
            logger.debug("Dropping table row with %d cells (expected %d): %r",
                         len(cells), len(headers), line)
            continue
        if _is_separator_row(cells):
            continue
        rows.append(cells)

    if not rows:
        return None

    return Table(headers, rows)


# ═════════════════════════════════════════════════════════════════════════════
# SECTION FORMATTER — line walker with an explicit state machine
# ═════════════════════════════════════════════════════════════════════════════

class ParserState(enum.Enum):
    IDLE = 'idle'
    IN_PARAGRAPH = 'in_paragraph'
    IN_TABLE = 'in_table'


class LineKind(enum.Enum):
    TABLE_ROW = 'table_row'
    HEADING = 'heading'
    BLANK = 'blank'
    TEXT = 'text'


def classify_line(line):
    """
    Classify one raw line. Returns (LineKind, payload) where payload is the
    trimmed line, or (level, text) for headings.
    """
    stripped = line.strip()
    if not stripped:
        return LineKind.BLANK, ''
    if is_table_line(stripped):
        return LineKind.TABLE_ROW, stripped
    match = HEADING_RE.match(stripped)
    if match and match.group(2).strip():
        level = min(len(match.group(1)), MAX_HEADING_LEVEL)
        return LineKind.HEADING, (level, match.group(2).strip())
    return LineKind.TEXT, stripped


class _SectionBuilder:
    """
    Output and accumulators for one section. The transition functions below
    decide what happens to each line; this object only collects results.
    """

    def __init__(self, prefix):
        self.prefix = prefix
        self.blocks = []
        self.tables = {}
        self.paragraph_lines = []
        self.table_lines = []
        self.table_counter = 0

    def flush_paragraph(self):
        if self.paragraph_lines:
            self.blocks.append(ParagraphBlock(' '.join(self.paragraph_lines)))
            self.paragraph_lines = []

    def flush_table(self):
        if not self.table_lines:
            return
        lines, self.table_lines = self.table_lines, []
        table = parse_table_lines(lines)
        if table is None:
            # Keep the user's text rather than losing it.
            logger.debug("Pipe lines did not form a table; keeping %d line(s) as text", len(lines))
            self.blocks.append(ParagraphBlock('\n'.join(lines)))
            return
        self.table_counter += 1
        table_id = f'{self.prefix}_table_{self.table_counter}'
        self.tables[table_id] = table
        self.blocks.append(TableRefBlock(table_id))


def _leave_table(state, builder):
    """Any non-table line ends a pending table."""
    if state is ParserState.IN_TABLE:
        builder.flush_table()
        return ParserState.IDLE
    return state


def _on_table_row(state, builder, line):
    if state is ParserState.IN_PARAGRAPH:
        builder.flush_paragraph()
    builder.table_lines.append(line)
    return ParserState.IN_TABLE


def _on_heading(state, builder, heading):
    builder.flush_paragraph()
    level, text = heading
    builder.blocks.append(HeadingBlock(text, level))
    return ParserState.IDLE


def _on_blank(state, builder, _):
    builder.flush_paragraph()
    return ParserState.IDLE


def _on_text(state, builder, line):
    builder.paragraph_lines.append(line)
    return ParserState.IN_PARAGRAPH


TRANSITIONS = {
    LineKind.TABLE_ROW: _on_table_row,
    LineKind.HEADING: _on_heading,
    LineKind.BLANK: _on_blank,
    LineKind.TEXT: _on_text,
}


def step(state, builder, line):
    """Feed one line to the parser and return the next state."""
    kind, payload = classify_line(line)
    if kind is not LineKind.TABLE_ROW:
        state = _leave_table(state, builder)
    return TRANSITIONS[kind](state, builder, payload)


def format_section(text, prefix):
    """
    Convert one field's text into (blocks, tables).

    Headings, paragraphs and table references come out in source order.
    Table IDs are '{prefix}_table_{n}', n counting from 1 within this section.
    """
    builder = _SectionBuilder(prefix)
    state = ParserState.IDLE
    for line in text.splitlines():
        state = step(state, builder, line)

    builder.flush_paragraph()
    builder.flush_table()
    return builder.blocks, builder.tables


def format_literal_section(text):
    """The whole text as one paragraph, untouched."""
    return [ParagraphBlock(text)]


# ═════════════════════════════════════════════════════════════════════════════
# ASSEMBLER — campaign content into a FormattedReport
# ═════════════════════════════════════════════════════════════════════════════

def _has_content(value):
    return isinstance(value, str) and bool(value.strip())


def report_title(campaign):
    """summary.purpose, or the default title when it is missing or blank."""
    purpose = (campaign.summary or {}).get('purpose')
    if _has_content(purpose):
        return purpose
    return DEFAULT_REPORT_TITLE


def assemble_report(campaign):
    """
    Build a FormattedReport from a CampaignContent.

    Empty fields are skipped. A field that fails to format is logged and kept
    as a single literal paragraph so the rest of the report still assembles.
    """
    sections = []
    tables = {}

    for title, attr, prefix in SECTION_SOURCES:
        text = getattr(campaign, attr, None)
        if not _has_content(text):
            continue

        if prefix is None:
            blocks = format_literal_section(text)
        else:
            try:
                blocks, section_tables = format_section(text, prefix)
            except Exception:
                logger.exception("Failed to format section '%s'; using literal text", title)
                blocks, section_tables = format_literal_section(text), {}
            tables.update(section_tables)

        sections.append(Section(title, blocks))

    report = FormattedReport(report_title(campaign), sections, tables)
    logger.debug("Assembled %r", report)
    return report


# ═════════════════════════════════════════════════════════════════════════════
# FILTER — which sections each report type shows
# ═════════════════════════════════════════════════════════════════════════════

def include_section(section_title, report_type):
    """True if a section with this title belongs in the given report type."""
    return section_title in REPORT_TYPE_SECTIONS.get(report_type, ())


def filter_sections(report, report_type):
    """The report's sections that the given report type includes, in order."""
    return [s for s in report.sections if include_section(s.title, report_type)]
