"""
PDF Renderer - FormattedReport → paginated PDF
==============================================

Lays the report out with fpdf2 on A4 pages:

  page 1       – cover: logo, report heading, campaign title, contact lines, date
  page 2       – contents: one linked line per section with its page number
  page 3 ...   – each section on a new page, headings / paragraphs / tables

Pages after the cover carry a running header (report heading and title) and
every page a "Generated ... / Page N" footer. The contents page is reserved
up front and filled in when the document is output, so its page numbers are
the real ones.

Core fonts only cover Latin-1; anything else is replaced with '?'.
"""

import logging
from datetime import date
from io import BytesIO

from fpdf import FPDF, XPos, YPos

from campaign_formatter import filter_sections
from report_options import DEFAULT_STYLE, logo_image_type, report_heading

logger = logging.getLogger(__name__)

PDF_MIMETYPE = 'application/pdf'

# Cover logo box (mm)
LOGO_W = 40
LOGO_H = 20

TOC_TITLE = 'Contents'
MUTED_COLOR = (120, 120, 120)
RULE_COLOR = (200, 200, 200)


# ═════════════════════════════════════════════════════════════════════════════
# TEXT UTILITIES
# ═════════════════════════════════════════════════════════════════════════════

def _pdf_safe_text(text):
    if text is None:
        return ''
    return str(text).encode('latin-1', 'replace').decode('latin-1')


def _wrap_pdf_line(pdf, text, max_w):
    """Greedy word wrap to max_w; words wider than a line are split by character."""
    if text is None:
        return ['']
    safe_text = _pdf_safe_text(text)
    if max_w <= 0:
        return [safe_text]
    words = safe_text.split(' ')
    if not words:
        return ['']

    lines = []
    current = ''
    for word in words:
        if word == '':
            continue
        candidate = word if not current else f'{current} {word}'
        if pdf.get_string_width(candidate) <= max_w:
            current = candidate
            continue

        if current:
            lines.append(current)
            current = ''

        if pdf.get_string_width(word) <= max_w:
            current = word
            continue

        chunk = ''
        for ch in word:
            if not chunk or pdf.get_string_width(chunk + ch) <= max_w:
                chunk += ch
            else:
                lines.append(chunk)
                chunk = ch
        current = chunk

    if current:
        lines.append(current)
    return lines if lines else [safe_text]


def _wrap_text(pdf, text, max_w):
    """Wrap each source line separately so explicit newlines survive."""
    lines = []
    for raw in (text or '').split('\n'):
        lines.extend(_wrap_pdf_line(pdf, raw, max_w) if raw.strip() else [''])
    return lines


def _pdf_ensure_space(pdf, height_needed):
    if pdf.get_y() + height_needed > pdf.h - pdf.b_margin:
        pdf.add_page()


# ═════════════════════════════════════════════════════════════════════════════
# DOCUMENT
# ═════════════════════════════════════════════════════════════════════════════

class CampaignPDF(FPDF):
    """
    A4 report with a running header from page 2 and a page-number footer.
    section_pages maps each rendered section title to its first page.
    """

    def __init__(self, header_title, generated_on, style):
        super().__init__(orientation='P', unit='mm', format='A4')
        self.header_title = header_title
        self.generated_on = generated_on
        self.report_style = style
        self.section_pages = {}
        # Page left open by the contents placeholder, reused by the first section.
        self.blank_page = None

    def use_text_color(self, color=None):
        self.set_text_color(*(color or self.report_style.text_color))

    def header(self):
        if self.page_no() == 1:
            return
        self.set_text_color(*MUTED_COLOR)
        self.set_font(self.report_style.font_family, '', 8)
        self.cell(0, 5, _pdf_safe_text(self.header_title), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        self.set_draw_color(*RULE_COLOR)
        self.line(self.l_margin, self.get_y(), self.w - self.r_margin, self.get_y())
        self.ln(4)
        self.use_text_color()

    def footer(self):
        self.set_y(-12)
        self.set_text_color(*MUTED_COLOR)
        self.set_font(self.report_style.font_family, '', 8)
        left_w = self.content_width * 0.6
        right_w = self.content_width - left_w
        self.cell(left_w, 4, _pdf_safe_text(f'Generated {self.generated_on}'),
                  new_x=XPos.RIGHT, new_y=YPos.TOP, align='L')
        self.cell(right_w, 4, f'Page {self.page_no()}',
                  new_x=XPos.RIGHT, new_y=YPos.TOP, align='R')
        self.use_text_color()

    @property
    def content_width(self):
        return self.w - self.l_margin - self.r_margin

    def start_report_section(self, title):
        """New page, recorded for the contents page and the PDF outline."""
        if self.blank_page == self.page_no():
            self.blank_page = None
        else:
            self.add_page()
        self.section_pages[title] = self.page_no()
        self.start_section(_pdf_safe_text(title), level=0)


# ═════════════════════════════════════════════════════════════════════════════
# BLOCK WRITERS
# ═════════════════════════════════════════════════════════════════════════════

def _pdf_add_section_title(pdf, text):
    style = pdf.report_style
    pdf.set_font(style.font_family, 'B', style.section_size)
    pdf.use_text_color(style.primary_color)
    for line in _wrap_pdf_line(pdf, text, pdf.content_width):
        pdf.cell(0, 9, line, new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.set_draw_color(*style.primary_color)
    pdf.line(pdf.l_margin, pdf.get_y(), pdf.w - pdf.r_margin, pdf.get_y())
    pdf.use_text_color()
    pdf.ln(4)


def _pdf_add_heading(pdf, text, level):
    style = pdf.report_style
    size = style.heading_size_for(level)
    # Keep a heading with at least a line of what follows it.
    _pdf_ensure_space(pdf, 16)
    pdf.ln(1)
    pdf.set_font(style.font_family, 'B', size)
    pdf.use_text_color(style.primary_color)
    for line in _wrap_pdf_line(pdf, text, pdf.content_width):
        pdf.cell(0, size * 0.5, line, new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.use_text_color()
    pdf.ln(1)


def _pdf_add_paragraph(pdf, text, line_h=6):
    pdf.set_font(pdf.report_style.font_family, '', pdf.report_style.body_size)
    for line in _wrap_text(pdf, text, pdf.content_width):
        pdf.cell(0, line_h, line, new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.ln(2)


def _pdf_table_row(pdf, cells, col_w, line_h, is_header):
    """One table row; every cell is as tall as the tallest wrapped cell."""
    style = pdf.report_style
    pdf.set_font(style.font_family, 'B' if is_header else '', style.table_size)
    pad = 1.5
    wrapped = [_wrap_text(pdf, cell, col_w - 2 * pad) for cell in cells]
    row_h = max(len(lines) for lines in wrapped) * line_h + 2 * pad
    _pdf_ensure_space(pdf, row_h)

    fill = style.table_header_fill if is_header else style.table_body_fill
    pdf.set_fill_color(*fill)
    pdf.set_draw_color(*style.table_border_color)
    pdf.use_text_color(style.table_header_text if is_header else None)

    x0 = pdf.l_margin
    y0 = pdf.get_y()
    for i, lines in enumerate(wrapped):
        x = x0 + i * col_w
        pdf.rect(x, y0, col_w, row_h, 'DF')
        for j, line in enumerate(lines):
            pdf.set_xy(x + pad, y0 + pad + j * line_h)
            pdf.cell(col_w - 2 * pad, line_h, line)
    pdf.set_xy(x0, y0 + row_h)
    pdf.use_text_color()


def _pdf_add_table(pdf, table, line_h=5):
    col_w = pdf.content_width / len(table.headers)
    _pdf_table_row(pdf, table.headers, col_w, line_h, is_header=True)
    for row in table.rows:
        _pdf_table_row(pdf, row, col_w, line_h, is_header=False)
    pdf.ln(4)


# ═════════════════════════════════════════════════════════════════════════════
# PAGES
# ═════════════════════════════════════════════════════════════════════════════

def _render_cover(pdf, report, branding, report_type):
    style = pdf.report_style
    pdf.add_page()

    if logo_image_type(branding.logo):
        pdf.image(BytesIO(branding.logo), x=pdf.l_margin, y=pdf.get_y(), w=LOGO_W, h=LOGO_H)
        pdf.ln(LOGO_H + 10)
    elif branding.logo:
        logger.warning("Logo is not PNG or JPEG; leaving it out of the PDF")

    pdf.set_font(style.font_family, 'B', style.title_size)
    pdf.use_text_color(style.primary_color)
    pdf.cell(0, 12, _pdf_safe_text(report_heading(report_type)), align='C',
             new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.ln(2)
    pdf.set_font(style.font_family, '', style.section_size)
    pdf.use_text_color()
    for line in _wrap_pdf_line(pdf, report.title, pdf.content_width):
        pdf.cell(0, 9, line, align='C', new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.ln(12)

    for i, line in enumerate(branding.contact_lines()):
        # Organization name first, in bold.
        pdf.set_font(style.font_family, 'B' if i == 0 else '', 12)
        pdf.cell(0, 7, _pdf_safe_text(line), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.ln(4)
    pdf.set_font(style.font_family, 'I', 10)
    pdf.cell(0, 6, _pdf_safe_text(f'Generated: {pdf.generated_on}'),
             new_x=XPos.LMARGIN, new_y=YPos.NEXT)


def _page_link(pdf, page):
    link = pdf.add_link()
    pdf.set_link(link, page=page)
    return link


def _render_toc(pdf, outline):
    """Fill the reserved contents page from the recorded section pages."""
    style = pdf.report_style
    _pdf_add_section_title(pdf, TOC_TITLE)
    pdf.set_font(style.font_family, '', style.body_size)
    for title, page in pdf.section_pages.items():
        pdf.cell(pdf.content_width - 20, 8, _pdf_safe_text(title),
                 new_x=XPos.RIGHT, new_y=YPos.TOP, link=_page_link(pdf, page))
        pdf.cell(20, 8, str(page), align='R', new_x=XPos.LMARGIN, new_y=YPos.NEXT)


def _render_section(pdf, section, tables):
    pdf.start_report_section(section.title)
    _pdf_add_section_title(pdf, section.title)

    for block in section.blocks:
        if block.kind == 'heading':
            _pdf_add_heading(pdf, block.text, block.level)

        elif block.kind == 'paragraph':
            _pdf_add_paragraph(pdf, block.text)

        elif block.kind == 'table_ref':
            table = tables.get(block.table_id)
            if table is None:
                logger.warning("Table %s referenced in '%s' is missing; skipped",
                               block.table_id, section.title)
                continue
            _pdf_add_table(pdf, table)


def build_pdf(report, branding, report_type, style=DEFAULT_STYLE, generated_on=None):
    """
    Lay out the cover, the contents page and every section the report type
    includes. The contents page is filled in when the document is output.
    """
    generated_on = generated_on or date.today().strftime('%B %d, %Y')
    sections = filter_sections(report, report_type)

    pdf = CampaignPDF(f'{report_heading(report_type)}: {report.title}', generated_on, style)
    pdf.set_margins(style.page_margin, style.page_margin, style.page_margin)
    pdf.set_auto_page_break(auto=True, margin=style.page_margin)
    pdf.set_title(_pdf_safe_text(report.title))
    pdf.set_author(_pdf_safe_text(branding.organization_name))

    _render_cover(pdf, report, branding, report_type)

    if sections:
        pdf.add_page()
        toc_page = pdf.page_no()
        pdf.insert_toc_placeholder(_render_toc, pages=1)
        if pdf.page_no() > toc_page:
            # The placeholder already moved on to a fresh page.
            pdf.blank_page = pdf.page_no()

    for section in sections:
        _render_section(pdf, section, report.tables)

    return pdf


def render_pdf(report, branding, report_type, style=DEFAULT_STYLE, generated_on=None):
    """Render the report for one report type and return the PDF bytes."""
    pdf = build_pdf(report, branding, report_type, style=style, generated_on=generated_on)
    output = bytes(pdf.output())
    logger.info("Rendered %s PDF for '%s' (%d pages, %d bytes)",
                report_type, report.title, pdf.pages_count, len(output))
    return output
