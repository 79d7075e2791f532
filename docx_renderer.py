"""
DOCX Renderer - FormattedReport → WordprocessingML package
==========================================================

Builds the .docx from scratch with lxml and zipfile; no template file is
needed. Package parts:

  [Content_Types].xml
  _rels/.rels
  word/document.xml            – cover page + one page-broken block per section
  word/styles.xml              – Normal / Title / Subtitle / Heading1-6 / TableText
  word/_rels/document.xml.rels
  word/media/logo.(png|jpeg)   – only when the branding carries a logo

Only the sections the report type includes are written (see
campaign_formatter.filter_sections).
"""

import io
import logging
import re
import zipfile
from datetime import date

from lxml import etree

from campaign_formatter import filter_sections
from report_options import DEFAULT_STYLE, logo_image_type, report_heading

logger = logging.getLogger(__name__)

# ─── Namespace map ───────────────────────────────────────────────────────────
NSMAP = {
    'w':   'http://schemas.openxmlformats.org/wordprocessingml/2006/main',
    'r':   'http://schemas.openxmlformats.org/officeDocument/2006/relationships',
    'wp':  'http://schemas.openxmlformats.org/drawingml/2006/wordprocessingDrawing',
    'a':   'http://schemas.openxmlformats.org/drawingml/2006/main',
    'pic': 'http://schemas.openxmlformats.org/drawingml/2006/picture',
}

W = NSMAP['w']
CT_NS = 'http://schemas.openxmlformats.org/package/2006/content-types'
PR_NS = 'http://schemas.openxmlformats.org/package/2006/relationships'
XML_SPACE = '{http://www.w3.org/XML/1998/namespace}space'

REL_OFFICE_DOCUMENT = 'http://schemas.openxmlformats.org/officeDocument/2006/relationships/officeDocument'
REL_STYLES = 'http://schemas.openxmlformats.org/officeDocument/2006/relationships/styles'
REL_IMAGE = 'http://schemas.openxmlformats.org/officeDocument/2006/relationships/image'

CT_MAIN = 'application/vnd.openxmlformats-officedocument.wordprocessingml.document.main+xml'
CT_STYLES = 'application/vnd.openxmlformats-officedocument.wordprocessingml.styles+xml'
CT_RELS = 'application/vnd.openxmlformats-package.relationships+xml'

DOCX_MIMETYPE = 'application/vnd.openxmlformats-officedocument.wordprocessingml.document'


def wn(tag):
    """Create a tag in the w: namespace."""
    return f'{{{W}}}{tag}'


def wattr(attr):
    """Create an attribute name in the w: namespace."""
    return f'{{{W}}}{attr}'


def ns(prefix, tag):
    return f'{{{NSMAP[prefix]}}}{tag}'


# ─── Page geometry (twips unless noted) ──────────────────────────────────────

PAGE_WIDTH = 11906    # A4
PAGE_HEIGHT = 16838
TWIPS_PER_MM = 56.7
EMU_PER_MM = 36000

LOGO_WIDTH_MM = 40
LOGO_HEIGHT_MM = 20

# Style IDs
STYLE_NORMAL = 'Normal'
STYLE_TITLE = 'Title'
STYLE_SUBTITLE = 'Subtitle'
STYLE_TABLE_TEXT = 'TableText'

# Characters XML 1.0 cannot carry.
_INVALID_XML_CHARS = re.compile(r'[\x00-\x08\x0b\x0c\x0e-\x1f]')


def heading_style(level):
    return f'Heading{min(max(level, 1), 6)}'


def _clean(text):
    return _INVALID_XML_CHARS.sub('', text or '')


def _half_points(pt):
    return str(int(pt * 2))


# ═════════════════════════════════════════════════════════════════════════════
# PARAGRAPH BUILDERS
# ═════════════════════════════════════════════════════════════════════════════

def _add_text(run, text):
    """Add text to a run; newlines become <w:br/>."""
    for i, line in enumerate(_clean(text).split('\n')):
        if i:
            etree.SubElement(run, wn('br'))
        t = etree.SubElement(run, wn('t'))
        t.text = line
        t.set(XML_SPACE, 'preserve')


def _make_para(style_id, text='', bold=False, page_break_before=False,
               spacing_after=None, align=None):
    """A single-run paragraph in the given style."""
    para = etree.Element(wn('p'))
    ppr = etree.SubElement(para, wn('pPr'))
    pstyle = etree.SubElement(ppr, wn('pStyle'))
    pstyle.set(wattr('val'), style_id)

    if page_break_before:
        etree.SubElement(ppr, wn('pageBreakBefore'))

    if spacing_after is not None:
        sp = etree.SubElement(ppr, wn('spacing'))
        sp.set(wattr('after'), spacing_after)

    if align:
        jc = etree.SubElement(ppr, wn('jc'))
        jc.set(wattr('val'), align)

    if text:
        run = etree.SubElement(para, wn('r'))
        if bold:
            rpr = etree.SubElement(run, wn('rPr'))
            etree.SubElement(rpr, wn('b'))
        _add_text(run, text)

    return para


def _make_body_para(text):
    """Normal style, no indent. Standard body paragraph."""
    return _make_para(STYLE_NORMAL, text)


def _make_heading_para(text, level, page_break_before=False):
    """HeadingN style; the style carries size, weight and colour."""
    return _make_para(heading_style(level), text, page_break_before=page_break_before)


def _make_logo_para(rel_id, image_type):
    """Inline picture paragraph for the cover logo."""
    cx = str(LOGO_WIDTH_MM * EMU_PER_MM)
    cy = str(LOGO_HEIGHT_MM * EMU_PER_MM)

    para = etree.Element(wn('p'))
    run = etree.SubElement(para, wn('r'))
    drawing = etree.SubElement(run, wn('drawing'))

    inline = etree.SubElement(drawing, ns('wp', 'inline'))
    for side in ('distT', 'distB', 'distL', 'distR'):
        inline.set(side, '0')
    extent = etree.SubElement(inline, ns('wp', 'extent'))
    extent.set('cx', cx)
    extent.set('cy', cy)
    doc_pr = etree.SubElement(inline, ns('wp', 'docPr'))
    doc_pr.set('id', '1')
    doc_pr.set('name', 'Logo')

    graphic = etree.SubElement(inline, ns('a', 'graphic'))
    graphic_data = etree.SubElement(graphic, ns('a', 'graphicData'))
    graphic_data.set('uri', NSMAP['pic'])

    pic = etree.SubElement(graphic_data, ns('pic', 'pic'))
    nv_pic_pr = etree.SubElement(pic, ns('pic', 'nvPicPr'))
    c_nv_pr = etree.SubElement(nv_pic_pr, ns('pic', 'cNvPr'))
    c_nv_pr.set('id', '0')
    c_nv_pr.set('name', f'logo.{image_type}')
    etree.SubElement(nv_pic_pr, ns('pic', 'cNvPicPr'))

    blip_fill = etree.SubElement(pic, ns('pic', 'blipFill'))
    blip = etree.SubElement(blip_fill, ns('a', 'blip'))
    blip.set(ns('r', 'embed'), rel_id)
    stretch = etree.SubElement(blip_fill, ns('a', 'stretch'))
    etree.SubElement(stretch, ns('a', 'fillRect'))

    sp_pr = etree.SubElement(pic, ns('pic', 'spPr'))
    xfrm = etree.SubElement(sp_pr, ns('a', 'xfrm'))
    off = etree.SubElement(xfrm, ns('a', 'off'))
    off.set('x', '0')
    off.set('y', '0')
    ext = etree.SubElement(xfrm, ns('a', 'ext'))
    ext.set('cx', cx)
    ext.set('cy', cy)
    geom = etree.SubElement(sp_pr, ns('a', 'prstGeom'))
    geom.set('prst', 'rect')
    etree.SubElement(geom, ns('a', 'avLst'))

    return para


# ═════════════════════════════════════════════════════════════════════════════
# TABLES
# ═════════════════════════════════════════════════════════════════════════════

def _content_width(style):
    return PAGE_WIDTH - 2 * int(style.page_margin * TWIPS_PER_MM)


def _make_table_xml(table, style):
    """
    Build a w:tbl element from a Table: shaded header row, tinted data rows,
    single borders in the style's border colour.
    """
    border_color = style.hex(style.table_border_color)
    tbl = etree.Element(wn('tbl'))

    # ── Table properties ──
    tbl_pr = etree.SubElement(tbl, wn('tblPr'))
    tbl_w = etree.SubElement(tbl_pr, wn('tblW'))
    tbl_w.set(wattr('w'), '5000')
    tbl_w.set(wattr('type'), 'pct')

    tbl_borders = etree.SubElement(tbl_pr, wn('tblBorders'))
    for side in ('top', 'left', 'bottom', 'right', 'insideH', 'insideV'):
        border = etree.SubElement(tbl_borders, wn(side))
        border.set(wattr('val'), 'single')
        border.set(wattr('sz'), '4')
        border.set(wattr('space'), '0')
        border.set(wattr('color'), border_color)

    # ── Grid columns ──
    num_cols = len(table.headers)
    col_w = _content_width(style) // num_cols
    tbl_grid = etree.SubElement(tbl, wn('tblGrid'))
    for _ in range(num_cols):
        gc = etree.SubElement(tbl_grid, wn('gridCol'))
        gc.set(wattr('w'), str(col_w))

    _add_table_row(tbl, table.headers, col_w, style, is_header=True)
    for row in table.rows:
        _add_table_row(tbl, row, col_w, style, is_header=False)

    return tbl


def _add_table_row(tbl, cells, col_w, style, is_header=False):
    """Add a table row (w:tr) with styled cells."""
    tr = etree.SubElement(tbl, wn('tr'))
    if is_header:
        tr_pr = etree.SubElement(tr, wn('trPr'))
        etree.SubElement(tr_pr, wn('tblHeader'))
    for text in cells:
        tr.append(_make_table_cell(text, col_w, style, is_header))


def _make_table_cell(text, col_w, style, is_header):
    """Create a single table cell (w:tc)."""
    tc = etree.Element(wn('tc'))
    tc_pr = etree.SubElement(tc, wn('tcPr'))
    tc_w = etree.SubElement(tc_pr, wn('tcW'))
    tc_w.set(wattr('w'), str(col_w))
    tc_w.set(wattr('type'), 'dxa')

    fill = style.table_header_fill if is_header else style.table_body_fill
    shd = etree.SubElement(tc_pr, wn('shd'))
    shd.set(wattr('val'), 'clear')
    shd.set(wattr('color'), 'auto')
    shd.set(wattr('fill'), style.hex(fill))

    para = etree.SubElement(tc, wn('p'))
    ppr = etree.SubElement(para, wn('pPr'))
    pstyle = etree.SubElement(ppr, wn('pStyle'))
    pstyle.set(wattr('val'), STYLE_TABLE_TEXT)

    run = etree.SubElement(para, wn('r'))
    if is_header:
        rpr = etree.SubElement(run, wn('rPr'))
        etree.SubElement(rpr, wn('b'))
        color = etree.SubElement(rpr, wn('color'))
        color.set(wattr('val'), style.hex(style.table_header_text))
    _add_text(run, text)

    return tc


# ═════════════════════════════════════════════════════════════════════════════
# DOCUMENT BODY
# ═════════════════════════════════════════════════════════════════════════════

def _build_cover(body, report, branding, report_type, generated_on, logo_rel):
    if logo_rel:
        body.append(_make_logo_para(*logo_rel))

    body.append(_make_para(STYLE_TITLE, report_heading(report_type), align='center'))
    body.append(_make_para(STYLE_SUBTITLE, report.title, align='center', spacing_after='480'))

    for i, line in enumerate(branding.contact_lines()):
        # Organization name first, in bold.
        body.append(_make_para(STYLE_NORMAL, line, bold=(i == 0)))
    body.append(_make_body_para(f'Generated: {generated_on}'))


def _build_section(body, section, tables, style):
    body.append(_make_heading_para(section.title, 1, page_break_before=True))

    for block in section.blocks:
        if block.kind == 'heading':
            # Section titles take Heading1, so block headings start at Heading2.
            body.append(_make_heading_para(block.text, block.level + 1))

        elif block.kind == 'paragraph':
            body.append(_make_body_para(block.text))

        elif block.kind == 'table_ref':
            table = tables.get(block.table_id)
            if table is None:
                logger.warning("Table %s referenced in '%s' is missing; skipped",
                               block.table_id, section.title)
                continue
            body.append(_make_table_xml(table, style))
            body.append(_make_body_para(''))


def build_document_xml(report, branding, report_type, style=DEFAULT_STYLE,
                       generated_on=None, logo_rel=None):
    """
    Build the w:document tree. logo_rel is (relationship id, image type)
    when a logo part is packaged alongside.
    """
    generated_on = generated_on or date.today().strftime('%B %d, %Y')

    root = etree.Element(wn('document'), nsmap=NSMAP)
    body = etree.SubElement(root, wn('body'))

    _build_cover(body, report, branding, report_type, generated_on, logo_rel)

    for section in filter_sections(report, report_type):
        _build_section(body, section, report.tables, style)

    margin = str(int(style.page_margin * TWIPS_PER_MM))
    sect_pr = etree.SubElement(body, wn('sectPr'))
    pg_sz = etree.SubElement(sect_pr, wn('pgSz'))
    pg_sz.set(wattr('w'), str(PAGE_WIDTH))
    pg_sz.set(wattr('h'), str(PAGE_HEIGHT))
    pg_mar = etree.SubElement(sect_pr, wn('pgMar'))
    for side in ('top', 'right', 'bottom', 'left'):
        pg_mar.set(wattr(side), margin)
    for side in ('header', 'footer'):
        pg_mar.set(wattr(side), '708')

    return root


# ═════════════════════════════════════════════════════════════════════════════
# STYLES
# ═════════════════════════════════════════════════════════════════════════════

def _make_style(styles, style_id, name, size, color, bold=False, based_on=None,
                outline_level=None, spacing_before=None, spacing_after=None):
    st = etree.SubElement(styles, wn('style'))
    st.set(wattr('type'), 'paragraph')
    st.set(wattr('styleId'), style_id)
    if style_id == STYLE_NORMAL:
        st.set(wattr('default'), '1')

    name_el = etree.SubElement(st, wn('name'))
    name_el.set(wattr('val'), name)
    if based_on:
        based = etree.SubElement(st, wn('basedOn'))
        based.set(wattr('val'), based_on)
        nxt = etree.SubElement(st, wn('next'))
        nxt.set(wattr('val'), STYLE_NORMAL)
    etree.SubElement(st, wn('qFormat'))

    ppr = etree.SubElement(st, wn('pPr'))
    if outline_level is not None:
        etree.SubElement(ppr, wn('keepNext'))
    sp = etree.SubElement(ppr, wn('spacing'))
    sp.set(wattr('before'), spacing_before or '0')
    sp.set(wattr('after'), spacing_after or '120')
    if outline_level is not None:
        outline = etree.SubElement(ppr, wn('outlineLvl'))
        outline.set(wattr('val'), str(outline_level))

    rpr = etree.SubElement(st, wn('rPr'))
    if bold:
        etree.SubElement(rpr, wn('b'))
    color_el = etree.SubElement(rpr, wn('color'))
    color_el.set(wattr('val'), color)
    sz = etree.SubElement(rpr, wn('sz'))
    sz.set(wattr('val'), _half_points(size))
    sz_cs = etree.SubElement(rpr, wn('szCs'))
    sz_cs.set(wattr('val'), _half_points(size))


def build_styles_xml(style=DEFAULT_STYLE):
    """word/styles.xml from the report style."""
    primary = style.hex(style.primary_color)
    text = style.hex(style.text_color)

    styles = etree.Element(wn('styles'), nsmap={'w': W})

    doc_defaults = etree.SubElement(styles, wn('docDefaults'))
    rpr_default = etree.SubElement(doc_defaults, wn('rPrDefault'))
    rpr = etree.SubElement(rpr_default, wn('rPr'))
    fonts = etree.SubElement(rpr, wn('rFonts'))
    for attr in ('ascii', 'hAnsi', 'cs'):
        fonts.set(wattr(attr), style.font_family)

    _make_style(styles, STYLE_NORMAL, 'Normal', style.body_size, text)
    _make_style(styles, STYLE_TITLE, 'Title', style.title_size, primary, bold=True,
                based_on=STYLE_NORMAL, spacing_before='480', spacing_after='240')
    _make_style(styles, STYLE_SUBTITLE, 'Subtitle', style.section_size, text,
                based_on=STYLE_NORMAL)
    _make_style(styles, heading_style(1), 'heading 1', style.section_size, primary, bold=True,
                based_on=STYLE_NORMAL, outline_level=0, spacing_after='240')
    for level in range(2, 7):
        # Block heading level n renders as Heading(n + 1).
        _make_style(styles, heading_style(level), f'heading {level}',
                    style.heading_size_for(level - 1), primary, bold=True,
                    based_on=STYLE_NORMAL, outline_level=level - 1, spacing_before='240')
    _make_style(styles, STYLE_TABLE_TEXT, 'Table Text', style.table_size, text,
                based_on=STYLE_NORMAL, spacing_after='0')

    return styles


# ═════════════════════════════════════════════════════════════════════════════
# PACKAGING
# ═════════════════════════════════════════════════════════════════════════════

def _content_types(image_type=None):
    types = etree.Element(f'{{{CT_NS}}}Types', nsmap={None: CT_NS})
    defaults = [('rels', CT_RELS), ('xml', 'application/xml')]
    if image_type:
        defaults.append((image_type, f'image/{image_type}'))
    for ext, content_type in defaults:
        d = etree.SubElement(types, f'{{{CT_NS}}}Default')
        d.set('Extension', ext)
        d.set('ContentType', content_type)
    for part, content_type in (('/word/document.xml', CT_MAIN), ('/word/styles.xml', CT_STYLES)):
        o = etree.SubElement(types, f'{{{CT_NS}}}Override')
        o.set('PartName', part)
        o.set('ContentType', content_type)
    return types


def _relationships(rels):
    root = etree.Element(f'{{{PR_NS}}}Relationships', nsmap={None: PR_NS})
    for rel_id, rel_type, target in rels:
        rel = etree.SubElement(root, f'{{{PR_NS}}}Relationship')
        rel.set('Id', rel_id)
        rel.set('Type', rel_type)
        rel.set('Target', target)
    return root


def _xml_bytes(root):
    return etree.tostring(root, xml_declaration=True, encoding='UTF-8', standalone=True)


def render_docx(report, branding, report_type, style=DEFAULT_STYLE, generated_on=None):
    """Render the report for one report type and return the .docx bytes."""
    image_type = logo_image_type(branding.logo)
    logo_rel = None
    doc_rels = [('rId1', REL_STYLES, 'styles.xml')]
    if image_type:
        logo_rel = ('rId2', image_type)
        doc_rels.append(('rId2', REL_IMAGE, f'media/logo.{image_type}'))
    elif branding.logo:
        logger.warning("Logo is not PNG or JPEG; leaving it out of the document")

    document = build_document_xml(report, branding, report_type, style=style,
                                  generated_on=generated_on, logo_rel=logo_rel)

    buf = io.BytesIO()
    with zipfile.ZipFile(buf, 'w', zipfile.ZIP_DEFLATED) as zf:
        zf.writestr('[Content_Types].xml', _xml_bytes(_content_types(image_type)))
        zf.writestr('_rels/.rels', _xml_bytes(_relationships(
            [('rId1', REL_OFFICE_DOCUMENT, 'word/document.xml')])))
        zf.writestr('word/document.xml', _xml_bytes(document))
        zf.writestr('word/styles.xml', _xml_bytes(build_styles_xml(style)))
        zf.writestr('word/_rels/document.xml.rels', _xml_bytes(_relationships(doc_rels)))
        if image_type:
            zf.writestr(f'word/media/logo.{image_type}', branding.logo)

    logger.info("Rendered %s DOCX for '%s' (%d bytes)", report_type, report.title, buf.tell())
    return buf.getvalue()
