import io
import zipfile

from lxml import etree

from campaign_formatter import assemble_report
from docx_renderer import NSMAP, render_docx

W = "{%s}" % NSMAP["w"]


def _open(content):
    return zipfile.ZipFile(io.BytesIO(content))


def _document(content):
    with _open(content) as zf:
        return etree.fromstring(zf.read("word/document.xml"))


def _texts(root):
    return ["".join(p.itertext()) for p in root.iter(W + "p")]


def _styled(root, style_id):
    found = []
    for p in root.iter(W + "p"):
        pstyle = p.find(f"{W}pPr/{W}pStyle")
        if pstyle is not None and pstyle.get(W + "val") == style_id:
            found.append("".join(p.itertext()))
    return found


def test_package_parts(campaign, branding):
    content = render_docx(assemble_report(campaign), branding, "combined", generated_on="May 1, 2024")
    with _open(content) as zf:
        names = set(zf.namelist())
    assert {
        "[Content_Types].xml",
        "_rels/.rels",
        "word/document.xml",
        "word/styles.xml",
        "word/_rels/document.xml.rels",
    } <= names
    assert not any(name.startswith("word/media/") for name in names)


def test_cover_and_sections(campaign, branding):
    root = _document(render_docx(assemble_report(campaign), branding, "combined",
                                 generated_on="May 1, 2024"))
    texts = _texts(root)
    assert "Campaign Report" in texts
    assert "Spring Drive" in texts
    assert "Friends of the Park" in texts
    assert "Generated: May 1, 2024" in texts
    assert _styled(root, "Heading1") == [
        "Executive Summary",
        "Strategic Analysis",
        "Messaging Guide",
        "Action Plan",
    ]
    assert "Phase 1" in _styled(root, "Heading2")
    assert "Channels" in _styled(root, "Heading3")


def test_tables_are_rendered(campaign, branding):
    root = _document(render_docx(assemble_report(campaign), branding, "action"))
    tables = list(root.iter(W + "tbl"))
    assert len(tables) == 1
    rows = [["".join(tc.itertext()) for tc in tr.iter(W + "tc")] for tr in tables[0].iter(W + "tr")]
    assert rows == [["Week", "Task"], ["1", "Plan"], ["2", "Execute"]]


def test_report_type_limits_sections(campaign, branding):
    root = _document(render_docx(assemble_report(campaign), branding, "action"))
    assert _styled(root, "Heading1") == ["Executive Summary", "Action Plan"]
    assert "Campaign Action Plan" in _texts(root)
    assert "We keep parks open." not in _texts(root)


def test_logo_is_packaged(campaign, branding_with_logo):
    content = render_docx(assemble_report(campaign), branding_with_logo, "messaging")
    with _open(content) as zf:
        assert zf.read("word/media/logo.png") == branding_with_logo.logo
        rels = zf.read("word/_rels/document.xml.rels").decode("utf-8")
        types = zf.read("[Content_Types].xml").decode("utf-8")
    assert "media/logo.png" in rels
    assert "image/png" in types
    root = _document(content)
    assert root.find(f".//{W}drawing") is not None


def test_literal_summary_keeps_line_breaks(campaign, branding):
    root = _document(render_docx(assemble_report(campaign), branding, "combined"))
    summary = [p for p in root.iter(W + "p") if "Line one." in "".join(p.itertext())][0]
    assert len(summary.findall(f".//{W}br")) == 2
