import pytest

from campaign_formatter import assemble_report, filter_sections, include_section


@pytest.mark.parametrize("title, report_type, expected", [
    ("Executive Summary", "combined", True),
    ("Executive Summary", "messaging", True),
    ("Executive Summary", "action", True),
    ("Strategic Analysis", "messaging", True),
    ("Strategic Analysis", "action", False),
    ("Messaging Guide", "messaging", True),
    ("Messaging Guide", "action", False),
    ("Action Plan", "action", True),
    ("Action Plan", "messaging", False),
    ("Action Plan", "combined", True),
])
def test_include_section(title, report_type, expected):
    assert include_section(title, report_type) is expected


def test_unknown_titles_and_types_are_excluded():
    assert not include_section("Appendix", "combined")
    assert not include_section("Action Plan", "everything")


def test_filter_keeps_order(campaign):
    report = assemble_report(campaign)
    assert [s.title for s in filter_sections(report, "action")] == ["Executive Summary", "Action Plan"]
    assert [s.title for s in filter_sections(report, "messaging")] == [
        "Executive Summary",
        "Strategic Analysis",
        "Messaging Guide",
    ]
    assert filter_sections(report, "combined") == report.sections


def test_as_dict_filters_by_report_type(campaign):
    data = assemble_report(campaign).as_dict("action")
    assert [s["title"] for s in data["sections"]] == ["Executive Summary", "Action Plan"]


def test_filtered_as_dict_keeps_only_referenced_tables(campaign):
    report = assemble_report(campaign)
    assert set(report.as_dict()["tables"]) == {"analysis_table_1", "action_table_1"}
    assert set(report.as_dict("action")["tables"]) == {"action_table_1"}
    assert set(report.as_dict("messaging")["tables"]) == {"analysis_table_1"}
