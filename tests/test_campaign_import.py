import json

import pytest

from campaign_import import (
    CampaignContent,
    CampaignImportError,
    campaign_from_dict,
    is_valid_campaign_data,
    load_campaign_file,
    parse_campaign_json,
)


def _payload(**overrides):
    data = {
        "id": "c-42",
        "summary": {"purpose": "Spring Drive", "audience": "Parents"},
        "messagingGuide": "# Message\nKeep it local.",
        "actionPlan": "Week one: plan.",
        "createdAt": "2024-03-01",
    }
    data.update(overrides)
    return data


def test_valid_payload_is_normalized():
    campaign = campaign_from_dict(_payload())
    assert campaign.id == "c-42"
    assert campaign.purpose == "Spring Drive"
    assert campaign.messaging_guide.startswith("# Message")
    assert campaign.step1_analysis == ""
    assert campaign.executive_summary == ""
    assert campaign.extra == {"createdAt": "2024-03-01"}


@pytest.mark.parametrize("data", [
    None,
    [],
    "text",
    {},
    {"summary": {"purpose": "P"}},
    {"summary": {}, "actionPlan": "Plan"},
    {"summary": "P", "actionPlan": "Plan"},
    {"messagingGuide": "Guide"},
    {"summary": {"purpose": 2024}, "actionPlan": "Plan"},
    {"summary": {"purpose": ["x"]}, "actionPlan": "Plan"},
    {"summary": {"purpose": "   "}, "actionPlan": "Plan"},
])
def test_invalid_payloads(data):
    assert not is_valid_campaign_data(data)
    with pytest.raises(CampaignImportError):
        campaign_from_dict(data)


def test_analysis_alone_counts_as_messaging_content():
    assert is_valid_campaign_data({"summary": {"purpose": "P"}, "step1Analysis": "A"})


def test_missing_id_is_generated():
    data = _payload()
    del data["id"]
    campaign = campaign_from_dict(data)
    assert campaign.id.startswith("campaign-")
    assert campaign.id[len("campaign-"):].isdigit()


def test_non_text_field_is_rejected():
    with pytest.raises(CampaignImportError):
        campaign_from_dict(_payload(actionPlan=["a", "b"]))


def test_malformed_json_is_rejected():
    with pytest.raises(CampaignImportError, match="Failed to parse"):
        parse_campaign_json("{not json")


def test_as_dict_round_trips_the_import():
    data = _payload()
    campaign = parse_campaign_json(json.dumps(data))
    assert campaign_from_dict(campaign.as_dict()) == campaign
    assert campaign.as_dict()["createdAt"] == "2024-03-01"


def test_replace_returns_updated_copy():
    campaign = campaign_from_dict(_payload())
    updated = campaign.replace(executive_summary="Summary")
    assert updated.executive_summary == "Summary"
    assert campaign.executive_summary == ""
    assert updated.id == campaign.id
    with pytest.raises(TypeError):
        campaign.replace(title="nope")


def test_load_campaign_file(tmp_path):
    path = tmp_path / "campaign.json"
    path.write_text(json.dumps(_payload()), encoding="utf-8")
    campaign = load_campaign_file(str(path))
    assert isinstance(campaign, CampaignContent)
    assert campaign.purpose == "Spring Drive"


def test_purpose_is_text_only():
    campaign = CampaignContent(id="x", summary={"purpose": 7}, action_plan="Plan")
    assert campaign.purpose == ""
    assert "purpose=''" in repr(campaign)
