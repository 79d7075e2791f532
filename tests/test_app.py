import base64
import io
import json

import pytest

from app import app
from conftest import PNG_LOGO
from text_transform import TextTransform, TransformError


class FixedTransform(TextTransform):
    def format(self, text):
        return text

    def summarize(self, campaign):
        return "A generated summary."


class DownTransform(TextTransform):
    def format(self, text):
        raise TransformError("down")

    def summarize(self, campaign):
        raise TransformError("down")


@pytest.fixture
def client():
    app.config["TESTING"] = True
    app.config["TEXT_TRANSFORM"] = FixedTransform()
    with app.test_client() as c:
        yield c
    app.config.pop("TEXT_TRANSFORM", None)


@pytest.fixture
def payload(campaign):
    return {
        "campaign": campaign.as_dict(),
        "branding": {"organizationName": "Friends of the Park", "email": "sam@example.org"},
        "reportType": "combined",
        "format": "pdf",
    }


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.get_json()["status"] == "ok"


def test_import_json_body(client, campaign):
    resp = client.post("/import", data=json.dumps(campaign.as_dict()), content_type="application/json")
    assert resp.status_code == 200
    assert resp.get_json()["summary"]["purpose"] == "Spring Drive"


def test_import_file_upload(client, campaign):
    data = {"file": (io.BytesIO(json.dumps(campaign.as_dict()).encode("utf-8")), "campaign.json")}
    resp = client.post("/import", data=data, content_type="multipart/form-data")
    assert resp.status_code == 200
    assert resp.get_json()["id"] == "campaign-1"


def test_import_rejects_non_json_file(client):
    data = {"file": (io.BytesIO(b"hello"), "notes.txt")}
    resp = client.post("/import", data=data, content_type="multipart/form-data")
    assert resp.status_code == 400


def test_import_rejects_invalid_campaign(client):
    resp = client.post("/import", data=b"{\"summary\": {}}", content_type="application/json")
    assert resp.status_code == 400
    assert "error" in resp.get_json()


def test_summary(client, campaign):
    resp = client.post("/summary", json={"campaign": campaign.as_dict()})
    assert resp.status_code == 200
    assert resp.get_json() == {"executiveSummary": "A generated summary.", "generated": True}


def test_summary_falls_back(client, campaign):
    app.config["TEXT_TRANSFORM"] = DownTransform()
    resp = client.post("/summary", json={"campaign": campaign.as_dict()})
    assert resp.get_json() == {"executiveSummary": campaign.executive_summary, "generated": False}


def test_preview(client, campaign):
    resp = client.post("/preview", json={"campaign": campaign.as_dict(), "reportType": "messaging"})
    assert resp.status_code == 200
    titles = [s["title"] for s in resp.get_json()["sections"]]
    assert titles == ["Executive Summary", "Strategic Analysis", "Messaging Guide"]


def test_preview_rejects_unknown_type(client, campaign):
    resp = client.post("/preview", json={"campaign": campaign.as_dict(), "reportType": "all"})
    assert resp.status_code == 400


def test_export_pdf(client, payload):
    resp = client.post("/export", json=payload)
    assert resp.status_code == 200
    assert resp.mimetype == "application/pdf"
    assert resp.data.startswith(b"%PDF")
    assert "spring_drive_combined_report.pdf" in resp.headers["Content-Disposition"]


def test_export_docx_with_logo(client, payload):
    payload.update(format="docx", reportType="action", logo=base64.b64encode(PNG_LOGO).decode("ascii"),
                   summarize=True)
    resp = client.post("/export", json=payload)
    assert resp.status_code == 200
    assert resp.data.startswith(b"PK")
    assert "spring_drive_action_plan.docx" in resp.headers["Content-Disposition"]


def test_export_multipart(client, campaign):
    data = {
        "file": (io.BytesIO(json.dumps(campaign.as_dict()).encode("utf-8")), "campaign.json"),
        "logo": (io.BytesIO(PNG_LOGO), "logo.png"),
        "branding": json.dumps({"organizationName": "Friends of the Park"}),
        "reportType": "messaging",
        "format": "docx",
    }
    resp = client.post("/export", data=data, content_type="multipart/form-data")
    assert resp.status_code == 200
    assert "spring_drive_messaging_guide.docx" in resp.headers["Content-Disposition"]


def test_export_requires_organization(client, payload):
    payload["branding"] = {"organizationName": ""}
    resp = client.post("/export", json=payload)
    assert resp.status_code == 400
    assert "organization name" in resp.get_json()["error"]


def test_export_rejects_bad_logo(client, payload):
    payload["logo"] = base64.b64encode(b"GIF89a....").decode("ascii")
    resp = client.post("/export", json=payload)
    assert resp.status_code == 400


def test_export_rejects_unknown_format(client, payload):
    payload["format"] = "rtf"
    assert client.post("/export", json=payload).status_code == 400


def test_export_renderer_failure(client, payload, monkeypatch):
    import campaign_report

    def broken(*args, **kwargs):
        raise RuntimeError("boom")

    monkeypatch.setitem(campaign_report.RENDERERS, "pdf", (broken, "application/pdf"))
    resp = client.post("/export", json=payload)
    assert resp.status_code == 500
    assert resp.get_json() == {"error": "Failed to export report."}


def test_export_rejects_non_text_purpose(client, payload):
    payload["campaign"]["summary"] = {"purpose": 2024}
    resp = client.post("/export", json=payload)
    assert resp.status_code == 400
    assert "error" in resp.get_json()


@pytest.mark.parametrize("branding", [["X"], "Friends of the Park", {"organizationName": 5}])
def test_export_rejects_malformed_branding(client, payload, branding):
    payload["branding"] = branding
    resp = client.post("/export", json=payload)
    assert resp.status_code == 400
    assert "Branding" in resp.get_json()["error"]
