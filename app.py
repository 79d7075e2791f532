"""
Flask web server wrapping the campaign report exporter.

Endpoints:
    GET  /health           → Health check
    POST /import           → Upload campaign JSON ('file' or JSON body), returns the normalized campaign
    POST /summary          → Campaign JSON in, generated executive summary out
    POST /preview          → Campaign JSON + reportType, returns the formatted report model
    POST /export           → Campaign + branding + reportType + format, returns the .docx / .pdf
"""

import base64
import binascii
import io
import json
import logging

from flask import Flask, request, send_file, jsonify

from campaign_formatter import assemble_report
from campaign_import import CampaignImportError, campaign_from_dict, parse_campaign_json
from campaign_report import ExportError, export_report, prepare_campaign
from config import LOG_FORMAT, load_settings
from report_options import EXPORT_FORMATS, REPORT_TYPES, Branding
from text_transform import build_text_transform, summarize_with_fallback

settings = load_settings()

app = Flask(__name__)

# Configure logging so output is visible in gunicorn logs
gunicorn_logger = logging.getLogger("gunicorn.error")
app.logger.handlers = gunicorn_logger.handlers or logging.getLogger().handlers
app.logger.setLevel(gunicorn_logger.level or settings.log_level)
logging.basicConfig(
    level=settings.log_level,
    format=LOG_FORMAT,
)
log = app.logger


def _transform():
    transform = app.config.get("TEXT_TRANSFORM")
    if transform is None:
        transform = build_text_transform(settings)
        app.config["TEXT_TRANSFORM"] = transform
    return transform


def _error(message, status=400):
    return jsonify({"error": message}), status


def _json_body():
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _campaign_from_payload(payload):
    campaign = payload.get("campaign")
    if not isinstance(campaign, dict):
        raise CampaignImportError("Request must include a 'campaign' object.")
    return campaign_from_dict(campaign)


def _decode_logo(value):
    """Base64 logo, with or without a data: URL prefix."""
    if not value:
        return None
    if value.startswith("data:") and "," in value:
        value = value.split(",", 1)[1]
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValueError("Logo must be base64 encoded.") from exc


def _export_payload():
    """
    Export input comes either as a JSON body or as a multipart form with the
    campaign JSON in 'file', an optional 'logo' image and plain form fields.
    """
    if request.files or request.form:
        payload = request.form.to_dict()
        if "file" in request.files:
            payload["campaign"] = json.loads(request.files["file"].read() or b"null")
        elif "campaign" in payload:
            payload["campaign"] = json.loads(payload["campaign"])
        if "branding" in payload:
            payload["branding"] = json.loads(payload["branding"])
        logo = request.files["logo"].read() if "logo" in request.files else None
        return payload, logo
    payload = _json_body()
    return payload, _decode_logo(payload.get("logo"))


def _flag(value):
    return str(value).strip().lower() in ("1", "true", "yes", "on")


@app.route("/health", methods=["GET"])
def health():
    return jsonify({"status": "ok", "llm_enabled": settings.use_llm}), 200


@app.route("/import", methods=["POST"])
def import_campaign():
    if "file" in request.files:
        uploaded = request.files["file"]
        if not uploaded.filename.lower().endswith(".json"):
            return _error("Please upload a JSON file.")
        content = uploaded.read()
    else:
        content = request.get_data()
        if not content:
            return _error("No file uploaded. Send a .json as 'file' or a JSON body.")

    try:
        campaign = parse_campaign_json(content)
    except CampaignImportError as exc:
        log.info("Rejected import: %s", exc)
        return _error(str(exc))

    return jsonify(campaign.as_dict()), 200


@app.route("/summary", methods=["POST"])
def summary():
    try:
        campaign = _campaign_from_payload(_json_body())
    except CampaignImportError as exc:
        return _error(str(exc))

    log.info("Generating executive summary for campaign: %s", campaign.id)
    text = summarize_with_fallback(_transform(), campaign)
    return jsonify({"executiveSummary": text, "generated": text != campaign.executive_summary}), 200


@app.route("/preview", methods=["POST"])
def preview():
    payload = _json_body()
    report_type = payload.get("reportType", "combined")
    if report_type not in REPORT_TYPES:
        return _error(f"reportType must be one of: {', '.join(REPORT_TYPES)}")
    try:
        campaign = _campaign_from_payload(payload)
    except CampaignImportError as exc:
        return _error(str(exc))

    report = assemble_report(campaign)
    return jsonify(report.as_dict(report_type)), 200


@app.route("/export", methods=["POST"])
def export():
    try:
        payload, logo = _export_payload()
        campaign = _campaign_from_payload(payload)
        branding = Branding.from_dict(payload.get("branding"), logo=logo).validate()
    except (ValueError, CampaignImportError) as exc:
        # json.JSONDecodeError is a ValueError too.
        return _error(str(exc))

    report_type = payload.get("reportType", "combined")
    fmt = payload.get("format", "pdf")
    if report_type not in REPORT_TYPES:
        return _error(f"reportType must be one of: {', '.join(REPORT_TYPES)}")
    if fmt not in EXPORT_FORMATS:
        return _error(f"format must be one of: {', '.join(EXPORT_FORMATS)}")

    summarize = _flag(payload.get("summarize", False))
    reformat = _flag(payload.get("reformat", False))
    if summarize or reformat:
        campaign = prepare_campaign(campaign, _transform(), summarize=summarize, reformat=reformat)

    try:
        log.info("Exporting %s %s report for campaign: %s", report_type, fmt, campaign.id)
        exported = export_report(campaign, branding, report_type, fmt)
    except ExportError:
        return _error("Failed to export report.", 500)

    return send_file(
        io.BytesIO(exported.content),
        as_attachment=True,
        download_name=exported.filename,
        mimetype=exported.mimetype,
    )


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=settings.port)
