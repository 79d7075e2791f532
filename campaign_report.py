#!/usr/bin/env python3
"""
Campaign Report Export - DOCX / PDF Tool
========================================

Takes an imported campaign JSON file and exports it as a branded report:

  1. VALIDATE – check that the import file is a usable campaign export
  2. PREVIEW  – print the formatted report model (sections, blocks, tables) as JSON
  3. EXPORT   – render a DOCX or PDF for one report type (or a combined/separate layout)

Report types:
  combined   – every section                          → {name}_combined_report.{ext}
  messaging  – summary, analysis, messaging guide     → {name}_messaging_guide.{ext}
  action     – summary, action plan                   → {name}_action_plan.{ext}

Usage:
    python campaign_report.py validate campaign.json
    python campaign_report.py preview  campaign.json --report-type messaging
    python campaign_report.py export   campaign.json out/ --format pdf --org "Acme Org"
    python campaign_report.py export   campaign.json out/ --format docx --layout separate --org "Acme Org"
"""

import argparse
import json
import logging
import os
import re
import sys

from campaign_formatter import assemble_report
from campaign_import import CampaignImportError, load_campaign_file
from config import LOG_FORMAT, load_settings
from docx_renderer import DOCX_MIMETYPE, render_docx
from pdf_renderer import PDF_MIMETYPE, render_pdf
from report_options import (
    DEFAULT_STYLE,
    EXPORT_FORMATS,
    REPORT_LAYOUTS,
    REPORT_TYPES,
    Branding,
)
from text_transform import build_text_transform, format_campaign, with_executive_summary

logger = logging.getLogger(__name__)

FILENAME_MAX_LENGTH = 50
DEFAULT_FILENAME_SEED = 'campaign'

REPORT_SUFFIXES = {
    'combined': 'combined_report',
    'messaging': 'messaging_guide',
    'action': 'action_plan',
}

RENDERERS = {
    'docx': (render_docx, DOCX_MIMETYPE),
    'pdf': (render_pdf, PDF_MIMETYPE),
}

_UNSAFE_FILENAME_CHARS = re.compile(r'[^a-z0-9_.-]')


class ExportError(RuntimeError):
    """A renderer failed; nothing was produced."""


class ExportedReport:
    """One rendered file, ready to download or write."""

    def __init__(self, filename, content, mimetype, report_type, fmt):
        self.filename = filename
        self.content = content
        self.mimetype = mimetype
        self.report_type = report_type
        self.format = fmt

    def __repr__(self):
        return f"ExportedReport('{self.filename}', {len(self.content)} bytes)"


# ═════════════════════════════════════════════════════════════════════════════
# FILENAMES
# ═════════════════════════════════════════════════════════════════════════════

def sanitize_filename(value):
    """Lower-case, replace anything outside [a-z0-9_.-] with '_', cut to 50."""
    return _UNSAFE_FILENAME_CHARS.sub('_', value.lower())[:FILENAME_MAX_LENGTH]


def report_filename(purpose, report_type, fmt):
    """e.g. spring_drive_2024__combined_report.pdf"""
    seed = sanitize_filename(purpose or DEFAULT_FILENAME_SEED)
    return f'{seed}_{REPORT_SUFFIXES[report_type]}.{fmt}'


# ═════════════════════════════════════════════════════════════════════════════
# EXPORT
# ═════════════════════════════════════════════════════════════════════════════

def _check_choice(value, choices, label):
    if value not in choices:
        raise ValueError(f"Unknown {label} '{value}'. Expected one of: {', '.join(choices)}")


def export_report(campaign, branding, report_type, fmt, style=None, generated_on=None):
    """
    Assemble the campaign and render one report.

    Raises ValueError for an unknown report type or format (before anything
    is rendered) and ExportError when the renderer itself fails.
    """
    _check_choice(report_type, REPORT_TYPES, 'report type')
    _check_choice(fmt, EXPORT_FORMATS, 'format')

    report = assemble_report(campaign)
    render, mimetype = RENDERERS[fmt]
    filename = report_filename(campaign.purpose, report_type, fmt)

    try:
        content = render(report, branding, report_type, style=style or DEFAULT_STYLE,
                         generated_on=generated_on)
    except Exception as exc:
        logger.exception("Error rendering %s", filename)
        raise ExportError(f'Failed to generate {fmt.upper()} report') from exc

    logger.info("Exported %s (%d bytes)", filename, len(content))
    return ExportedReport(filename, content, mimetype, report_type, fmt)


def export_reports(campaign, branding, layout, fmt, style=None, generated_on=None):
    """One export per report type in the layout ('combined' or 'separate')."""
    _check_choice(layout, tuple(REPORT_LAYOUTS), 'layout')
    return [
        export_report(campaign, branding, report_type, fmt, style=style, generated_on=generated_on)
        for report_type in REPORT_LAYOUTS[layout]
    ]


def prepare_campaign(campaign, transform, summarize=False, reformat=False):
    """Apply the optional language-model steps; failures keep the original text."""
    if summarize:
        campaign = with_executive_summary(campaign, transform)
    if reformat:
        campaign = format_campaign(campaign, transform)
    return campaign


def write_report(exported, output_dir):
    """Write a rendered report into output_dir and return its path."""
    os.makedirs(output_dir, exist_ok=True)
    path = os.path.join(output_dir, exported.filename)
    with open(path, 'wb') as fh:
        fh.write(exported.content)
    return path


# ═════════════════════════════════════════════════════════════════════════════
# CLI ENTRY POINT
# ═════════════════════════════════════════════════════════════════════════════

def _read_logo(path):
    if not path:
        return None
    with open(path, 'rb') as fh:
        return fh.read()


def _build_parser():
    parser = argparse.ArgumentParser(
        description='Campaign Report Export - DOCX / PDF Tool',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python campaign_report.py validate campaign.json
  python campaign_report.py preview campaign.json --report-type action
  python campaign_report.py export campaign.json out/ --format pdf --org "Acme Org" --summarize
        """
    )
    sub = parser.add_subparsers(dest='mode', required=True)

    validate = sub.add_parser('validate', help='Check an import file')
    validate.add_argument('input', help='Path to the campaign JSON file')

    preview = sub.add_parser('preview', help='Print the formatted report as JSON')
    preview.add_argument('input', help='Path to the campaign JSON file')
    preview.add_argument('--report-type', choices=REPORT_TYPES, default='combined')

    export = sub.add_parser('export', help='Render DOCX or PDF report(s)')
    export.add_argument('input', help='Path to the campaign JSON file')
    export.add_argument('output_dir', help='Directory for the generated file(s)')
    export.add_argument('--format', choices=EXPORT_FORMATS, default='pdf')
    target = export.add_mutually_exclusive_group()
    target.add_argument('--report-type', choices=REPORT_TYPES, default=None)
    target.add_argument('--layout', choices=tuple(REPORT_LAYOUTS), default=None,
                        help='combined: one report; separate: messaging guide + action plan')
    export.add_argument('--org', required=True, help='Organization name (required)')
    export.add_argument('--contact', default='', help='Contact person')
    export.add_argument('--email', default='')
    export.add_argument('--phone', default='')
    export.add_argument('--website', default='')
    export.add_argument('--logo', default=None, help='PNG or JPEG logo for the cover')
    export.add_argument('--summarize', action='store_true',
                        help='Generate an executive summary before export')
    export.add_argument('--reformat', action='store_true',
                        help='Re-flow analysis, guide and plan text before export')

    return parser


def _run_export(args, campaign):
    branding = Branding(
        organization_name=args.org,
        contact_person=args.contact,
        email=args.email,
        phone=args.phone,
        website=args.website,
        logo=_read_logo(args.logo),
    ).validate()

    if args.summarize or args.reformat:
        transform = build_text_transform(load_settings())
        campaign = prepare_campaign(campaign, transform, summarize=args.summarize,
                                    reformat=args.reformat)

    if args.report_type:
        exports = [export_report(campaign, branding, args.report_type, args.format)]
    else:
        exports = export_reports(campaign, branding, args.layout or 'combined', args.format)

    for exported in exports:
        path = write_report(exported, args.output_dir)
        print(f"Report saved to: {path}")


def main(argv=None):
    args = _build_parser().parse_args(argv)
    logging.basicConfig(level=load_settings().log_level, format=LOG_FORMAT)

    if not os.path.exists(args.input):
        print(f"Error: Input file not found: {args.input}")
        return 1

    try:
        campaign = load_campaign_file(args.input)
    except CampaignImportError as exc:
        print(f"Error: {exc}")
        return 1

    if args.mode == 'validate':
        print(f"Valid campaign: {campaign.purpose} (id={campaign.id})")

    elif args.mode == 'preview':
        report = assemble_report(campaign)
        print(json.dumps(report.as_dict(args.report_type), indent=2, ensure_ascii=False))

    elif args.mode == 'export':
        try:
            _run_export(args, campaign)
        except (ValueError, OSError, ExportError) as exc:
            print(f"Error: {exc}")
            return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())
