import struct
import zlib

import pytest

from campaign_import import CampaignContent
from report_options import Branding


def _png_chunk(kind, data):
    return (struct.pack(">I", len(data)) + kind + data
            + struct.pack(">I", zlib.crc32(kind + data) & 0xFFFFFFFF))


def make_png(width=2, height=1):
    """A tiny opaque RGB PNG built by hand."""
    raw = b"".join(b"\x00" + b"\x2b\x57\x97" * width for _ in range(height))
    return (b"\x89PNG\r\n\x1a\n"
            + _png_chunk(b"IHDR", struct.pack(">IIBBBBB", width, height, 8, 2, 0, 0, 0))
            + _png_chunk(b"IDAT", zlib.compress(raw))
            + _png_chunk(b"IEND", b""))


PNG_LOGO = make_png()

ACTION_PLAN = "# Phase 1\nDo X.\n\n| Week | Task |\n|---|---|\n| 1 | Plan |\n| 2 | Execute |"

ANALYSIS = (
    "# Audience\n"
    "Parents of school-age children\n"
    "respond to local stories.\n"
    "\n"
    "## Channels\n"
    "| Channel | Reach |\n"
    "| :--- | ---: |\n"
    "| Radio | High |\n"
    "Closing thoughts."
)


@pytest.fixture
def campaign():
    return CampaignContent(
        id="campaign-1",
        summary={"purpose": "Spring Drive"},
        executive_summary="Line one.\n\nLine two.",
        step1_analysis=ANALYSIS,
        messaging_guide="# Core Message\nWe keep parks open.",
        action_plan=ACTION_PLAN,
    )


@pytest.fixture
def branding():
    return Branding(
        organization_name="Friends of the Park",
        contact_person="Sam Lee",
        email="sam@example.org",
        website="example.org",
    )


@pytest.fixture
def branding_with_logo(branding):
    branding.logo = PNG_LOGO
    return branding
