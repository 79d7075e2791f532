"""
Campaign import: validate and normalize an exported campaign JSON file.

A file is accepted only when it has summary.purpose and at least one of
messagingGuide / step1Analysis / actionPlan. Anything else is rejected
whole; nothing is partially imported.
"""

import json
import logging
import time

logger = logging.getLogger(__name__)

# JSON key → CampaignContent attribute
TEXT_FIELDS = {
    'executiveSummary': 'executive_summary',
    'step1Analysis': 'step1_analysis',
    'messagingGuide': 'messaging_guide',
    'actionPlan': 'action_plan',
}

KNOWN_KEYS = frozenset(TEXT_FIELDS) | {'id', 'summary'}


class CampaignImportError(ValueError):
    """The import file is not a usable campaign export."""


class CampaignContent:
    """
    Read-only view of an imported campaign. Use replace() to derive a copy
    with updated fields (e.g. a generated executive summary).
    """

    def __init__(self, id, summary=None, executive_summary='', step1_analysis='',
                 messaging_guide='', action_plan='', extra=None):
        self.id = id
        self.summary = dict(summary or {})
        self.executive_summary = executive_summary or ''
        self.step1_analysis = step1_analysis or ''
        self.messaging_guide = messaging_guide or ''
        self.action_plan = action_plan or ''
        self.extra = dict(extra or {})

    @property
    def purpose(self):
        purpose = self.summary.get('purpose')
        return purpose if isinstance(purpose, str) else ''

    def replace(self, **changes):
        fields = {
            'id': self.id,
            'summary': self.summary,
            'executive_summary': self.executive_summary,
            'step1_analysis': self.step1_analysis,
            'messaging_guide': self.messaging_guide,
            'action_plan': self.action_plan,
            'extra': self.extra,
        }
        unknown = set(changes) - set(fields)
        if unknown:
            raise TypeError(f"Unknown campaign field(s): {', '.join(sorted(unknown))}")
        fields.update(changes)
        return CampaignContent(**fields)

    def as_dict(self):
        """The normalized campaign in its JSON (camelCase) shape."""
        data = dict(self.extra)
        data['id'] = self.id
        data['summary'] = dict(self.summary)
        for key, attr in TEXT_FIELDS.items():
            data[key] = getattr(self, attr)
        return data

    def __eq__(self, other):
        return isinstance(other, CampaignContent) and self.as_dict() == other.as_dict()

    __hash__ = None

    def __repr__(self):
        return f"CampaignContent('{self.id}', purpose='{self.purpose[:40]}')"


def is_valid_campaign_data(data):
    """summary.purpose plus messaging content or an action plan."""
    if not isinstance(data, dict):
        return False
    summary = data.get('summary')
    purpose = summary.get('purpose') if isinstance(summary, dict) else None
    has_summary = isinstance(purpose, str) and bool(purpose.strip())
    has_messaging = bool(data.get('messagingGuide') or data.get('step1Analysis'))
    has_action_plan = bool(data.get('actionPlan'))
    return has_summary and (has_messaging or has_action_plan)


def _generated_id():
    return f'campaign-{int(time.time() * 1000)}'


def _text_value(data, key):
    value = data.get(key)
    if value is None:
        return ''
    if not isinstance(value, str):
        raise CampaignImportError(f"Field '{key}' must be text.")
    return value


def normalize_campaign_data(data):
    """Build a CampaignContent from an already-validated mapping."""
    fields = {attr: _text_value(data, key) for key, attr in TEXT_FIELDS.items()}
    extra = {k: v for k, v in data.items() if k not in KNOWN_KEYS}
    return CampaignContent(
        id=data.get('id') or _generated_id(),
        summary=data.get('summary') or {},
        extra=extra,
        **fields,
    )


def campaign_from_dict(data):
    """Validate and normalize a decoded campaign object."""
    if not is_valid_campaign_data(data):
        raise CampaignImportError(
            'Invalid campaign data: summary.purpose and a messaging guide, '
            'strategic analysis or action plan are required.'
        )
    campaign = normalize_campaign_data(data)
    logger.info("Imported campaign %s (%s)", campaign.id, campaign.purpose)
    return campaign


def parse_campaign_json(file_content):
    """Parse the text of an import file into a CampaignContent."""
    try:
        data = json.loads(file_content)
    except ValueError as exc:
        raise CampaignImportError('Failed to parse the file. Please check the file format.') from exc
    return campaign_from_dict(data)


def load_campaign_file(path):
    """Read and parse an import file from disk."""
    with open(path, 'r', encoding='utf-8') as fh:
        return parse_campaign_json(fh.read())
