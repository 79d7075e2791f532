"""
Language-model text transforms used while preparing a campaign for export.

Two capabilities, behind one interface:
    format(text)         – re-flow a field's prose and tables
    summarize(campaign)  – write an executive summary

Callers go through format_with_fallback / summarize_with_fallback: a failed
or empty transform never blocks an export, the original text is used instead.
"""

import logging
from abc import ABC, abstractmethod

from openai import OpenAI

logger = logging.getLogger(__name__)

# Long fields are cut before they are sent for summarization.
SUMMARY_EXCERPT_CHARS = 1000

FORMATTING_PROMPT = """
Format this business report content with proper structure and formatting.

REQUIREMENTS:
1. Mark headings with leading # characters (# main heading, ## subheading, ### section title)
2. Write tables as pipe tables: a header row, a separator row of dashes, then one row per line
3. Separate paragraphs with a blank line
4. Maintain all original content and meaning
5. Use professional business language

DO NOT:
- Use bold or italic markers (**, __)
- Add or remove any content
- Change the meaning of any content
- Wrap the answer in code fences or add commentary

For tables, format like this:
| Week | Day | Activity | Details |
|---|---|---|---|
| 1 | Mon | Planning | Initial setup |
| 2 | Tue | Review | Team meeting |
""".strip()

SUMMARY_PROMPT = """
Generate a professional executive summary for a campaign report.
The executive summary should be approximately 300-500 words, professionally
written, and suitable for a business document. It should highlight the
campaign's strategic objectives, key messaging approach, and implementation
plan without unnecessary technical details. Return plain paragraphs only.
""".strip()


class TransformError(RuntimeError):
    """The transform service failed or produced nothing usable."""


class TextTransform(ABC):
    """Capability interface for the external language-model service."""

    name = 'transform'

    @abstractmethod
    def format(self, text):
        ...

    @abstractmethod
    def summarize(self, campaign):
        ...


def _excerpt(text):
    return text[:SUMMARY_EXCERPT_CHARS] if text else 'Not available'


def summary_request(campaign):
    """User prompt describing the campaign for summarization."""
    return (
        f"Campaign Name/Purpose: {campaign.purpose or 'Unnamed Campaign'}\n\n"
        f"Strategic Analysis Highlights:\n{_excerpt(campaign.step1_analysis)}\n\n"
        f"Messaging Guide Highlights:\n{_excerpt(campaign.messaging_guide)}\n\n"
        f"Action Plan Highlights:\n{_excerpt(campaign.action_plan)}"
    )


class OpenAITextTransform(TextTransform):
    """
    Chat-completions backed transform. One request per call; errors and
    empty answers raise TransformError for the fallback wrappers to handle.
    """

    name = 'openai'

    def __init__(self, api_key, model, temperature=0.3, max_tokens=4000, client=None):
        if not api_key and client is None:
            raise ValueError('An OpenAI API key is required.')
        self.client = client or OpenAI(api_key=api_key)
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    def _complete(self, system_prompt, user_prompt, max_tokens=None):
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {'role': 'system', 'content': system_prompt},
                    {'role': 'user', 'content': user_prompt},
                ],
                temperature=self.temperature,
                max_tokens=max_tokens or self.max_tokens,
            )
        except Exception as exc:
            raise TransformError(f'Language model request failed: {exc}') from exc

        output = response.choices[0].message.content if response.choices else None
        if not output or not output.strip():
            raise TransformError('Empty response from model')
        return output.strip()

    def format(self, text):
        return self._complete(FORMATTING_PROMPT, text)

    def summarize(self, campaign):
        return self._complete(SUMMARY_PROMPT, summary_request(campaign), max_tokens=800)


class TemplateTextTransform(TextTransform):
    """
    Offline transform: text passes through unchanged and the summary is
    assembled from fixed sentences about whichever parts the campaign has.
    """

    name = 'template'

    def format(self, text):
        return text

    def summarize(self, campaign):
        purpose = campaign.purpose or 'Campaign'
        summary = f'Executive Summary: {purpose}\n\n'
        summary += f'This report presents a comprehensive strategy for the "{purpose}" campaign. '
        if campaign.messaging_guide:
            summary += ('The messaging guide provides a detailed framework for communicating campaign '
                        'objectives to target audiences, incorporating key values and narratives that '
                        'resonate with stakeholders. ')
        if campaign.action_plan:
            summary += ('The action plan outlines a structured approach to campaign implementation, '
                        'with clear timelines, responsibilities, and metrics for success. ')
        summary += ('\n\nThis document serves as a strategic roadmap for achieving campaign goals '
                    'through coordinated messaging and tactical execution. Key recommendations focus '
                    'on audience engagement, consistent value-driven communication, and measurable '
                    'outcomes through the proposed implementation timeline.')
        return summary


def build_text_transform(settings):
    """OpenAI when configured and enabled, otherwise the offline template."""
    if settings.use_llm:
        logger.info("Using OpenAI text transform (model=%s)", settings.openai_model)
        return OpenAITextTransform(settings.openai_api_key, settings.openai_model,
                                   temperature=settings.temperature)
    logger.info("No language model configured; using template text transform")
    return TemplateTextTransform()


# ═════════════════════════════════════════════════════════════════════════════
# FALLBACKS — never let the transform block an export
# ═════════════════════════════════════════════════════════════════════════════

def format_with_fallback(transform, text, field='text'):
    """Formatted text, or the original text if the transform fails."""
    if not text or not text.strip():
        return text
    try:
        result = transform.format(text)
    except Exception as exc:
        logger.warning("Formatting unavailable for %s (%s); using original text", field, exc)
        return text
    if not result or not result.strip():
        logger.warning("Formatting returned nothing for %s; using original text", field)
        return text
    return result


def summarize_with_fallback(transform, campaign):
    """Generated summary, or the campaign's existing summary on failure."""
    try:
        result = transform.summarize(campaign)
    except Exception as exc:
        logger.warning("Executive summary unavailable for %s (%s)", campaign.id, exc)
        return campaign.executive_summary
    if not result or not result.strip():
        logger.warning("Executive summary for %s came back empty", campaign.id)
        return campaign.executive_summary
    return result


def with_executive_summary(campaign, transform):
    """Copy of the campaign carrying a generated executive summary."""
    return campaign.replace(executive_summary=summarize_with_fallback(transform, campaign))


def format_campaign(campaign, transform):
    """Copy of the campaign with analysis, guide and plan re-flowed."""
    return campaign.replace(
        step1_analysis=format_with_fallback(transform, campaign.step1_analysis, 'step1Analysis'),
        messaging_guide=format_with_fallback(transform, campaign.messaging_guide, 'messagingGuide'),
        action_plan=format_with_fallback(transform, campaign.action_plan, 'actionPlan'),
    )
