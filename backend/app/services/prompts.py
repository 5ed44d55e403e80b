"""Fixed instruction prompts for the AI writing assistant.

The output is fully deterministic: identical content always produces
byte-for-byte identical prompts.

Usage::

    from backend.app.services.prompts import build_enhancement_prompt

    prompt_text = build_enhancement_prompt(draft)
"""

import logging

from backend.app.core.logging import EVENT_PROMPT_ASSEMBLED, log_event

logger = logging.getLogger(__name__)

ENHANCEMENT_TEMPLATE = """You are a professional blog editor and writing coach.
Given this user's draft:

{content}

Please provide your response in the following JSON format:
{{
  "refinedContent": "The improved version of the content",
  "suggestedTitle": "A catchy and SEO-friendly title",
  "keywords": ["keyword1", "keyword2", "keyword3"],
  "metaDescription": "A one-sentence meta description for SEO"
}}

Keep the tone professional yet conversational."""

SUMMARY_TEMPLATE = """Summarize this blog post in 2-3 sentences that capture its main idea and tone:

{content}

Provide only the summary text without any additional formatting."""


def build_enhancement_prompt(content: str) -> str:
    prompt = ENHANCEMENT_TEMPLATE.format(content=content)
    log_event(
        logger, "info", EVENT_PROMPT_ASSEMBLED,
        kind="enhance", content_len=len(content), prompt_len=len(prompt),
    )
    return prompt


def build_summary_prompt(content: str) -> str:
    prompt = SUMMARY_TEMPLATE.format(content=content)
    log_event(
        logger, "info", EVENT_PROMPT_ASSEMBLED,
        kind="summarize", content_len=len(content), prompt_len=len(prompt),
    )
    return prompt
