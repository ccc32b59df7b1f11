"""
Narrative generation for candidate profiles.

The aggregator depends only on the ``NarrativeGenerator`` protocol; the
Claude-backed implementation below is the production one.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, Optional, Protocol

from anthropic import Anthropic

from ...platform.config import settings
from .schemas import NarrativeVerdict

logger = logging.getLogger(__name__)

ANALYST_SYSTEM_PROMPT = "You are an expert technical hiring analyst. Respond only with valid JSON."

ANALYST_PROMPT = """Given the following data from a candidate's React assessment, write two sections:

1. AI COLLABORATION PROFILE (1 paragraph): Describe how the candidate worked with the AI assistant. Reference specific patterns: did they verify output, modify suggestions, write core logic themselves? What does their prompting style reveal about their development approach?

2. BEHAVIORAL INSIGHTS (1 paragraph): Describe the candidate's working patterns. How did they allocate time? Did they plan before coding or dive in? How did they handle difficulty increases? What does their debugging strategy look like?

Be specific and evidence-based. Reference actual numbers from the data (e.g. "modified 68% of AI output", "completed the tier 3 exercise in 12 of 20 allocated minutes"). Avoid generic statements.

Return a JSON object with:
- "collaboration_profile": string
- "behavioral_insights": string
- "recommendation": "strong_hire" | "hire" | "lean_hire" | "no_hire"
- "strengths": string[] (top 3 strengths, a few words each)

Candidate data:
{candidate_data}"""

_JSON_BLOCK = re.compile(r"\{.*\}", re.DOTALL)


class NarrativeGenerator(Protocol):
    def generate(self, payload: Dict[str, Any]) -> NarrativeVerdict: ...


def _strip_code_fences(text: str) -> str:
    t = text.strip()
    if t.startswith("```") and t.endswith("```"):
        t = re.sub(r"^```[A-Za-z0-9_-]*\s*", "", t)
        t = re.sub(r"\s*```$", "", t)
    return t.strip()


def extract_json_object(text: str) -> Optional[Dict[str, Any]]:
    """First JSON object in an LLM reply, tolerating fences and surrounding prose."""
    if not text:
        return None
    t = _strip_code_fences(text)
    try:
        data = json.loads(t)
    except json.JSONDecodeError:
        match = _JSON_BLOCK.search(t)
        if not match:
            return None
        try:
            data = json.loads(match.group(0))
        except json.JSONDecodeError:
            return None
    return data if isinstance(data, dict) else None


def parse_verdict(text: str) -> NarrativeVerdict:
    """Structured reply -> joined paragraphs; anything else becomes the narrative verbatim."""
    data = extract_json_object(text)
    if data is None:
        return NarrativeVerdict(narrative=(text or "").strip())

    sections = []
    profile = str(data.get("collaboration_profile") or "").strip()
    insights = str(data.get("behavioral_insights") or "").strip()
    if profile:
        sections.append(f"AI COLLABORATION PROFILE\n{profile}")
    if insights:
        sections.append(f"BEHAVIORAL INSIGHTS\n{insights}")
    narrative = "\n\n".join(sections) or str(data.get("narrative") or "").strip()

    strengths = data.get("strengths")
    labels = [str(s).strip() for s in strengths if str(s).strip()] if isinstance(strengths, list) else []
    recommendation = data.get("recommendation")
    return NarrativeVerdict(
        narrative=narrative,
        recommendation=recommendation if isinstance(recommendation, str) else None,
        labels=labels,
    )


class ClaudeNarrativeGenerator:
    """Writes the profile narrative with Claude. Provider errors propagate to the caller."""

    def __init__(
        self,
        api_key: str,
        model: str | None = None,
        max_tokens: int | None = None,
        timeout_seconds: float | None = None,
        client: Any = None,
    ):
        # The aggregator abandons slow calls but cannot stop the worker thread,
        # so one attempt bounded by the client timeout is all a call may take.
        self.client = client or Anthropic(
            api_key=api_key,
            timeout=timeout_seconds or settings.NARRATIVE_TIMEOUT_SECONDS,
            max_retries=0,
        )
        self.model = model or settings.CLAUDE_NARRATIVE_MODEL
        self.max_tokens = max_tokens or settings.NARRATIVE_MAX_TOKENS
        logger.info("ClaudeNarrativeGenerator initialised with model=%s", self.model)

    def generate(self, payload: Dict[str, Any]) -> NarrativeVerdict:
        prompt = ANALYST_PROMPT.format(candidate_data=json.dumps(payload, indent=2, default=str))
        logger.info("Requesting profile narrative (payload_chars=%d, model=%s)", len(prompt), self.model)

        response = self.client.messages.create(
            model=self.model,
            max_tokens=self.max_tokens,
            system=ANALYST_SYSTEM_PROMPT,
            messages=[{"role": "user", "content": prompt}],
        )
        text = "".join(
            getattr(block, "text", "") for block in response.content if getattr(block, "type", None) == "text"
        )
        usage = getattr(response, "usage", None)
        if usage is not None:
            logger.info(
                "Profile narrative received (tokens_used=%d)",
                (usage.input_tokens or 0) + (usage.output_tokens or 0),
            )
        return parse_verdict(text)
