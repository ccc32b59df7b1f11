"""Single source of truth for score categories, blend policies and explanations."""

from __future__ import annotations

from typing import Any, Dict

from .rules import (
    BEHAVIOR_WEIGHTS,
    COLLABORATION_BLEND_POLICY,
    QUALITY_BLEND_POLICY,
    RECOMMENDATION_THRESHOLDS,
    RECOMMENDATION_WEIGHTS,
    RELIANCE_BLEND_POLICY,
    TECHNICAL_WEIGHTS,
    TERMINAL_RELIANCE_WEIGHTS,
)
from .signals import policy_as_dict

SCORING_CATEGORIES: Dict[str, Dict[str, Any]] = {
    "code_quality": {
        "label": "Code Quality",
        "scale": "0-1",
        "description": "Blend of test pass ratio, static heuristics and terminal behavior for one exercise submission.",
        "metrics": ["tests", "heuristic", "behavior"],
    },
    "ai_reliance": {
        "label": "AI Reliance",
        "scale": "0-1",
        "description": "How much of the delivered work came from the assistant, from terminal telemetry and acceptance events.",
        "metrics": ["terminal", "event"],
    },
    "technical": {
        "label": "Technical",
        "scale": "1-10",
        "description": "Exercise completion, quickfire accuracy and review issue detection.",
        "metrics": ["challenges", "quickfire", "review"],
    },
    "collaboration": {
        "label": "AI Collaboration",
        "scale": "1-10",
        "description": "Prompt quality, verification of assistant output and authorship independence.",
        "metrics": ["prompt_quality", "verification", "independence", "prompt_sophistication"],
    },
    "communication": {
        "label": "Communication",
        "scale": "1-10",
        "description": "Clarity, constructiveness and specificity of code-review comments.",
        "metrics": ["clarity", "constructiveness", "specificity"],
    },
}

SCORING_METRICS: Dict[str, Dict[str, str]] = {
    "tests": {"label": "Tests Passed", "description": "Passed tests over total; only counted when the run reported tests."},
    "heuristic": {"label": "Static Heuristics", "description": "Topic coverage, decomposition, sane length and balanced brackets."},
    "behavior": {"label": "Terminal Behavior", "description": "Iterative prompting, manual typing share and shell activity."},
    "terminal": {"label": "Terminal Reliance", "description": "Time, output and typing share attributable to assistant sessions."},
    "event": {"label": "Accepted Output", "description": "Lines of accepted assistant output relative to the final code."},
    "challenges": {"label": "Exercises", "description": "Tier points earned, with a bonus for finishing under 60% of the limit."},
    "quickfire": {"label": "Quickfire", "description": "Difficulty-weighted share of correct answers."},
    "review": {"label": "Review", "description": "Share of seeded review issues the candidate flagged."},
    "prompt_quality": {"label": "Prompt Quality", "description": "Detailed prompts with code context and specific questions."},
    "verification": {"label": "Verification", "description": "How often assistant output was modified before acceptance."},
    "independence": {"label": "Independence", "description": "Self-written code share, with modified output counted at half."},
    "prompt_sophistication": {"label": "Prompt Sophistication", "description": "Prompt length, iteration and focused assistant sessions in the terminal."},
    "clarity": {"label": "Clarity", "description": "Comment length around a 50-200 character sweet spot."},
    "constructiveness": {"label": "Constructiveness", "description": "Share of comments that suggest a concrete fix."},
    "specificity": {"label": "Specificity", "description": "Share of comments that reference concrete code elements."},
}


def scoring_metadata_payload() -> Dict[str, Any]:
    return {
        "categories": SCORING_CATEGORIES,
        "metrics": SCORING_METRICS,
        "policies": {
            "quality": policy_as_dict(QUALITY_BLEND_POLICY),
            "quality_behavior": dict(BEHAVIOR_WEIGHTS),
            "reliance": policy_as_dict(RELIANCE_BLEND_POLICY),
            "reliance_terminal": dict(TERMINAL_RELIANCE_WEIGHTS),
            "technical": dict(TECHNICAL_WEIGHTS),
            "collaboration": policy_as_dict(COLLABORATION_BLEND_POLICY),
            "recommendation": {
                "weights": dict(RECOMMENDATION_WEIGHTS),
                "thresholds": [{"min": floor, "label": label} for floor, label in RECOMMENDATION_THRESHOLDS],
            },
        },
    }
