"""Scoring constants: topic patterns, text heuristics, and blend policy tables."""

import re
from typing import Dict, List, Pattern

# ---------------------------------------------------------------------------
# Exercise topic -> code patterns that evidence the topic was addressed
# ---------------------------------------------------------------------------
TOPIC_PATTERNS: Dict[str, List[Pattern[str]]] = {
    # Tier 1 - Todo list
    "state_basics": [re.compile(r"useState")],
    "event_handling": [re.compile(r"onClick|onChange|onSubmit|addEventListener")],
    "list_rendering": [re.compile(r"\.map\s*\(")],
    # Tier 2 - Data dashboard
    "data_fetching": [re.compile(r"useEffect")],
    "async": [re.compile(r"fetch\s*\(|async\s|await\s")],
    "loading_states": [re.compile(r"loading|isLoading|setLoading|error|setError", re.IGNORECASE)],
    # Tier 3 - Form validation
    "forms": [re.compile(r"onChange|onSubmit|handleChange|handleSubmit")],
    "custom_hooks": [re.compile(r"function\s+use[A-Z]")],
    "validation": [re.compile(r"valid|validate|error|required", re.IGNORECASE)],
    # Tier 4 - Infinite scroll
    "performance": [re.compile(r"useMemo|useCallback|React\.memo")],
    "intersection_observer": [re.compile(r"IntersectionObserver")],
    "pagination": [re.compile(r"page|offset|cursor|loadMore|fetchMore", re.IGNORECASE)],
    # Tier 5 - Collaborative counter
    "state_advanced": [re.compile(r"useReducer")],
    "context": [re.compile(r"useContext|createContext|\.Provider")],
    "optimistic_updates": [re.compile(r"optimistic|pending|rollback|confirm", re.IGNORECASE)],
}

FUNCTION_DEFINITION_PATTERN = re.compile(r"function\s+\w+|const\s+\w+\s*=\s*\(|=>\s*\{")

# Heuristic quality contributions (sum to 1.0)
QUALITY_TOPIC_WEIGHT = 0.3
QUALITY_DECOMPOSITION_FULL = 0.2
QUALITY_DECOMPOSITION_PARTIAL = 0.1
QUALITY_LENGTH_FULL = 0.2
QUALITY_LENGTH_OVERSIZED = 0.1
QUALITY_BALANCE_FULL = 0.3
QUALITY_BALANCE_PARTIAL = 0.15
QUALITY_LINE_BAND = (20, 500)

# ---------------------------------------------------------------------------
# Blend policies: available signal set -> weights
# ---------------------------------------------------------------------------
QUALITY_BLEND_POLICY = {
    frozenset({"tests", "heuristic", "behavior"}): {"tests": 0.5, "heuristic": 0.3, "behavior": 0.2},
    frozenset({"tests", "heuristic"}): {"tests": 0.6, "heuristic": 0.4},
    frozenset({"heuristic", "behavior"}): {"heuristic": 0.7, "behavior": 0.3},
    frozenset({"heuristic"}): {"heuristic": 1.0},
}

BEHAVIOR_WEIGHTS = {
    "iteration_score": 0.4,
    "manual_activity_ratio": 0.3,
    "command_activity": 0.3,
}
COMMANDS_FOR_FULL_ACTIVITY = 10

RELIANCE_BLEND_POLICY = {
    frozenset({"terminal", "event"}): {"terminal": 0.7, "event": 0.3},
    frozenset({"terminal"}): {"terminal": 1.0},
    frozenset({"event"}): {"event": 1.0},
    frozenset(): {},
}

TERMINAL_RELIANCE_WEIGHTS = {
    "time_in_assistant_ratio": 0.3,
    "assistant_output_ratio": 0.4,
    "assistant_typing_share": 0.3,
}
PARTIAL_ACCEPTANCE_LINE_SHARE = 0.5

TECHNICAL_WEIGHTS = {
    "challenges": 0.4,
    "quickfire": 0.35,
    "review": 0.25,
}
FAST_COMPLETION_RATIO = 0.6
FAST_COMPLETION_BONUS = 1.2

COLLABORATION_BLEND_POLICY = {
    frozenset({"prompt_quality", "verification", "independence", "prompt_sophistication"}): {
        "prompt_quality": 0.3,
        "verification": 0.25,
        "independence": 0.25,
        "prompt_sophistication": 0.2,
    },
    frozenset({"prompt_quality", "verification", "independence"}): {
        "prompt_quality": 0.4,
        "verification": 0.3,
        "independence": 0.3,
    },
}

# ---------------------------------------------------------------------------
# Text patterns for prompts and review comments
# ---------------------------------------------------------------------------
PROMPT_SPECIFICITY_PATTERNS = [
    r"\?",
    r"\bwhy\b",
    r"\bhow\b",
    r"\bwhat if\b",
    r"\bshould\b",
    r"\binstead\b",
    r"\bspecifically\b",
    r"\breturn\b",
    r"\bcomponent\b",
    r"\bfunction\b",
    r"\bhook\b",
]
PROMPT_DETAILED_LENGTH = 50

CONSTRUCTIVE_PATTERNS = [
    r"\binstead\b",
    r"\bshould\b",
    r"\bconsider\b",
    r"\btry\b",
    r"\bfix\s+by\b",
    r"\breplace\b",
    r"\buse\b",
    r"\bwould be better\b",
    r"\bsugg(est|estion)\b",
    r"\brecommend\b",
    r"\brefactor\b",
    r"\bextract\b",
    r"\bmove\b",
    r"\bwrap\b",
    r"\badd\b",
    r"\bremove\b",
]

# Case-insensitive concrete code references
COMMENT_SPECIFICITY_PATTERNS = [
    r"\bline\s*\d+",
    r"\bfunction\b",
    r"\bvariable\b",
    r"\bprop\b",
    r"\bhook\b",
    r"\bstate\b",
    r"\bcomponent\b",
]
# Case-sensitive identifiers
COMMENT_IDENTIFIER_PATTERNS = [
    r"\buseEffect\b",
    r"\buseState\b",
    r"\buseMemo\b",
    r"\buseCallback\b",
    r"\buseRef\b",
    r"`[^`]+`",
    r"\b[a-z]+[A-Z][a-zA-Z]*\b",
]

# ---------------------------------------------------------------------------
# Recommendation thresholds on the weighted composite (1-10)
# ---------------------------------------------------------------------------
RECOMMENDATION_WEIGHTS = {
    "technical": 0.5,
    "collaboration": 0.3,
    "communication": 0.2,
}
RECOMMENDATION_THRESHOLDS = [
    (8.0, "strong_hire"),
    (6.5, "hire"),
    (5.0, "lean_hire"),
]
RECOMMENDATION_FLOOR = "no_hire"
