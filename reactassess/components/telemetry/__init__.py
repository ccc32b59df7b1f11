from .loader import coerce_events, parse_jsonl_log
from .parser import analyze_terminal_log, analyze_terminal_sessions, merge_metrics, prompt_sophistication_score
from .schemas import AssistantSession, BehavioralMetrics, Direction, TelemetryEvent, TelemetryLog

__all__ = [
    "AssistantSession",
    "BehavioralMetrics",
    "Direction",
    "TelemetryEvent",
    "TelemetryLog",
    "analyze_terminal_log",
    "analyze_terminal_sessions",
    "coerce_events",
    "merge_metrics",
    "parse_jsonl_log",
    "prompt_sophistication_score",
]
