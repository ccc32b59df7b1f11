"""Terminal telemetry analysis endpoint."""

from typing import Any, List, Optional

from fastapi import APIRouter
from pydantic import BaseModel, model_validator

from ...components.telemetry.loader import coerce_events, parse_jsonl_log
from ...components.telemetry.parser import analyze_terminal_log, prompt_sophistication_score
from ...components.telemetry.schemas import BehavioralMetrics
from ...platform.config import settings

router = APIRouter(prefix="/telemetry", tags=["Telemetry"])


class AnalyzeTelemetryRequest(BaseModel):
    # Raw records so malformed entries are skipped rather than rejected
    entries: Optional[List[Any]] = None
    jsonl: Optional[str] = None

    @model_validator(mode="after")
    def _one_source(self):
        if self.entries is None and self.jsonl is None:
            raise ValueError("Provide either 'entries' or 'jsonl'")
        return self


class AnalyzeTelemetryResponse(BehavioralMetrics):
    prompt_sophistication: float = 0.5


@router.post("/analyze", response_model=AnalyzeTelemetryResponse)
def analyze_telemetry(data: AnalyzeTelemetryRequest):
    """Parse a terminal I/O log into assistant sessions and behavioral metrics."""
    log = parse_jsonl_log(data.jsonl) if data.jsonl is not None else coerce_events(data.entries)
    metrics = analyze_terminal_log(log.events, settings.terminal_parser_config)
    metrics.skipped_entries += log.skipped_entries
    return AnalyzeTelemetryResponse(
        **metrics.model_dump(),
        prompt_sophistication=prompt_sophistication_score(metrics),
    )
