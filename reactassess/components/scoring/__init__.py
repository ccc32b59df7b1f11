from .collaboration import calculate_collaboration_score
from .communication import calculate_communication_score
from .quality import code_quality_breakdown, code_quality_score
from .reliance import ai_reliance_score
from .technical import calculate_technical_score

__all__ = [
    "ai_reliance_score",
    "calculate_collaboration_score",
    "calculate_communication_score",
    "calculate_technical_score",
    "code_quality_breakdown",
    "code_quality_score",
]
