from .assessment import (
    AssessmentEventRecord,
    AssessmentSessionRecord,
    QuickfireResponseRecord,
    ReviewCommentRecord,
    TerminalIoEntryRecord,
)
from .profile import CandidateProfileRecord

__all__ = [
    "AssessmentEventRecord",
    "AssessmentSessionRecord",
    "CandidateProfileRecord",
    "QuickfireResponseRecord",
    "ReviewCommentRecord",
    "TerminalIoEntryRecord",
]
