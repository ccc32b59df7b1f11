from sqlalchemy import JSON, Column, DateTime, String, Text

from ..platform.database import Base


class CandidateProfileRecord(Base):
    __tablename__ = "candidate_profiles"

    # One row per candidate; regeneration overwrites it
    candidate_id = Column(String, primary_key=True)
    scores = Column(JSON, nullable=False)
    narrative = Column(Text, default="")
    narrative_status = Column(String, nullable=False)
    recommendation = Column(String, nullable=False)
    labels = Column(JSON, default=list)
    generated_at = Column(DateTime(timezone=True), nullable=False)
