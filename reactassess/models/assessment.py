from sqlalchemy import JSON, Boolean, Column, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.sql import func

from ..platform.database import Base


class AssessmentSessionRecord(Base):
    __tablename__ = "assessment_sessions"

    id = Column(String, primary_key=True)
    candidate_id = Column(String, index=True, nullable=False)
    current_tier = Column(Integer, default=1, nullable=False)
    # Ordered ExerciseResult dicts; append-only
    exercise_results = Column(JSON, default=list)
    high_reliance_flag = Column(Boolean, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())


class AssessmentEventRecord(Base):
    __tablename__ = "assessment_events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    session_id = Column(String, ForeignKey("assessment_sessions.id"), index=True, nullable=False)
    event_type = Column(String, index=True, nullable=False)
    payload = Column(JSON, default=dict)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class TerminalIoEntryRecord(Base):
    __tablename__ = "terminal_io_entries"

    id = Column(Integer, primary_key=True, autoincrement=True)
    session_id = Column(String, ForeignKey("assessment_sessions.id"), index=True, nullable=False)
    ts = Column(Integer, nullable=False)
    direction = Column(String(3), nullable=False)
    data = Column(Text, default="")


class ReviewCommentRecord(Base):
    __tablename__ = "review_comments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    session_id = Column(String, ForeignKey("assessment_sessions.id"), index=True, nullable=False)
    file_path = Column(String, default="")
    line_number = Column(Integer, default=0)
    comment_text = Column(Text, default="")
    issue_category = Column(String)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class QuickfireResponseRecord(Base):
    __tablename__ = "quickfire_responses"

    id = Column(Integer, primary_key=True, autoincrement=True)
    session_id = Column(String, ForeignKey("assessment_sessions.id"), index=True, nullable=False)
    question_index = Column(Integer, nullable=False)
    difficulty = Column(Float, default=1.0)
    is_correct = Column(Boolean)
    response_time_ms = Column(Integer)
