import uuid
from sqlalchemy import Column, String, Text, TIMESTAMP, Integer, Index, Uuid, text
from sqlalchemy.orm import relationship
from src.core.database import Base

class CodeReview(Base):
    __tablename__ = 'code_reviews'

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_name = Column(String(100), nullable=False)
    filename = Column(String(255), nullable=False)
    language = Column(String(32), nullable=False)
    original_code = Column(Text, nullable=False)
    ai_analysis = Column(Text)
    total_issues = Column(Integer, nullable=False, default=0)
    high_severity = Column(Integer, nullable=False, default=0)
    medium_severity = Column(Integer, nullable=False, default=0)
    low_severity = Column(Integer, nullable=False, default=0)
    suggestions_count = Column(Integer, nullable=False, default=0)
    status = Column(String(16), nullable=False, default='pending')
    # highest delivery attempt that claimed this review
    attempts = Column(Integer, nullable=False, default=0)
    created_at = Column(TIMESTAMP, nullable=False, server_default=text("CURRENT_TIMESTAMP"))
    updated_at = Column(TIMESTAMP, nullable=False, server_default=text("CURRENT_TIMESTAMP"))

    issues = relationship(
        "CodeIssue",
        back_populates="code_review",
        cascade="all, delete-orphan",
        order_by="CodeIssue.line_number",
    )

    __table_args__ = (
        Index('ix_code_reviews_user_name_created_at', 'user_name', 'created_at'),
        Index('ix_code_reviews_status', 'status'),
    )
