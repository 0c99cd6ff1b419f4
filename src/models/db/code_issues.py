import uuid
from sqlalchemy import Column, String, Text, TIMESTAMP, Integer, ForeignKey, Index, Uuid, text
from sqlalchemy.orm import relationship
from src.core.database import Base

class CodeIssue(Base):
    __tablename__ = 'code_issues'

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    code_review_id = Column(
        Uuid(as_uuid=True),
        ForeignKey('code_reviews.id', ondelete='CASCADE'),
        nullable=False,
    )
    line_number = Column(Integer, nullable=False, default=0)
    severity = Column(String(8), nullable=False)
    type = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    suggestion = Column(Text, nullable=False)
    code_snippet = Column(Text)
    created_at = Column(TIMESTAMP, nullable=False, server_default=text("CURRENT_TIMESTAMP"))

    code_review = relationship("CodeReview", back_populates="issues")

    __table_args__ = (
        Index('ix_code_issues_review_severity', 'code_review_id', 'severity'),
    )
