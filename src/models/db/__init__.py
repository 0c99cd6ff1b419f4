# Import all models to ensure SQLAlchemy can resolve relationships
from .code_reviews import CodeReview
from .code_issues import CodeIssue

# Export all models
__all__ = [
    'CodeReview',
    'CodeIssue',
]
