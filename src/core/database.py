from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from src.core.config import settings

engine = create_engine(settings.DATABASE_URL, echo=settings.DB_ECHO, future=True)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()

# register models on Base.metadata
import src.models.db  # noqa: E402,F401
