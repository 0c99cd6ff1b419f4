from datetime import datetime, timezone
from fastapi import APIRouter, Depends
from src.services.code_review.analysis_client import AnalysisClient
from src.utils.logging.otel_logger import logger

router = APIRouter()

def get_analysis_client() -> AnalysisClient:
    return AnalysisClient()

@router.get("/health")
def health_check():
    logger.info("Health check endpoint hit")
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": "CodeReview AI API",
    }

@router.get("/ping")
def ping():
    logger.info("Ping endpoint hit")
    return {"status": "pong"}

@router.get("/health/analysis")
async def analysis_health_check(analysis_client: AnalysisClient = Depends(get_analysis_client)):
    logger.info("Analysis health check endpoint hit")
    connected = await analysis_client.check_connection()
    return {"status": "ok" if connected else "unavailable", "connected": connected}
