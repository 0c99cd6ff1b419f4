from typing import Optional
from temporalio.client import Client
from src.core.config import settings
from src.utils.logging.otel_logger import logger

class TemporalClient:
    def __init__(self, target_host: Optional[str] = None):
        self.target_host = target_host or settings.TEMPORAL_SERVER_URL
        self.client: Optional[Client] = None

    async def connect(self):
        self.client = await Client.connect(self.target_host)
        logger.info(f"Successfully connected to Temporal server at {self.target_host}")

    async def disconnect(self):
        # the SDK client holds no closable resources; dropping the reference is enough
        self.client = None
        logger.info("Disconnected from Temporal server.")
        
    async def get_client(self) -> Client:
        if not self.client:
            await self.connect()
        return self.client
