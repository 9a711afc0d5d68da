"""Web API for the arbitrage executor"""
import logging

from fastapi import FastAPI
from fastapi.responses import Response

from api import router
from engine import FlashArbitrageEngine

logger = logging.getLogger(__name__)


def create_app(engine: FlashArbitrageEngine) -> FastAPI:
    """Build the FastAPI app serving one engine"""
    app = FastAPI(title="Flash Loan Arbitrage Executor", version="1.0.0")
    app.state.engine = engine
    app.include_router(router)

    @app.get("/metrics")
    async def metrics():
        """Prometheus metrics endpoint"""
        return Response(
            content=engine.metrics.export(),
            media_type=engine.metrics.content_type,
        )

    @app.get("/health")
    async def health():
        return {"status": "ok", "executor": engine.address}

    return app
