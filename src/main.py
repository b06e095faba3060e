import logging

from fastapi import FastAPI

from src.config.settings import settings
from src.modules.feeds.router import router as feeds_router
from src.modules.social.router import router as social_router

logger = logging.getLogger(__name__)

app = FastAPI(title="Atlantic Feed Relay")

# API routes
app.include_router(feeds_router, prefix="/api", tags=["feeds"])
app.include_router(social_router, prefix="/api/social", tags=["social"])


@app.get("/health")
async def health():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=logging.INFO)
    logger.info("Starting on %s:%d", settings.app_host, settings.app_port)
    uvicorn.run(app, host=settings.app_host, port=settings.app_port)
