import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from backend.app.api.v1.router import api_router
from backend.app.config import get_settings
from backend.app.database import create_tables
from backend.app.exceptions import MediationFailed

logging.basicConfig(
    level=get_settings().log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting up BridgeAI backend...")
    create_tables()
    yield
    logger.info("Shutting down BridgeAI backend...")

app = FastAPI(title="BridgeAI", lifespan=lifespan)

@app.exception_handler(MediationFailed)
async def mediation_failed_handler(request: Request, exc: MediationFailed):
    """Always give the partners something displayable, even when the AI provider fails"""
    return JSONResponse(status_code=exc.status_code, content=exc.to_response_body())

# Include all API routes
app.include_router(api_router, prefix="/api/v1")

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("backend.app.main:app", host="0.0.0.0", port=8000, reload=True)
