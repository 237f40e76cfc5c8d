import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from coordkit.api.v1.router import api_router
from coordkit.core.config import CORS_ORIGINS

logger = logging.getLogger(__name__)

app = FastAPI(
    title="coordkit GIS Tools API",
    description="Coordinate conversion, bounding box and GeoJSON preview tools.",
    version="0.1.0",
)

# --- CORS Middleware ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
logger.info(f"CORS middleware added with origins: {CORS_ORIGINS}")


# --- Test Endpoint (Before API v1 Router) ---
@app.get("/ping", tags=["Test"])
async def ping():
    return {"message": "pong"}


# --- Include API Routers ---
app.include_router(api_router, prefix="/api/v1")
logger.info("Included API router v1 at /api/v1.")


# --- Root Endpoint ---
@app.get("/", tags=["Root"])
async def read_root():
    """Provides a basic welcome message."""
    return {"message": "Welcome to the coordkit GIS Tools API"}


if __name__ == "__main__":
    import uvicorn

    logger.info("Starting Uvicorn server directly...")
    uvicorn.run(app, host="0.0.0.0", port=8000)
