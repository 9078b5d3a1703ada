import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api import grading, results
from app.config import settings
from app.middleware.logging import setup_logging, add_logging_middleware
from app.services.cache import CohortCache
from app.services.results_client import ResultsClient

# Initialize FastAPI app
app = FastAPI(
    title="School Results API",
    description="Grade computation, subject ranking and report cards for the school portal",
    version="1.0.0",
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Setup logging
setup_logging()
add_logging_middleware(app)
logger = logging.getLogger(__name__)

# Custom exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "An unexpected error occurred. Please try again later."},
    )

# Backend client and cohort cache live for the lifetime of the app
@app.on_event("startup")
async def startup():
    app.state.results_client = ResultsClient.create()
    app.state.cohort_cache = CohortCache(ttl=settings.RESULTS_CACHE_TTL_SECONDS)
    logger.info(f"Using results backend at {settings.RESULTS_API_BASE_URL}")

@app.on_event("shutdown")
async def shutdown():
    await app.state.results_client.aclose()

# Include routers
app.include_router(grading.router, prefix="/api", tags=["Grading"])
app.include_router(results.router, prefix="/api", tags=["Results"])

@app.get("/", tags=["Root"])
async def root():
    return {"message": "Welcome to School Results API. Visit /docs for documentation."}

# Run the server
if __name__ == "__main__":
    import uvicorn
    uvicorn.run("app.main:app", host="0.0.0.0", port=5000, reload=True)
