import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .database import init_db
from .routes.hospitals import router as hospitals_router
from .routes.trials import router as trials_router


# Load environment variables from .env file
load_dotenv()

logging.basicConfig(
    level=getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

_DEFAULT_CORS_ORIGINS = "http://localhost:3000,http://127.0.0.1:3000,http://localhost:5173"


@asynccontextmanager
async def lifespan(app: FastAPI):

    # Startup
    init_db()
    print("Starting Trial Feasibility Service")
    print(f"   OpenAI Key:  {' Configured' if os.getenv('OPENAI_API_KEY') else ' Not set (using heuristic scoring)'}")
    print(f"   Identity:    {' Audience ' + os.getenv('IDENTITY_JWT_AUDIENCE') if os.getenv('IDENTITY_JWT_AUDIENCE') else ' No audience check'}")
    print("   Ready to assess trial proposals!")

    yield

    print("Shutting down Trial Feasibility Service")


app = FastAPI(
    title="Clinical Trial Feasibility Service",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)


app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in os.getenv("CORS_ORIGINS", _DEFAULT_CORS_ORIGINS).split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(trials_router)
app.include_router(hospitals_router)


@app.get(
    "/",
    summary="API Root",
    description="Welcome endpoint with API information",
    tags=["General"]
)
async def root():
    """Root endpoint with API information."""
    return {
        "name": "Clinical Trial Feasibility Service",
        "version": "0.1.0",
        "description": "Feasibility scoring for clinical-trial proposals",
        "docs": "/docs",
        "endpoints": {
            "submit": "POST /trials - Submit and score a trial proposal",
            "trials": "GET /trials - List your trials",
            "hospitals": "GET /hospitals - Match research sites",
            "health": "GET /health - Service health check"
        }
    }


@app.get(
    "/health",
    summary="Global Health Check",
    description="Check if the API server is running",
    tags=["General"]
)
async def health():
    """Global health check endpoint."""
    return {
        "status": "healthy",
        "service": "trial-feasibility",
        "version": "0.1.0"
    }


@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Global exception handler for unhandled errors."""
    logging.getLogger(__name__).exception("Unhandled error on %s", request.url.path)
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Internal server error",
            "detail": str(exc) if os.getenv("DEBUG", "false").lower() == "true" else "An unexpected error occurred"
        }
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "trial_feasibility.main:app",
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "8000")),
        reload=os.getenv("DEBUG", "true").lower() == "true",
    )
