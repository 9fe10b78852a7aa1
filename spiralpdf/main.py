from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from spiralpdf.config import settings
from spiralpdf.middleware import add_error_handling_middleware

# Configure logging
logging.basicConfig(level=getattr(logging, settings.log_level.upper()))
logger = logging.getLogger(__name__)

# Create FastAPI app instance
app = FastAPI(
    title=settings.app_name,
    description="Queues text submissions and renders them as spiral-layout PDFs",
    version=settings.app_version,
    debug=settings.debug
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add error handling middleware
add_error_handling_middleware(app)

# Include routers
from spiralpdf.routes import debug, health, info, pdf
from spiralpdf.services.database import init_database, cleanup_database
from spiralpdf.services.queue_processor import init_queue_processor, shutdown_queue_processor

app.include_router(health.router, prefix=settings.api_v1_prefix)
app.include_router(info.router, prefix=settings.api_v1_prefix)
app.include_router(pdf.router, prefix=settings.api_v1_prefix)
app.include_router(debug.router, prefix=settings.api_v1_prefix)

# Queue processor lifecycle
@app.on_event("startup")
async def _startup():
    # Initialize database first; recovery of orphaned jobs needs it
    store = init_database(settings.database_path)
    await init_queue_processor(store)


@app.on_event("shutdown")
async def _shutdown():
    await shutdown_queue_processor()
    cleanup_database()

@app.get("/")
async def root():
    """Root endpoint"""
    return {"message": settings.app_name, "version": settings.app_version}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.host, port=settings.port)
