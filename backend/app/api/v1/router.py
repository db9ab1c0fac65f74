from fastapi import APIRouter
from app.api.v1.endpoints import health, runtime, sandbox

api_router = APIRouter()

# Liveness/readiness probes
api_router.include_router(health.router)


# Simple health check endpoint for load balancers
@api_router.get("/health", tags=["Health"])
async def health_check():
    """Simple health check endpoint"""
    return {"status": "healthy", "service": "previewguard"}


api_router.include_router(runtime.router)
api_router.include_router(sandbox.router)
