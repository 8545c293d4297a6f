"""
Health Check Endpoints.

Basic status endpoints (health, version) used by load balancers and
deployment checks. They need no authentication.
"""

from fastapi import APIRouter

from schooladmin import __version__

router = APIRouter()


@router.get(
    "/health",
    summary="Health Check",
    description="Check the operational status of the API server.",
    response_description="Status object.",
)
async def health_check():
    """
    Health check endpoint.

    Returns a simple status indicator to confirm the server is running and reachable.
    """
    return {"status": "ok"}


@router.get(
    "/version",
    summary="Get Version",
    description="Retrieve version information for the API server.",
    response_description="Version object.",
)
async def version():
    """
    Get API version.

    Returns the package version and the API schema version.
    """
    return {"version": __version__, "schema_version": "v1"}
