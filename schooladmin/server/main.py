"""
Main Application Entry Point.

This module initializes the FastAPI application, configures middleware (CORS,
request logging), registers the exception handlers and includes all API
routers. It serves as the root of the web server.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from schooladmin import __version__
from schooladmin.core.logging_config import get_logger, setup_logging
from schooladmin.core.monitoring import initialize_logfire

from .api.v1 import (
    auth,
    classes,
    cohorts,
    departments,
    health,
    permissions,
    roles,
    rooms,
    soldiers,
    student_exits,
    students,
    tracks,
)
from .core import constant
from .core.config import settings
from .core.database import init_db
from .exception_handlers import setup_exception_handlers
from .middleware import LogfireMiddleware
from .services.auth import seed_initial_admin

# Initialize logging
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifespan events.

    Creates missing tables on startup unless the schema is managed by Alembic,
    then creates the administrator named by ADMIN_EMAIL when no account exists.
    """
    # Startup
    try:
        logger.info("Starting up SchoolAdmin Server...")
        await init_db()
        logger.info("Database initialized successfully")
        auth_config = settings.auth
        if auth_config.admin_email and auth_config.admin_password:
            if await seed_initial_admin(auth_config.admin_email, auth_config.admin_password) is not None:
                logger.info(f"Created initial administrator {auth_config.admin_email}")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}", exc_info=True)

    yield

    # Shutdown
    logger.info("Shutting down SchoolAdmin Server...")


app = FastAPI(
    title=constant.PROJECT_NAME,
    description="""
    SchoolAdmin Server API

    Backend of the school administration system: staff accounts and approvals,
    departments, roles and rooms, page and API permissions, and the academic
    records of students, cohorts, tracks and classes.
    """,
    version=__version__,
    openapi_url=f"{constant.API_V1_STR}/openapi.json",
    docs_url=f"{constant.API_V1_STR}/docs",
    redoc_url=f"{constant.API_V1_STR}/redoc",
    lifespan=lifespan,
)

initialize_logfire(app)
setup_exception_handlers(app)

cors = settings.cors
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors.origins,
    allow_credentials=cors.allow_credentials,
    allow_methods=cors.allow_methods,
    allow_headers=cors.allow_headers,
)
app.add_middleware(LogfireMiddleware)


app.include_router(health.router, tags=["health"])
app.include_router(auth.router, prefix=f"{constant.API_V1_STR}/auth")
app.include_router(soldiers.router, prefix=f"{constant.API_V1_STR}/soldiers")
app.include_router(departments.router, prefix=f"{constant.API_V1_STR}/departments")
app.include_router(roles.router, prefix=f"{constant.API_V1_STR}/roles")
app.include_router(rooms.router, prefix=f"{constant.API_V1_STR}/rooms")
app.include_router(permissions.router, prefix=f"{constant.API_V1_STR}/permissions")
app.include_router(cohorts.router, prefix=f"{constant.API_V1_STR}/cohorts")
app.include_router(tracks.router, prefix=f"{constant.API_V1_STR}/tracks")
app.include_router(classes.router, prefix=f"{constant.API_V1_STR}/classes")
app.include_router(students.router, prefix=f"{constant.API_V1_STR}/students")
app.include_router(student_exits.router, prefix=f"{constant.API_V1_STR}/student-exits")
