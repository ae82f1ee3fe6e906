"""
Main application module for the ASV tester backend.

This file sets up the FastAPI application, configures CORS so a viewer
front end can make cross-origin requests, and exposes a simple health
check endpoint.

Routers for inline validation and for uploaded problem/solution files are
included under the `/api` namespace.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.routes_problems import router as problems_router
from .api.routes_validation import router as validation_router


def create_app() -> FastAPI:
    """Factory to create and configure the FastAPI application.

    Returns:
        FastAPI: The configured FastAPI application instance.
    """
    app = FastAPI(title="ASV path tester")

    # Allow all origins by default.  Deployments behind a shared host
    # should restrict this to the viewer's origin.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Health check endpoint for monitoring and deployment probes.
    @app.get("/api/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    app.include_router(validation_router, prefix="/api", tags=["validation"])
    app.include_router(problems_router, prefix="/api", tags=["problems"])

    return app


# Create the application instance.  Uvicorn will import this when
# running `uvicorn backend.app.main:app` from the repository root.
app = create_app()
