"""FastAPI entrypoint for the Jira export service: settings, CORS and the v1 routers."""

from dotenv import load_dotenv

load_dotenv()

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.v1 import router as v1_router
from app.core.config import settings

SERVICE_NAME = "ReqSync API"
SERVICE_VERSION = "0.1.0"

app = FastAPI(
    title=SERVICE_NAME,
    version=SERVICE_VERSION,
    description="Exports generated requirements and test cases to Jira as tasks, sub-tasks and links.",
)

# The requirements UI calls the export from the browser; only open CORS in dev.
if settings.APP_ENV == "dev":
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

app.include_router(v1_router, prefix=settings.API_V1_PREFIX)


@app.get("/")
def root() -> dict[str, str]:
    """Service name, version and where the export route lives."""
    return {
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "export": f"{settings.API_V1_PREFIX}/jira/export",
    }
