from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.routing import Mount

from gst_billing.config import get_settings
from gst_billing.dependencies.services import get_document_client_cached

from gst_billing.health import router as health_router
from gst_billing.invoice_view import router as invoice_view_router
from gst_billing.mcp_server import mcp
from gst_billing.mock_data_view import router as mock_data_router
from gst_billing.tools.bill import router as bill_router
from gst_billing.tools.catalog import router as catalog_router
from gst_billing.tools.invoice import router as invoice_router
from gst_billing.tools.receivers import router as receivers_router


def configure_logging() -> None:
    """Ensure application logs use the INFO level by default."""
    root_logger = logging.getLogger()
    if not root_logger.handlers:
        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        )
    else:
        root_logger.setLevel(logging.INFO)


configure_logging()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()

    settings_snapshot = settings.model_dump(
        exclude={"document_store_token", "api_key"},
    )
    logger.info("Application settings on startup: %s", settings_snapshot)

    has_mcp = any(isinstance(r, Mount) and r.path == "/mcp" for r in app.routes)
    logger.debug("MCP mount present: %s", has_mcp)

    client = get_document_client_cached()
    logger.info("Application startup complete.")

    try:
        yield
    finally:
        logger.info("Closing document store client.")
        await client.close()
        logger.info("Application shutdown complete.")


settings = get_settings()
app = FastAPI(
    title=settings.app_name,
    lifespan=lifespan,
    redirect_slashes=False,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[str(origin).rstrip("/") for origin in settings.cors_origins],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(catalog_router, prefix="/tools/catalog")
app.include_router(receivers_router, prefix="/tools/receivers")
app.include_router(bill_router, prefix="/tools/bill")
app.include_router(invoice_router, prefix="/tools/invoice")
app.include_router(invoice_view_router)
app.include_router(health_router)
app.include_router(mock_data_router)

# MCP Streamable HTTP server
app.mount("/mcp", mcp.streamable_http_app())
