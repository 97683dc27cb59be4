import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from app.api.routes import api_router
from app.api.v1 import v1_router
from app.api.v1.envelope import error
from app.core.config import settings
from app.core.logging_config import setup_logging
from app.domain.exceptions import ComputationError, RenderError
from app.infrastructure.external.inventory_api_client import InventoryAPIError

setup_logging()
logger = logging.getLogger("app.main")

app = FastAPI(title=settings.APP_NAME)


@app.exception_handler(ComputationError)
async def computation_error_handler(request: Request, exc: ComputationError):
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=error(exc.message, errors=[exc.to_dict()]),
    )


@app.exception_handler(RenderError)
async def render_error_handler(request: Request, exc: RenderError):
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error(exc.message),
    )


@app.exception_handler(InventoryAPIError)
async def inventory_error_handler(request: Request, exc: InventoryAPIError):
    logger.warning("Inventory API error on %s: %s", request.url.path, exc.message)
    code = status.HTTP_404_NOT_FOUND if exc.status_code == 404 else status.HTTP_502_BAD_GATEWAY
    return JSONResponse(status_code=code, content=error(exc.message))


app.include_router(api_router)
app.include_router(v1_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:app", host="0.0.0.0", port=settings.PORT)
