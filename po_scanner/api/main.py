"""FastAPI entry point for the purchase-order scanner."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, List, Optional

import uvicorn
from fastapi import Body, FastAPI, File, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from po_scanner.core.config import Settings, get_settings
from po_scanner.core.errors import ServiceError
from po_scanner.core.logging import configure_logging
from po_scanner.db.repository import MongoStore
from po_scanner.schemas.purchase_order import PurchaseOrderRecord
from po_scanner.services.purchase_orders import PurchaseOrderService, UploadedDocument

logger = logging.getLogger(__name__)

app: FastAPI | None = None


def serialize_record(record: PurchaseOrderRecord) -> dict:
    return record.model_dump(mode="json", by_alias=True, exclude_none=True)


def create_app(
    settings: Settings | None = None,
    service: PurchaseOrderService | None = None,
) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(api: FastAPI) -> AsyncIterator[None]:
        if service is not None:
            yield
            return

        store = MongoStore.from_settings(settings)
        owned = PurchaseOrderService(store.repository(), settings=settings)
        api.state.service = owned
        try:
            yield
        finally:
            await owned.pipeline.aclose()
            await store.close()

    api = FastAPI(title="Purchase Order Scanner", version="0.1.0", lifespan=lifespan)
    if service is not None:
        api.state.service = service

    api.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @api.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content={"message": exc.message})

    @api.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        errors = exc.errors()
        message = errors[0]["msg"] if errors else "Invalid request."
        return JSONResponse(status_code=400, content={"message": message})

    @api.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"message": "Unexpected server error"})

    def _service(request: Request) -> PurchaseOrderService:
        return request.app.state.service

    @api.get("/api/health")
    async def health() -> dict:
        return {"status": "ok"}

    @api.get("/api/purchase-orders")
    async def list_purchase_orders(request: Request) -> List[dict]:
        records = await _service(request).list_recent()
        return [serialize_record(record) for record in records]

    @api.post("/api/purchase-orders/upload", status_code=201)
    async def upload_purchase_order(
        request: Request,
        file: Optional[UploadFile] = File(None),
    ) -> Any:
        if file is None:
            return JSONResponse(status_code=400, content={"message": "No PDF uploaded"})

        upload = UploadedDocument(
            content=await file.read(),
            file_name=file.filename or "upload.pdf",
            content_type=file.content_type,
        )
        record = await _service(request).create_from_upload(upload)
        return serialize_record(record)

    @api.patch("/api/purchase-orders/{order_id}")
    async def update_purchase_order(
        request: Request,
        order_id: str,
        payload: Any = Body(None),
    ) -> dict:
        record = await _service(request).update(order_id, payload)
        return serialize_record(record)

    return api


def get_app() -> FastAPI:
    global app
    if app is not None:
        return app

    app = create_app()
    return app


def run() -> None:
    settings = get_settings()
    configure_logging(settings)
    uvicorn.run(get_app(), host=settings.host, port=settings.port)


app = get_app()
