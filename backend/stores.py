"""
Catalog and request stores - CRUD over the ``products`` and ``requests``
collections.

Driver failures are logged here and re-raised as StoreError; an update of an
unknown id raises NotFoundError; deleting an unknown id returns False.
"""
from __future__ import annotations
import logging
import re
from datetime import datetime, timezone
from typing import Any, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pydantic import ValidationError
from pymongo.errors import PyMongoError

from database import (
    create_document,
    delete_document,
    get_document,
    get_documents,
    update_document,
)
from events import EventBus, RequestCreated
from quote import to_snapshot
from schemas import (
    CustomerRequest,
    Product,
    ProductCreate,
    ProductUpdate,
    RequestCreate,
    RequestStatus,
    RequestUpdate,
)

logger = logging.getLogger("okna-store")

PRODUCTS = "products"
REQUESTS = "requests"


class StoreError(Exception):
    """The document store is unreachable or rejected the operation."""


class NotFoundError(StoreError):
    def __init__(self, collection: str, doc_id: str):
        super().__init__(f"{collection}/{doc_id} not found")
        self.collection = collection
        self.doc_id = doc_id


def utc_timestamp() -> str:
    """Current time as a sortable ISO-8601 string, e.g. 2024-05-01T09:30:00.000Z"""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _search_filter(q: Optional[str], fields: tuple[str, ...]) -> dict[str, Any]:
    if not q:
        return {}
    pattern = {"$regex": re.escape(q), "$options": "i"}
    return {"$or": [{f: pattern} for f in fields]}


def _read_products(docs: list[dict]) -> list[Product]:
    products = []
    for d in docs:
        try:
            products.append(Product(**d))
        except ValidationError as e:
            logger.warning("Skipping malformed product %s: %s", d.get("id"), e.errors(include_url=False))
    return products


class CatalogStore:

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db

    async def list(self, q: Optional[str] = None, category: Optional[str] = None) -> list[Product]:
        filt = _search_filter(q, ("name", "description"))
        if category and category != "all":
            filt["category"] = category
        try:
            docs = await get_documents(PRODUCTS, filt, db=self.db)
        except PyMongoError as e:
            logger.error("Failed to load products: %s", e)
            raise StoreError("products unavailable") from e
        return _read_products(docs)

    async def categories(self) -> list[str]:
        seen: dict[str, None] = {}
        for p in await self.list():
            if p.category:
                seen.setdefault(p.category)
        return list(seen)

    async def count(self) -> int:
        try:
            return await self.db[PRODUCTS].count_documents({})
        except PyMongoError as e:
            logger.error("Failed to count products: %s", e)
            raise StoreError("products unavailable") from e

    async def create(self, product: ProductCreate) -> Product:
        try:
            doc = await create_document(PRODUCTS, product.model_dump(), db=self.db)
        except PyMongoError as e:
            logger.error("Failed to create product: %s", e)
            raise StoreError("product not created") from e
        logger.info("Product %s created", doc["id"])
        return Product(**doc)

    async def update(self, product_id: str, fields: ProductUpdate) -> Product:
        changes = fields.model_dump(exclude_unset=True, exclude_none=True)
        try:
            if changes:
                doc = await update_document(PRODUCTS, product_id, changes, db=self.db)
            else:
                doc = await get_document(PRODUCTS, product_id, db=self.db)
        except PyMongoError as e:
            logger.error("Failed to update product %s: %s", product_id, e)
            raise StoreError("product not updated") from e
        if doc is None:
            raise NotFoundError(PRODUCTS, product_id)
        return Product(**doc)

    async def delete(self, product_id: str) -> bool:
        try:
            return await delete_document(PRODUCTS, product_id, db=self.db)
        except PyMongoError as e:
            logger.error("Failed to delete product %s: %s", product_id, e)
            raise StoreError("product not deleted") from e


class RequestStore:

    def __init__(self, db: AsyncIOMotorDatabase, events: Optional[EventBus] = None):
        self.db = db
        self.events = events

    async def list(self, q: Optional[str] = None) -> list[CustomerRequest]:
        """Requests matching ``q`` (name, email, phone, message), newest first."""
        filt = _search_filter(q, ("name", "email", "phone", "message"))
        try:
            docs = await get_documents(REQUESTS, filt, db=self.db)
        except PyMongoError as e:
            logger.error("Failed to load requests: %s", e)
            raise StoreError("requests unavailable") from e
        requests = [CustomerRequest(**d) for d in docs]
        # ISO timestamps sort lexicographically
        requests.sort(key=lambda r: r.date, reverse=True)
        return requests

    async def get(self, request_id: str) -> CustomerRequest:
        try:
            doc = await get_document(REQUESTS, request_id, db=self.db)
        except PyMongoError as e:
            logger.error("Failed to load request %s: %s", request_id, e, extra={"request_doc_id": request_id})
            raise StoreError("request unavailable") from e
        if doc is None:
            raise NotFoundError(REQUESTS, request_id)
        return CustomerRequest(**doc)

    async def create(self, payload: RequestCreate) -> CustomerRequest:
        data: dict[str, Any] = payload.model_dump(include={"name", "email", "phone", "message"})
        if payload.calculator_data is not None:
            data["calculatorData"] = to_snapshot(payload.calculator_data)
        data["date"] = utc_timestamp()
        data["status"] = "new"
        try:
            doc = await create_document(REQUESTS, data, db=self.db)
        except PyMongoError as e:
            logger.error("Failed to create request: %s", e)
            raise StoreError("request not created") from e
        request = CustomerRequest(**doc)
        logger.info("Request %s created", request.id, extra={"request_doc_id": request.id})
        if self.events is not None:
            self.events.publish(RequestCreated(request))
        return request

    async def update(self, request_id: str, fields: RequestUpdate) -> CustomerRequest:
        changes = fields.model_dump(exclude_unset=True, exclude_none=True)
        if not changes:
            return await self.get(request_id)
        try:
            doc = await update_document(REQUESTS, request_id, changes, db=self.db)
        except PyMongoError as e:
            logger.error("Failed to update request %s: %s", request_id, e, extra={"request_doc_id": request_id})
            raise StoreError("request not updated") from e
        if doc is None:
            raise NotFoundError(REQUESTS, request_id)
        return CustomerRequest(**doc)

    async def update_status(self, request_id: str, status: RequestStatus) -> CustomerRequest:
        # Any status may follow any other; there is no enforced workflow
        return await self.update(request_id, RequestUpdate(status=status))

    async def delete(self, request_id: str) -> bool:
        try:
            return await delete_document(REQUESTS, request_id, db=self.db)
        except PyMongoError as e:
            logger.error("Failed to delete request %s: %s", request_id, e, extra={"request_doc_id": request_id})
            raise StoreError("request not deleted") from e
