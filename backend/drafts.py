"""
Per-session calculator drafts.

A draft holds two optional slots for one client session: the in-progress
quote configuration and the catalog item the visitor picked. The client loads
it when the calculator opens and the request flow clears it after a
successful submission.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from quote import QuoteConfiguration, SelectedProduct, create_default
from stores import StoreError

logger = logging.getLogger("okna-store")

DRAFTS = "drafts"
QUOTE_SLOT = "calculatorData"
PRODUCT_SLOT = "selectedProduct"


@dataclass(frozen=True)
class Draft:
    session_id: str
    quote: Optional[QuoteConfiguration] = None
    selected_product: Optional[SelectedProduct] = None

    def resolve_quote(self) -> QuoteConfiguration:
        """Stored quote, or a fresh one defaulted from the selected product."""
        if self.quote is not None:
            return self.quote
        return create_default(self.selected_product)


class DraftStore:

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db

    async def load(self, session_id: str) -> Draft:
        try:
            doc = await self.db[DRAFTS].find_one({"_id": session_id})
        except PyMongoError as e:
            logger.error("Failed to load draft %s: %s", session_id, e)
            raise StoreError("draft unavailable") from e
        if not doc:
            return Draft(session_id)
        quote = doc.get(QUOTE_SLOT)
        product = doc.get(PRODUCT_SLOT)
        return Draft(
            session_id,
            quote=QuoteConfiguration.model_validate(quote) if quote else None,
            selected_product=SelectedProduct.model_validate(product) if product else None,
        )

    async def save_quote(self, session_id: str, quote: QuoteConfiguration) -> Draft:
        await self._set(session_id, QUOTE_SLOT, quote.model_dump(by_alias=True, mode="json", exclude_none=True))
        return await self.load(session_id)

    async def save_selected_product(self, session_id: str, product: Optional[SelectedProduct]) -> Draft:
        await self._set(session_id, PRODUCT_SLOT, product.model_dump() if product else None)
        return await self.load(session_id)

    async def clear(self, session_id: str) -> bool:
        try:
            result = await self.db[DRAFTS].delete_one({"_id": session_id})
        except PyMongoError as e:
            logger.error("Failed to clear draft %s: %s", session_id, e)
            raise StoreError("draft not cleared") from e
        return result.deleted_count > 0

    async def _set(self, session_id: str, slot: str, value) -> None:
        try:
            await self.db[DRAFTS].update_one(
                {"_id": session_id},
                {"$set": {slot: value, "updated_at": datetime.now(timezone.utc)}},
                upsert=True,
            )
        except PyMongoError as e:
            logger.error("Failed to save draft %s: %s", session_id, e)
            raise StoreError("draft not saved") from e
