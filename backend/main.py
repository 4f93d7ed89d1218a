from __future__ import annotations
import logging
from contextlib import asynccontextmanager
from typing import Optional
from urllib.parse import quote as url_quote

from fastapi import Depends, FastAPI, Query, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from motor.motor_asyncio import AsyncIOMotorDatabase
from pydantic import BaseModel

from config import settings
from database import close_db, get_db
from drafts import DraftStore
from events import EventBus, RequestCreated
from export import export_filename, export_requests
from logging_config import setup_logging
from middleware import RequestTimingMiddleware
from notifications import RequestNotifier
from quote import QuoteConfiguration, SelectedProduct, create_default, describe
from schemas import (
    CustomerRequest,
    Product,
    ProductCreate,
    ProductUpdate,
    RequestCreate,
    RequestUpdate,
    StatusUpdate,
)
from stores import CatalogStore, NotFoundError, RequestStore, StoreError

setup_logging(level=settings.LOG_LEVEL, json_output=settings.LOG_FORMAT.lower() != "text")
logger = logging.getLogger("okna-api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    events = EventBus()
    events.subscribe(RequestCreated, RequestNotifier())
    await events.start()
    app.state.events = events
    if not settings.notifications_enabled:
        logger.warning("EMAIL_USER/EMAIL_PASS not set, request notifications disabled")
    yield
    await events.stop()
    close_db()


app = FastAPI(title="Okna Mashtab API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestTimingMiddleware)


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})

@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    return JSONResponse(status_code=503, content={"detail": "Хранилище данных недоступно, попробуйте ещё раз"})


# Dependencies

def get_events(request: Request) -> Optional[EventBus]:
    return getattr(request.app.state, "events", None)

async def get_catalog_store(db: AsyncIOMotorDatabase = Depends(get_db)) -> CatalogStore:
    return CatalogStore(db)

async def get_request_store(
    db: AsyncIOMotorDatabase = Depends(get_db),
    events: Optional[EventBus] = Depends(get_events),
) -> RequestStore:
    return RequestStore(db, events)

async def get_draft_store(db: AsyncIOMotorDatabase = Depends(get_db)) -> DraftStore:
    return DraftStore(db)


# Seed / fallback catalog shown when the database is empty or unreachable
SEED_PRODUCTS: list[dict] = [
    {"name": "Premium Vinyl Window", "description": "High-quality double-glazed window with excellent thermal insulation properties.", "rating": 4.8, "image": "https://images.unsplash.com/photo-1605276374104-dee2a0ed3cd6?w=500&q=80", "category": "vinyl", "features": ["Energy efficient double glazing", "UV protection coating", "Soundproof design", "Easy maintenance", "Lifetime warranty"], "specifications": {"Material": "Vinyl/PVC", "Glass Type": "Double glazed, Low-E", "Frame Color": "White", "U-Value": "0.30 W/m²K", "Sound Reduction": "35dB", "Security": "Multi-point locking system"}, "images": ["https://images.unsplash.com/photo-1605276374104-dee2a0ed3cd6?w=800&q=80", "https://images.unsplash.com/photo-1604147706283-d7119b5b822c?w=800&q=80", "https://images.unsplash.com/photo-1513694203232-719a280e022f?w=800&q=80"]},
    {"name": "Aluminum Sliding Window", "description": "Modern sliding window with slim aluminum frame, perfect for contemporary homes.", "rating": 4.5, "image": "https://images.unsplash.com/photo-1604147495798-57beb5d6af73?w=500&q=80", "category": "aluminum", "features": ["Slim profile design", "Smooth sliding mechanism", "Corrosion resistant", "Multiple locking points", "Custom sizing available"], "specifications": {"Material": "Aluminum", "Glass Type": "Double glazed, Tempered", "Frame Color": "Silver", "U-Value": "0.35 W/m²K", "Sound Reduction": "32dB", "Security": "Multi-point locking system"}, "images": ["https://images.unsplash.com/photo-1604147495798-57beb5d6af73?w=800&q=80", "https://images.unsplash.com/photo-1605117882932-f9e32b03fea9?w=800&q=80", "https://images.unsplash.com/photo-1605117503035-1fa9f79999d7?w=800&q=80"]},
    {"name": "Wooden Frame Window", "description": "Classic wooden frame windows that add warmth and character to traditional homes.", "rating": 4.7, "image": "https://images.unsplash.com/photo-1513694203232-719a280e022f?w=500&q=80", "category": "wooden", "features": ["Natural wood aesthetics", "Excellent insulation", "Environmentally friendly", "Custom finishes available", "Traditional craftsmanship"], "specifications": {"Material": "Solid Pine/Oak", "Glass Type": "Double glazed, Argon filled", "Frame Color": "Natural wood/Custom stain", "U-Value": "0.28 W/m²K", "Sound Reduction": "38dB", "Security": "Traditional lock with modern security"}, "images": ["https://images.unsplash.com/photo-1513694203232-719a280e022f?w=800&q=80", "https://images.unsplash.com/photo-1604148482093-d58fdd7a8b0e?w=800&q=80", "https://images.unsplash.com/photo-1600607686527-6fb886090705?w=800&q=80"]},
    {"name": "Energy Efficient Casement", "description": "Top-rated energy efficient casement windows with triple glazing for maximum insulation.", "rating": 4.9, "image": "https://images.unsplash.com/photo-1600607687920-4e2a09cf159d?w=500&q=80", "category": "vinyl", "features": ["Triple glazed glass", "Highest energy efficiency rating", "Argon gas filled", "Thermal break technology", "Weather-resistant seals"], "specifications": {"Material": "Reinforced Vinyl", "Glass Type": "Triple glazed, Low-E", "Frame Color": "White/Custom", "U-Value": "0.18 W/m²K", "Sound Reduction": "42dB", "Security": "Advanced multi-point locking"}, "images": ["https://images.unsplash.com/photo-1600607687920-4e2a09cf159d?w=800&q=80", "https://images.unsplash.com/photo-1600607687644-c7ddd0d8a99f?w=800&q=80", "https://images.unsplash.com/photo-1600607688066-890987f19a02?w=800&q=80"]},
]

DEMO_PRODUCTS: list[Product] = [Product(id=str(i), **p) for i, p in enumerate(SEED_PRODUCTS, start=1)]

def demo_products(q: Optional[str] = None, category: Optional[str] = None) -> list[Product]:
    needle = (q or "").lower()
    return [
        p for p in DEMO_PRODUCTS
        if (needle in p.name.lower() or needle in p.description.lower())
        and (not category or category == "all" or p.category == category)
    ]


@app.get("/")
async def root():
    return {"message": "Okna Mashtab Backend Running"}

@app.get("/health")
async def health(db: AsyncIOMotorDatabase = Depends(get_db)):
    response = {
        "backend": "running",
        "database": "unavailable",
        "database_name": settings.DATABASE_NAME,
        "collections": [],
        "notifications": "enabled" if settings.notifications_enabled else "disabled",
    }
    try:
        await db.command("ping")
        response["database"] = "connected"
        response["collections"] = await db.list_collection_names()
    except Exception as e:
        logger.warning("Health check: database not reachable: %s", e)
        response["database"] = f"error: {str(e)[:80]}"
    return response


class SeedResponse(BaseModel):
    inserted: int

@app.post("/seed", response_model=SeedResponse)
async def seed_products(store: CatalogStore = Depends(get_catalog_store)):
    # Insert only if products collection is empty
    if await store.count() == 0:
        for p in SEED_PRODUCTS:
            await store.create(ProductCreate(**p))
        return SeedResponse(inserted=len(SEED_PRODUCTS))
    return SeedResponse(inserted=0)


# Catalog

@app.get("/api/products", response_model=list[Product])
async def list_products(
    q: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    store: CatalogStore = Depends(get_catalog_store),
):
    try:
        return await store.list(q=q, category=category)
    except StoreError:
        # Keep the public catalog rendering while the database is down
        logger.warning("Serving demo catalog instead of stored products")
        return demo_products(q, category)

@app.get("/api/products/categories", response_model=list[str])
async def list_categories(store: CatalogStore = Depends(get_catalog_store)):
    return await store.categories()

@app.post("/api/products", response_model=Product, status_code=201)
async def create_product(product: ProductCreate, store: CatalogStore = Depends(get_catalog_store)):
    return await store.create(product)

@app.patch("/api/products/{product_id}", response_model=Product)
async def update_product(product_id: str, fields: ProductUpdate, store: CatalogStore = Depends(get_catalog_store)):
    return await store.update(product_id, fields)

@app.delete("/api/products/{product_id}")
async def delete_product(product_id: str, store: CatalogStore = Depends(get_catalog_store)):
    return {"deleted": await store.delete(product_id)}


# Calculator

@app.post("/api/quote/default")
async def default_quote(product: Optional[SelectedProduct] = None):
    return describe(create_default(product))

@app.post("/api/quote/preview")
async def preview_quote(config: QuoteConfiguration):
    return describe(config)


# Customer requests

@app.get("/api/requests", response_model=list[CustomerRequest])
async def list_requests(q: Optional[str] = Query(None), store: RequestStore = Depends(get_request_store)):
    return await store.list(q=q)

@app.get("/api/requests/export")
async def export_request_list(q: Optional[str] = Query(None), store: RequestStore = Depends(get_request_store)):
    content = export_requests(await store.list(q=q))
    filename = export_filename()
    return Response(
        content=content,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": f"attachment; filename=\"requests.xlsx\"; filename*=UTF-8''{url_quote(filename)}"},
    )

@app.post("/api/requests", response_model=CustomerRequest, status_code=201)
async def create_request(
    payload: RequestCreate,
    draft_id: Optional[str] = Query(None),
    store: RequestStore = Depends(get_request_store),
    drafts: DraftStore = Depends(get_draft_store),
):
    created = await store.create(payload)
    if draft_id:
        try:
            await drafts.clear(draft_id)
        except StoreError:
            logger.warning("Request %s stored but draft %s was not cleared", created.id, draft_id)
    return created

@app.get("/api/requests/{request_id}", response_model=CustomerRequest)
async def get_request(request_id: str, store: RequestStore = Depends(get_request_store)):
    return await store.get(request_id)

@app.patch("/api/requests/{request_id}", response_model=CustomerRequest)
async def update_request(request_id: str, fields: RequestUpdate, store: RequestStore = Depends(get_request_store)):
    return await store.update(request_id, fields)

@app.patch("/api/requests/{request_id}/status", response_model=CustomerRequest)
async def update_request_status(request_id: str, payload: StatusUpdate, store: RequestStore = Depends(get_request_store)):
    return await store.update_status(request_id, payload.status)

@app.delete("/api/requests/{request_id}")
async def delete_request(request_id: str, store: RequestStore = Depends(get_request_store)):
    return {"deleted": await store.delete(request_id)}


# Calculator drafts

def _draft_out(draft) -> dict:
    return {
        "sessionId": draft.session_id,
        "selectedProduct": draft.selected_product.model_dump() if draft.selected_product else None,
        **describe(draft.resolve_quote()),
    }

@app.get("/api/drafts/{session_id}")
async def load_draft(session_id: str, drafts: DraftStore = Depends(get_draft_store)):
    return _draft_out(await drafts.load(session_id))

@app.put("/api/drafts/{session_id}/quote")
async def save_draft_quote(session_id: str, config: QuoteConfiguration, drafts: DraftStore = Depends(get_draft_store)):
    return _draft_out(await drafts.save_quote(session_id, config))

@app.put("/api/drafts/{session_id}/product")
async def save_draft_product(session_id: str, product: Optional[SelectedProduct] = None, drafts: DraftStore = Depends(get_draft_store)):
    return _draft_out(await drafts.save_selected_product(session_id, product))

@app.delete("/api/drafts/{session_id}")
async def clear_draft(session_id: str, drafts: DraftStore = Depends(get_draft_store)):
    return {"cleared": await drafts.clear(session_id)}


if __name__ == "__main__":
    import os
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", 8000)))
