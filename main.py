import uuid
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import Body, Depends, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from pymongo.database import Database

import catalog
import config
import database
from audit import record_audit
from auth import require_admin
from database import ensure_indexes, get_db
from errors import NotFoundError, register_error_handlers
from facets import search_products
from featured_specs import FeaturedSpecsStore, parse_featured_update
from logging_config import get_logger, setup_logging
from product_filters import ProductFilterParams, parse_spec_filters
from rate_limit import admin_rate_limit
from schemas import AvailableSpecKeys, FeaturedSpecsState, SortOption
from seed import seed_catalog

logger = get_logger("api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(config.LOG_LEVEL)
    if database.db is not None:
        ensure_indexes(database.db)
        logger.info("Indexes ensured on %s", database.db.name)
    else:
        logger.warning("DATABASE_URL/DATABASE_NAME not set, database routes will return 503")
    yield


app = FastAPI(title="Storefront Catalog API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

admin_guards = [Depends(require_admin), Depends(admin_rate_limit)]


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    request.state.request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
    response = await call_next(request)
    response.headers["X-Request-ID"] = request.state.request_id
    return response


@app.get("/")
def read_root():
    return {"message": "Storefront Catalog API"}


# Catalog listing

def product_filter_params(
    request: Request,
    search: Optional[str] = None,
    min_price: Optional[float] = Query(None, alias="minPrice", ge=0),
    max_price: Optional[float] = Query(None, alias="maxPrice", ge=0),
    brand: Optional[str] = None,
    category: Optional[str] = None,
    availability: Optional[str] = None,
    in_stock: bool = Query(False, alias="inStock"),
) -> ProductFilterParams:
    return ProductFilterParams(
        search=search,
        min_price=min_price,
        max_price=max_price,
        brand=brand,
        category=category,
        availability=availability,
        in_stock=in_stock,
        spec=parse_spec_filters(request.query_params.multi_items()),
    )


@app.get("/api/v1/products")
def list_products(
    params: ProductFilterParams = Depends(product_filter_params),
    sort: SortOption = "newest",
    page: int = Query(1, ge=1),
    limit: int = Query(config.DEFAULT_PAGE_SIZE, ge=1, le=config.MAX_PAGE_SIZE),
    db: Database = Depends(get_db),
):
    return search_products(db, params, page=page, limit=limit, sort=sort)


@app.get("/api/v1/products/facets")
def product_facets(
    params: ProductFilterParams = Depends(product_filter_params),
    db: Database = Depends(get_db),
):
    return search_products(db, params, include_products=False)


@app.get("/api/v1/products/grouped")
def products_grouped(db: Database = Depends(get_db)):
    return catalog.grouped_products(db)


@app.get("/api/v1/products/brands")
def brands(db: Database = Depends(get_db)):
    return catalog.list_brands(db)


@app.get("/api/v1/products/categories")
def categories(db: Database = Depends(get_db)):
    return catalog.list_categories(db)


@app.get("/api/v1/products/id/{product_id}")
def product_by_id(product_id: str, db: Database = Depends(get_db)):
    product = catalog.get_product_by_id(db, product_id)
    if not product:
        raise NotFoundError("Product not found", code="PRODUCT_NOT_FOUND")
    return product


@app.get("/api/v1/products/{slug}")
def product_by_slug(slug: str, db: Database = Depends(get_db)):
    product = catalog.get_product_by_slug(db, slug)
    if not product:
        raise NotFoundError("Product not found", code="PRODUCT_NOT_FOUND")
    return product


# Admin: featured spec configuration

@app.get(
    "/api/v1/admin/categories/{category_key}/spec-keys",
    response_model=AvailableSpecKeys,
    dependencies=admin_guards,
)
def available_spec_keys(category_key: str, db: Database = Depends(get_db)):
    return FeaturedSpecsStore(db).get_available_spec_keys(category_key)


@app.get(
    "/api/v1/admin/categories/{category_key}/featured-specs",
    response_model=FeaturedSpecsState,
    dependencies=admin_guards,
)
def get_featured_specs(category_key: str, db: Database = Depends(get_db)):
    return FeaturedSpecsStore(db).get_featured_specs(category_key)


@app.put(
    "/api/v1/admin/categories/{category_key}/featured-specs",
    response_model=FeaturedSpecsState,
    dependencies=admin_guards,
)
def update_featured_specs(
    category_key: str,
    request: Request,
    payload: Any = Body(None),
    db: Database = Depends(get_db),
):
    keys = parse_featured_update(payload)
    store = FeaturedSpecsStore(db)
    before = store.get_featured_specs(category_key)
    state = store.update_featured_specs(category_key, keys)
    record_audit(
        db, request, "featured_specs.update", "category_featured_specs",
        entity_id=category_key, before=before, after=state, actor="admin",
    )
    return state


@app.delete(
    "/api/v1/admin/categories/{category_key}/featured-specs",
    dependencies=admin_guards,
)
def delete_featured_specs(category_key: str, request: Request, db: Database = Depends(get_db)):
    before = FeaturedSpecsStore(db).delete_featured_specs(category_key)
    record_audit(
        db, request, "featured_specs.delete", "category_featured_specs",
        entity_id=category_key, before=before, actor="admin",
    )
    return {
        "message": "Configuration deleted, reverted to default behavior",
        "categoryKey": category_key,
        "featuredSpecKeys": [],
        "mode": "default_all",
    }


# Seed demo catalog if empty
@app.post("/seed", dependencies=admin_guards)
def seed(db: Database = Depends(get_db)):
    return seed_catalog(db)


@app.get("/test")
def test_database():
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "database_url": "✅ Set" if config.DATABASE_URL else "❌ Not Set",
        "database_name": "✅ Set" if config.DATABASE_NAME else "❌ Not Set",
        "connection_status": "Not Connected",
        "collections": []
    }

    if database.db is None:
        response["database"] = "⚠️  Available but not initialized"
        return response

    response["database"] = "✅ Available"
    response["connection_status"] = "Connected"
    try:
        collections = database.db.list_collection_names()
        response["collections"] = collections[:10]
        response["database"] = "✅ Connected & Working"
    except Exception as e:
        logger.warning("Database check failed: %s", e)
        response["database"] = f"⚠️  Connected but Error: {str(e)[:50]}"

    return response


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=config.HOST, port=config.PORT)
