from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from catalog.cache import cache
from catalog.config import settings
from catalog.database import dispose_engine
from catalog.logging_config import configure_logging
from catalog.middleware import RequestContextMiddleware
from catalog.routers import metrics, products
from catalog.validation import NOT_AN_OBJECT, PAYLOAD_FIELD

VERSION = "1.0.0"

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    configure_logging(settings.LOG_LEVEL)
    await cache.connect()
    yield
    # Shutdown
    await cache.disconnect()
    await dispose_engine()

app = FastAPI(
    title="Product Catalog API",
    description="Product CRUD backed by a relational store and a read-through cache",
    version=VERSION,
    lifespan=lifespan,
)

# Middleware
app.add_middleware(RequestContextMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(products.router)
app.include_router(metrics.router)

@app.exception_handler(RequestValidationError)
async def unparseable_body_handler(request: Request, exc: RequestValidationError):
    # An unparseable body fails before the route can validate it; answer in
    # the same shape as a payload that parsed but was not an object.
    if any(error.get("type") == "json_invalid" for error in exc.errors()):
        return products.invalid_response({PAYLOAD_FIELD: [NOT_AN_OBJECT]})
    return await request_validation_exception_handler(request, exc)

@app.get("/health")
async def health():
    return {"status": "healthy", "version": VERSION}
