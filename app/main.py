from contextlib import asynccontextmanager
import logging
import os
import time

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.utils import get_openapi
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.routes_auth import router as auth_router
from app.api.routes_cart import router as cart_router
from app.api.routes_order import router as order_router
from app.api.routes_product import router as product_router
from app.core.config import settings
from app.core.exceptions import StoreError
from app.core.monitoring import monitoring
from app.db.init_db import init_db
from app.db.session import SessionLocal, engine

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger("storefront")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Ensure tables exist and the default admin is present
    init_db(engine, SessionLocal)
    logger.info("Storefront API ready")
    yield


app = FastAPI(
    title="storefront-api",
    description="Catalog, cart and cash-on-delivery checkout for the storefront",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


@app.middleware("http")
async def record_request(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    # Product images are loaded cross-origin by the frontend
    response.headers["Cross-Origin-Resource-Policy"] = "cross-origin"
    monitoring.record_request(
        success=response.status_code < 500,
        response_time_ms=(time.perf_counter() - started) * 1000,
    )
    return response


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"field": ".".join(str(p) for p in err.get("loc", ())), "message": err.get("msg")}
        for err in exc.errors()
    ]
    message = errors[0]["message"] if errors else "Invalid request"
    return JSONResponse(status_code=400, content={"message": message, "errors": errors})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    message = "Route not found" if exc.status_code == 404 and exc.detail == "Not Found" else exc.detail
    return JSONResponse(status_code=exc.status_code, content={"message": message}, headers=exc.headers)


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception(f"Database error on {request.method} {request.url.path}")
    monitoring.record_error(str(exc))
    return JSONResponse(
        status_code=500,
        content={
            "message": "Something went wrong!",
            "error": str(exc) if settings.ENVIRONMENT == "development" else "Internal server error",
        },
    )


# Register endpoints
app.include_router(auth_router, prefix="/api/auth", tags=["Auth"])
app.include_router(product_router, prefix="/api/products", tags=["Product"])
app.include_router(cart_router, prefix="/api/users", tags=["Cart"])
app.include_router(order_router, prefix="/api/orders", tags=["Order"])

# Uploaded product images
os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=settings.UPLOAD_DIR), name="uploads")


@app.get("/api/health", tags=["Health"])
def health():
    status = monitoring.get_health_status()
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        status["database"] = "connected"
    except SQLAlchemyError as e:
        logger.error(f"Database connection failed: {e}")
        status["database"] = "unavailable"
    return status


# 👇 Add custom OpenAPI with Bearer Auth
def custom_openapi():
    if app.openapi_schema:
        return app.openapi_schema

    openapi_schema = get_openapi(
        title="Storefront API",
        version="1.0.0",
        description="Authentication, catalog browsing, cart management and checkout.",
        routes=app.routes,
    )

    openapi_schema.setdefault("components", {})["securitySchemes"] = {
        "BearerAuth": {
            "type": "http",
            "scheme": "bearer",
            "bearerFormat": "JWT"
        }
    }
    for path in openapi_schema["paths"].values():
        for method in path.values():
            method["security"] = [{"BearerAuth": []}]

    app.openapi_schema = openapi_schema
    return app.openapi_schema

app.openapi = custom_openapi
