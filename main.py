import os

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from pymongo.errors import PyMongoError
from starlette.exceptions import HTTPException as StarletteHTTPException

import database
from config import get_settings
from errors import PersistenceError, StoreError
from logger import configure_logging, get_logger
from routers import categories, orders, products, users

settings = get_settings()
configure_logging(settings.log_level)
log = get_logger("app")

app = FastAPI(title="Storefront API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------- Error responses ----------
# Every error leaves the API as {"message": ...}

@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        loc = ".".join(str(part) for part in errors[0].get("loc", ()) if part != "body")
        message = f"{loc}: {errors[0].get('msg')}" if loc else errors[0].get("msg")
    else:
        message = "Invalid request"
    return JSONResponse(status_code=400, content={"message": message})


@app.exception_handler(PyMongoError)
async def database_error_handler(request: Request, exc: PyMongoError):
    log.error(f"Database error on {request.method} {request.url.path}: {exc}")
    return await store_error_handler(request, PersistenceError(str(exc)))


# ---------- Routes ----------

app.include_router(categories.router)
app.include_router(products.router)
app.include_router(users.router)
app.include_router(orders.router)

os.makedirs(settings.upload_dir, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=settings.upload_dir), name="uploads")


@app.get("/")
def read_root():
    return {"message": "API is running..."}


# ---------- Diagnostics ----------

@app.get("/test")
def test_database():
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "database_url": None,
        "database_name": None,
        "connection_status": "Not Connected",
        "collections": []
    }

    db = database.db
    if db is not None:
        response["database"] = "✅ Available"
        response["connection_status"] = "Connected"
        try:
            response["collections"] = db.list_collection_names()[:10]
            response["database"] = "✅ Connected & Working"
        except PyMongoError as e:
            log.warning(f"Database diagnostics failed: {e}")
            response["database"] = f"⚠️  Connected but Error: {str(e)[:50]}"

    response["database_url"] = "✅ Set" if settings.database_url else "❌ Not Set"
    response["database_name"] = "✅ Set" if settings.database_name else "❌ Not Set"
    response["image_storage"] = "cloudinary" if settings.cloudinary_configured else "local"
    response["payments"] = "✅ Configured" if settings.razorpay_configured else "❌ Not Configured"

    return response


log.info(f"Storefront API ready (database configured: {settings.database_configured})")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
