from fastapi import FastAPI, Request
from starlette.exceptions import HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from datetime import datetime
import logging

from core.config import settings
from core.middleware import RequestLoggingMiddleware, SecurityHeadersMiddleware
from core.exceptions import BaseCustomException
from core.response import error_response
from database.connection import create_tables
from routers import auth, product, category, material, voucher, cart, order, dashboard

# Configure logging
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="QioGems Storefront API",
    description="Backend API for the QioGems jewelry storefront and seller dashboard",
    version="1.0.0"
)

def _error(request: Request, status_code: int, message: str, error_code: str, details=None) -> JSONResponse:
    request_id = getattr(request.state, 'request_id', 'unknown')
    log = logger.error if status_code >= 500 else logger.warning
    log(f"[{request_id}] {request.method} {request.url.path} -> {status_code} {error_code}: {message}")
    return JSONResponse(status_code=status_code, content=error_response(message, error_code, details))

@app.exception_handler(BaseCustomException)
async def custom_exception_handler(request: Request, exc: BaseCustomException):
    return _error(request, exc.status_code, exc.message, exc.error_code, exc.details)

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Schema failures are reported as 400 with one entry per offending field."""
    errors = [
        {
            "field": '.'.join(str(part) for part in error['loc'] if part != 'body'),
            "message": error['msg'],
            "type": error['type']
        }
        for error in exc.errors()
    ]
    message = errors[0]["message"] if len(errors) == 1 else "Request validation failed"
    return _error(request, 400, message, "VALIDATION_ERROR", {"errors": errors})

@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    message = exc.detail if isinstance(exc.detail, str) else "HTTP error occurred"
    return _error(request, exc.status_code, message, "HTTP_ERROR")

@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Last resort: log the traceback, never leak it."""
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.exception(f"Unexpected error [{request_id}] on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content=error_response(
            "An unexpected error occurred. Please try again.",
            "INTERNAL_SERVER_ERROR",
            {"request_id": request_id}
        )
    )

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
    allow_headers=["*"],
)

# Order matters: the last added runs first
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestLoggingMiddleware)

app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])
app.include_router(product.router, prefix="/api/products", tags=["Products"])
app.include_router(category.router, prefix="/api/categories", tags=["Categories"])
app.include_router(material.router, prefix="/api/materials", tags=["Materials"])
app.include_router(voucher.router, prefix="/api/vouchers", tags=["Vouchers"])
app.include_router(cart.router, prefix="/api/cart", tags=["Cart"])
app.include_router(order.router, prefix="/api/orders", tags=["Orders"])
app.include_router(dashboard.router, prefix="/api/dashboard", tags=["Seller Dashboard"])

# Create database tables on startup
@app.on_event("startup")
async def startup_event():
    """Initialize the application on startup."""
    try:
        logger.info("Starting up QioGems Storefront API...")
        create_tables()
        logger.info(f"Database ready, authorization policy: {settings.AUTH_POLICY}")
    except Exception as e:
        logger.error(f"Failed to start application: {str(e)}")
        raise

@app.get("/")
def root():
    """Root endpoint for API health check."""
    return {
        "message": "Welcome to QioGems Storefront API",
        "status": "healthy",
        "version": "1.0.0"
    }

@app.get("/health")
def health_check():
    return {
        "status": "healthy",
        "environment": settings.ENVIRONMENT,
        "timestamp": datetime.utcnow().isoformat()
    }
