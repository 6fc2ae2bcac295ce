import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.api.endpoints import admin as admin_api
from app.api.endpoints import auth as auth_api
from app.api.endpoints import commissions as commissions_api
from app.api.endpoints import payments as payments_api
from app.api.endpoints import users as users_api
from app.api.endpoints import withdrawals as withdrawals_api
from app.core.config import LOG_LEVEL
from app.core.exceptions import (
    AlreadyProcessedError,
    InsufficientBalanceError,
    NotFoundError,
    StorageUnavailableError,
    ValidationError,
)
from app.db.init_db import init_db

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


app = FastAPI(title="Referral Ledger API", version="0.1.0", lifespan=lifespan)

# Include API routers
app.include_router(auth_api.router, prefix="/api/v1/auth", tags=["Authentication"])
app.include_router(users_api.router, prefix="/api/v1/users", tags=["Users"])
app.include_router(commissions_api.router, prefix="/api/v1/commissions", tags=["Commissions"])
app.include_router(payments_api.router, prefix="/api/v1/payments", tags=["Payments"])
app.include_router(withdrawals_api.router, prefix="/api/v1/withdrawals", tags=["Withdrawals"])
app.include_router(admin_api.router, prefix="/api/v1/admin", tags=["Admin"])


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})

@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})

@app.exception_handler(AlreadyProcessedError)
async def already_processed_handler(request: Request, exc: AlreadyProcessedError):
    return JSONResponse(status_code=409, content={"detail": str(exc)})

@app.exception_handler(InsufficientBalanceError)
async def insufficient_balance_handler(request: Request, exc: InsufficientBalanceError):
    available = str(exc.available_balance) if exc.available_balance is not None else None
    return JSONResponse(status_code=400, content={"detail": str(exc), "available_balance": available})

@app.exception_handler(StorageUnavailableError)
async def storage_unavailable_handler(request: Request, exc: StorageUnavailableError):
    logger.error(f"{request.method} {request.url.path} aborted: {exc}")
    return JSONResponse(status_code=503, content={"detail": "Storage temporarily unavailable, retry later"})


@app.get("/ping", tags=["Health Check"])
async def ping():
    return {"message": "pong"}
