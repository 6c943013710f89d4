import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .errors import ConflictError, InvariantViolation, NotFoundError, ValidationFailure
from .redis_client import redis_client
from .routers import calendar, rental_applications

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Coworking Rental API")

app.include_router(rental_applications.router)
app.include_router(calendar.router)


# ===== Domain errors =====

@app.exception_handler(NotFoundError)
def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": exc.message})


@app.exception_handler(ValidationFailure)
def validation_failure_handler(request: Request, exc: ValidationFailure):
    return JSONResponse(status_code=400, content={"detail": exc.message})


@app.exception_handler(InvariantViolation)
def invariant_violation_handler(request: Request, exc: InvariantViolation):
    return JSONResponse(status_code=400, content={"detail": exc.message})


@app.exception_handler(ConflictError)
def conflict_handler(request: Request, exc: ConflictError):
    return JSONResponse(
        status_code=409,
        content={"message": exc.message, "conflicts": exc.conflicts},
    )


@app.get("/health")
def health():
    if redis_client is None:
        return {"redis": None}
    try:
        return {"redis": redis_client.ping()}
    except Exception as e:
        logger.error(f"Redis ping failed: {e}")
        return {"redis": False}
