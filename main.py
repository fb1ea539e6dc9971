import traceback

from fastapi import FastAPI, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy import text

from database import Base, engine
from routes import (
    trips,
    participants,
    contributions,
    expenses,
    finances,
    itinerary,
    packing,
    weather,
)
from services.errors import TripError
from utils.logger import setup_api_logger

# setup file logger for API failures
api_logger = setup_api_logger()

Base.metadata.create_all(bind=engine)

# Ensure newer ledger columns exist for running Postgres instances (safe startup migration)
if engine.dialect.name == "postgresql":
    try:
        with engine.begin() as conn:
            conn.execute(text("ALTER TABLE trips ADD COLUMN IF NOT EXISTS custom_id VARCHAR(40);"))
            conn.execute(text("ALTER TABLE trips ADD COLUMN IF NOT EXISTS additional_contributions JSON DEFAULT '[]';"))
            conn.execute(text("ALTER TABLE trips ADD COLUMN IF NOT EXISTS packing_list JSON DEFAULT '[]';"))
    except Exception:
        api_logger.warning(
            "Automatic trip column migrations failed; you may need to run DB migrations manually.\n%s",
            traceback.format_exc(),
        )

app = FastAPI(title="Trip Fund API (Trips, Participants, Fund, Expenses, Settlement)")


@app.exception_handler(TripError)
async def trip_error_handler(request, exc: TripError):
    api_logger.warning("%s on %s %s | status=%s | detail=%s",
                       type(exc).__name__, request.method, request.url.path, exc.status_code, exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


@app.exception_handler(HTTPException)
async def http_exception_handler(request, exc: HTTPException):
    try:
        body = await request.body()
    except Exception:
        body = b""
    api_logger.warning("HTTPException on %s %s | status=%s | body=%s | detail=%s",
                       request.method, request.url.path, exc.status_code,
                       body.decode('utf-8', errors='replace'), str(exc.detail))
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


@app.exception_handler(Exception)
async def generic_exception_handler(request, exc):
    # log request info and stacktrace
    try:
        body = await request.body()
    except Exception:
        body = b""
    tb = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    api_logger.error("Unhandled exception on %s %s | body=%s | error=%s\n%s",
                     request.method, request.url.path, body.decode('utf-8', errors='replace'), str(exc), tb)
    return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})


app.include_router(trips.router)
app.include_router(participants.router)
app.include_router(contributions.router)
app.include_router(expenses.router)
app.include_router(finances.router)
app.include_router(itinerary.router)
app.include_router(packing.router)
app.include_router(weather.router)
