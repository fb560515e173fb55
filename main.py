
# -*- coding: utf-8 -*-
"""
Main FastAPI application for the academic portal dues ledger.
"""

import logging
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

from portal.config import Config
from portal.database import engine, Base
from portal.exceptions import LedgerError
from portal import models  # registers every table on Base.metadata
from portal.routes import (profiles_fastapi, subjects_fastapi, dues_fastapi,
                           payments_fastapi, dashboard_fastapi, assignments_fastapi,
                           materials_fastapi)


logging.basicConfig(
    level=Config.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    filename=Config.LOG_FILE
)

# Create tables, keep the app up even if the database is not reachable yet
try:
    Base.metadata.create_all(bind=engine)
    logging.info("Tables created.")
except Exception as e:
    logging.error(f"Error creating tables: {e}")


env = Config.ENVIRONMENT

app = FastAPI(
    title="Academic Portal API",
    description="Subjects, student dues and payments for the academic portal",
    version="1.0.0",
    docs_url="/docs" if env != "production" else None,
    redoc_url="/redoc" if env != "production" else None,
    openapi_url="/openapi.json" if env != "production" else None
)

origins = [
    Config.FRONTEND_URL,
    "http://localhost:5173",
    "http://localhost:8080",
    "http://127.0.0.1:8080",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError):
    if exc.status_code >= 409:
        logging.warning(f"{request.method} {request.url.path}: {exc.detail}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


app.include_router(profiles_fastapi.router, prefix="/api/v1/profiles")
app.include_router(subjects_fastapi.router, prefix="/api/v1/subjects")
app.include_router(dues_fastapi.router, prefix="/api/v1/dues")
app.include_router(payments_fastapi.router, prefix="/api/v1/payments")
app.include_router(dashboard_fastapi.router, prefix="/api/v1/dashboard")
app.include_router(assignments_fastapi.router, prefix="/api/v1/assignments")
app.include_router(materials_fastapi.router, prefix="/api/v1/materials")


@app.get("/", tags=["Root"])
async def root():
    return {
        "message": "Academic Portal API",
        "documentation": "/docs",
        "endpoints": [
            {"profiles": "/api/v1/profiles"},
            {"subjects": "/api/v1/subjects"},
            {"dues": "/api/v1/dues"},
            {"payments": "/api/v1/payments"},
            {"dashboard": "/api/v1/dashboard"},
            {"assignments": "/api/v1/assignments"},
            {"materials": "/api/v1/materials"}
        ]
    }
