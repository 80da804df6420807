# Role: FastAPI app bootstrap. Loads environment config early, registers routers, and exposes health/docs endpoints.

from fastapi import FastAPI

import trip_assistant.config
trip_assistant.config.load_env()

from trip_assistant.utils.logger import refresh_level
refresh_level()

from trip_assistant.api.clarify import router as clarify_router
from trip_assistant.api.quota import router as quota_router

app = FastAPI(title="Trip Clarification Assistant API", version="0.1.0")
app.include_router(clarify_router)
app.include_router(quota_router)


@app.get("/")
def root() -> dict:
    # Role: quick discoverability for clients (where are docs/health).
    return {
        "message": "Trip Clarification Assistant API is running",
        "docs": "/docs",
        "health": "/health",
    }


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}
