"""FastAPI application exposing the availability endpoint."""

from __future__ import annotations

from typing import Optional

import structlog
from fastapi import FastAPI, Query
from fastapi.responses import JSONResponse

from .models import ScrapeResponse
from .scraper import scrape

LOGGER = structlog.get_logger(__name__)

app = FastAPI(title="Gym Availability Agent", version="0.1.0")


@app.get("/api/scrape", response_model=ScrapeResponse)
async def scrape_availability(
    date: Optional[str] = Query(default=None, description="Target date, YYYY-MM-DD"),
) -> JSONResponse:
    """Scrape the portal for ``date``; any failure comes back as HTTP 500 with the same envelope."""

    LOGGER.info("api.scrape.request", date=date)
    response = await scrape(date)
    status_code = 200 if response.success else 500
    return JSONResponse(status_code=status_code, content=response.model_dump(mode="json", exclude_none=True))
