"""Address autocomplete proxy backed by Geoapify.

Keeps the Geoapify key on the server and applies the shared API rate limit.
Results are restricted to Great Britain and flattened to the fields the
address forms need.
"""

import logging
from typing import Optional

import httpx
from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from .. import config
from ..rate_limiter import rate_limiter_for

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/geoapify", tags=["Geocoding"])

rate_limit_autocomplete = rate_limiter_for("api")

CITY_FALLBACK_KEYS = ("city", "town", "village", "suburb", "county", "state")


class AutocompleteResult(BaseModel):
    id: str
    label: str
    address: str
    addressLine2: str = ""
    city: str = ""
    postcode: str = ""
    country: str = ""


class AutocompleteResponse(BaseModel):
    results: list[AutocompleteResult]


def map_geoapify_result(item: dict, index: int) -> Optional[AutocompleteResult]:
    """Flatten one Geoapify result, or None when it has nothing to show"""
    label = item.get("formatted") or ""
    address = item.get("address_line1") or label
    if not label and not address:
        return None

    city = next((item[key] for key in CITY_FALLBACK_KEYS if item.get(key)), "")
    return AutocompleteResult(
        id=str(item.get("place_id") or index),
        label=label or address,
        address=address,
        addressLine2=item.get("address_line2") or "",
        city=city,
        postcode=item.get("postcode") or "",
        country=item.get("country") or "",
    )


@router.get("/autocomplete", response_model=AutocompleteResponse)
async def autocomplete(
    text: str = Query(""),
    limit: int = Query(5),
    _: None = Depends(rate_limit_autocomplete),
):
    text = (text or "").strip()
    if len(text) < 3:
        return AutocompleteResponse(results=[])

    if not config.GEOAPIFY_API_KEY:
        logger.error("❌ GEOAPIFY_API_KEY not configured")
        raise HTTPException(status_code=500, detail="Geocoding service not configured")

    limit = max(1, min(limit, 10))
    params = {
        "text": text,
        "format": "json",
        "limit": str(limit),
        "lang": "en",
        "filter": "countrycode:gb",
        "apiKey": config.GEOAPIFY_API_KEY,
    }
    url = f"{config.GEOAPIFY_BASE_URL}/v1/geocode/autocomplete"

    try:
        async with httpx.AsyncClient(timeout=8.0) as client:
            resp = await client.get(url, params=params, headers={"Accept": "application/json"})
    except httpx.HTTPError as e:
        logger.error(f"Geoapify request failed: {e}")
        raise HTTPException(status_code=502, detail="Geocoding provider error") from e

    if resp.status_code >= 400:
        logger.warning(f"Geoapify error {resp.status_code}: {resp.text[:200]}")
        raise HTTPException(status_code=502, detail="Geocoding provider error")

    raw = resp.json().get("results") or []
    results = [r for r in (map_geoapify_result(item, i) for i, item in enumerate(raw)) if r]
    return AutocompleteResponse(results=results)
