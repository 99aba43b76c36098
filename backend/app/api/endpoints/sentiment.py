# -*- coding: utf-8 -*-
"""Sentiment classification fan-out endpoints."""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, HTTPException

from app.analyzers.sentiment_consensus import SentimentEndpoint, classify_text
from app.config import get_settings
from app.models import SentimentRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/sentiment", tags=["sentiment"])

SAMPLE_HEADLINES = [
    "Tesla beats Q2 earnings expectations",
    "Oil prices hit a three-month low",
    "Fed likely to hike interest rates again",
    "Apple stock dips after weak iPhone sales",
    "Inflation cooling raises market optimism",
    "Job growth slows as unemployment ticks up",
]


def _configured_endpoints() -> List[SentimentEndpoint]:
    try:
        return get_settings().endpoints
    except (FileNotFoundError, ValueError) as exc:
        logger.exception("Sentiment endpoint configuration could not be loaded")
        raise HTTPException(status_code=500, detail=str(exc)) from exc


@router.get("/endpoints")
async def list_endpoints() -> Dict[str, Any]:
    endpoints = _configured_endpoints()
    return {
        "endpoints": [
            {
                "name": endpoint.name,
                "url": endpoint.url,
                "supports_confidence": endpoint.supports_confidence,
            }
            for endpoint in endpoints
        ]
    }


@router.get("/samples")
async def list_samples() -> Dict[str, Any]:
    return {"samples": SAMPLE_HEADLINES}


@router.post("/analyze")
async def analyze_sentiment(payload: SentimentRequest) -> Dict[str, Any]:
    """Send the text to every classifier and return a majority vote."""

    text = (payload.text or "").strip()
    if not text:
        raise HTTPException(status_code=400, detail="Text to analyze must not be empty.")

    endpoints = _configured_endpoints()
    if not endpoints:
        raise HTTPException(status_code=500, detail="No sentiment endpoints are configured.")

    result = await classify_text(text, endpoints, timeout=get_settings().sentiment_timeout)
    return {"status": "success", "text": text, **result.to_dict()}
