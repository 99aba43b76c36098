"""Pydantic request schemas for the dashboard API."""

from pydantic import BaseModel


class SentimentRequest(BaseModel):
    """Text submitted for sentiment classification."""

    text: str
