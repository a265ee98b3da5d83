"""
Request bodies for the HTTP surface.

Field names match the JSON keys the browser client sends. Required-field
checks happen in the routes so missing fields map to 400, not 422.
"""

from typing import Any, Optional
from pydantic import BaseModel


class ProcessRequest(BaseModel):
    """Body for POST /api/process."""
    data: Any = None
    prompt: Optional[str] = None
    type: Optional[str] = None  # csv | json | text, as returned by /api/upload


class ExportRequest(BaseModel):
    """Body for POST /api/export."""
    data: Any = None
    format: Optional[str] = None  # csv | json | anything else -> text


class TrainRequest(BaseModel):
    """Body for POST /api/train."""
    data: Any = None
    targetColumn: Optional[str] = None
    modelType: Optional[str] = None  # e.g. random-forest, knn, linear-regression
    testSplit: Optional[float] = None


class PredictRequest(BaseModel):
    """Body for POST /api/predict."""
    modelId: Optional[str] = None
    inputData: Any = None
