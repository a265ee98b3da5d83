"""
Simulated model schema.

A SimulatedModel records metrics fabricated by the language model during a
"train" call. Nothing here is a fitted statistical model.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field

MODEL_FILE_VERSION = "1.0.0"
MODEL_FILE_FRAMEWORK = "AI Dataset Preprocessor"
MODEL_FILE_NOTE = "This is a simulated model for demonstration purposes"


def _now_iso() -> str:
    return datetime.now().isoformat()


class SimulatedModel(BaseModel):
    """Store entry for one simulated training call."""
    model_id: str
    model_type: str
    target_column: str
    feature_columns: List[str] = Field(default_factory=list)
    metrics: Dict[str, Any] = Field(default_factory=dict)  # fabricated: accuracy, r2Score, ...
    trained_at: str = Field(default_factory=_now_iso)
    data_shape: Dict[str, int] = Field(default_factory=dict)  # rows, features

    class Config:
        protected_namespaces = ()

    def to_export(self, exported_at: Optional[str] = None) -> Dict[str, Any]:
        """Downloadable model file contents (camelCase, like the rest of the API)."""
        return {
            "modelId": self.model_id,
            "modelType": self.model_type,
            "targetColumn": self.target_column,
            "featureColumns": list(self.feature_columns),
            "metrics": dict(self.metrics),
            "trainedAt": self.trained_at,
            "dataShape": dict(self.data_shape),
            "exportedAt": exported_at or _now_iso(),
            "version": MODEL_FILE_VERSION,
            "framework": MODEL_FILE_FRAMEWORK,
            "note": MODEL_FILE_NOTE,
        }

    def download_filename(self) -> str:
        return f"{self.model_type}_model_{self.model_id}.json"
