"""
FastAPI backend for the AI Dataset Preprocessor.

Provides endpoints for dataset upload, AI-driven transformation, export, and a
simulated model training / prediction workflow.
"""

from fastapi import FastAPI, UploadFile, File, HTTPException, Depends
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from fastapi.datastructures import Headers
from typing import Any, Optional
from datetime import datetime
import sys
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent))

from agents.ai_gateway import AIGateway
from agents.llm_interface import (
    ConfigurationError,
    QuotaExceededError,
    classify_error,
    get_current_model_info,
)
from agents.prompt_builder import (
    build_predict_prompt,
    build_train_prompt,
    build_transform_prompt,
    feature_columns_for,
)
from ml.serializer import export_data, to_json_text
from ml.tabular_parser import parse_file_content
from schemas.model_schema import SimulatedModel
from schemas.request_schema import ExportRequest, PredictRequest, ProcessRequest, TrainRequest
from utils import settings
from utils.api_key_manager import is_api_key_configured
from utils.logging import log_event
from utils.model_store import InMemoryModelStore, ModelStore, new_model_id


app = FastAPI(title="AI Dataset Preprocessor API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

# In-memory model store (process lifetime, no persistence)
model_store: ModelStore = InMemoryModelStore()
_ai_gateway: Optional[AIGateway] = None


def get_model_store() -> ModelStore:
    """Dependency: the model store used by train / predict / download."""
    return model_store


def get_ai_gateway() -> AIGateway:
    """Dependency: shared AI gateway, created on first use."""
    global _ai_gateway
    if _ai_gateway is None:
        _ai_gateway = AIGateway()
    return _ai_gateway


class JSONBodyLimitMiddleware:
    """
    Cap JSON request bodies at MAX_JSON_BYTES.

    A declared Content-Length over the cap is rejected up front; bodies without
    one (chunked) are counted as they are received.
    """

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = Headers(scope=scope)
        if "application/json" not in headers.get("content-type", ""):
            await self.app(scope, receive, send)
            return

        limit = settings.MAX_JSON_BYTES
        detail = f"Request body exceeds {limit} bytes"
        content_length = headers.get("content-length")
        if content_length and content_length.isdigit() and int(content_length) > limit:
            response = JSONResponse(status_code=413, content={"detail": detail})
            await response(scope, receive, send)
            return

        received = 0

        async def limited_receive():
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > limit:
                    raise HTTPException(status_code=413, detail=detail)
            return message

        await self.app(scope, limited_receive, send)


app.add_middleware(JSONBodyLimitMiddleware)


@app.on_event("startup")
def _startup_banner():
    log_event(f"Dataset Preprocessor running at http://localhost:{settings.PORT}", stage="startup")
    if is_api_key_configured():
        log_event(f"Gemini API key configured (model: {settings.GEMINI_MODEL})", stage="startup")
    else:
        log_event("No GEMINI_API_KEY found. AI routes will return a configuration error", stage="startup")


def _is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _upstream_http_error(error: Exception, operation: str) -> HTTPException:
    """
    Map an AI gateway failure to an HTTP error.

    Quota -> 429, configuration -> 400 (message carries the hint), else 500.
    """
    err = classify_error(error)
    if isinstance(err, QuotaExceededError):
        return HTTPException(status_code=429, detail="API quota exceeded. Please try again later")
    if isinstance(err, ConfigurationError):
        return HTTPException(status_code=400, detail=err.message)
    return HTTPException(status_code=500, detail=f"{operation} failed: {err.message}")


@app.get("/")
async def root():
    return {
        "message": "AI Dataset Preprocessor API",
        "version": "1.0.0",
        "status": "running",
    }


@app.get("/api/health")
async def health():
    """Liveness only."""
    return {
        "status": "ok",
        "timestamp": datetime.now().isoformat(),
        "llm_configured": is_api_key_configured(),
        "current_model": get_current_model_info().get("model") or settings.GEMINI_MODEL,
    }


@app.post("/api/upload")
async def upload_file(file: Optional[UploadFile] = File(None)):
    """
    Upload a CSV / JSON / text file and return its parsed content.

    Returns:
        filename, type (csv | json | text), data, and a preview (first rows for lists)
    """
    if file is None:
        raise HTTPException(status_code=400, detail="No file uploaded")

    filename = file.filename or "uploaded_file"
    content = await file.read(settings.MAX_UPLOAD_BYTES + 1)
    if len(content) > settings.MAX_UPLOAD_BYTES:
        raise HTTPException(
            status_code=400,
            detail=f"File too large. Maximum upload size is {settings.MAX_UPLOAD_BYTES // (1024 * 1024)}MB",
        )

    try:
        parsed = parse_file_content(content, filename)
    except Exception as e:
        log_event(f"Upload error: {e}", stage="upload")
        raise HTTPException(status_code=500, detail=f"Failed to process file: {str(e)}")

    data = parsed["data"]
    log_event(f"Parsed {filename} as {parsed['type']}", stage="upload")
    return {
        "success": True,
        "filename": filename,
        "type": parsed["type"],
        "data": data,
        "preview": data[: settings.PREVIEW_ROWS] if isinstance(data, list) else data,
    }


@app.post("/api/process")
async def process_data(request: ProcessRequest, gateway: AIGateway = Depends(get_ai_gateway)):
    """Apply a natural-language instruction to the dataset via the AI gateway."""
    if _is_missing(request.data) or _is_missing(request.prompt):
        raise HTTPException(status_code=400, detail="Data and prompt are required")

    prompt = build_transform_prompt(request.data, request.prompt, request.type)
    try:
        processed = await gateway.invoke(prompt, "transform")
    except Exception as e:
        log_event(f"Processing error: {e}", stage="process")
        raise _upstream_http_error(e, "AI processing")

    return {"success": True, "data": processed, "originalType": request.type}


@app.post("/api/export")
async def export(request: ExportRequest):
    """Render data as CSV, JSON or plain text for download."""
    try:
        rendered = export_data(request.data, request.format)
    except Exception as e:
        log_event(f"Export error: {e}", stage="export")
        raise HTTPException(status_code=500, detail=f"Export failed: {str(e)}")
    return {"success": True, **rendered}


@app.post("/api/train")
async def train_model(
    request: TrainRequest,
    gateway: AIGateway = Depends(get_ai_gateway),
    store: ModelStore = Depends(get_model_store),
):
    """
    Simulate training: the model fabricates metrics, which are stored under a new id.
    """
    if _is_missing(request.data) or _is_missing(request.targetColumn) or _is_missing(request.modelType):
        raise HTTPException(status_code=400, detail="Data, target column, and model type are required")

    rows = request.data
    if not isinstance(rows, list) or len(rows) < settings.MIN_TRAINING_ROWS:
        raise HTTPException(
            status_code=400,
            detail=f"Need at least {settings.MIN_TRAINING_ROWS} rows of data for training",
        )
    if not isinstance(rows[0], dict):
        raise HTTPException(status_code=400, detail="Training data must be a list of records")

    target_column = request.targetColumn
    test_split = request.testSplit or settings.DEFAULT_TEST_SPLIT
    if not 0 < test_split < 1:
        raise HTTPException(status_code=400, detail="testSplit must be between 0 and 1")

    feature_columns = feature_columns_for(rows, target_column)
    prompt = build_train_prompt(rows, target_column, request.modelType, test_split)
    try:
        result = await gateway.invoke(prompt, "train")
    except Exception as e:
        log_event(f"Training error: {e}", stage="train")
        raise _upstream_http_error(e, "Model training")

    if not isinstance(result, dict):
        raise HTTPException(status_code=500, detail="Model training failed: AI response was not a JSON object")

    metrics = result.get("metrics")
    # Id is generated and stored with no await in between
    model_id = new_model_id(store)
    store.put(
        model_id,
        SimulatedModel(
            model_id=model_id,
            model_type=request.modelType,
            target_column=target_column,
            feature_columns=feature_columns,
            metrics=metrics if isinstance(metrics, dict) else {},
            data_shape={"rows": len(rows), "features": len(feature_columns)},
        ),
    )
    log_event(f"Stored simulated {request.modelType} model {model_id} ({len(rows)} rows)", stage="train")

    return {
        **result,
        "success": True,
        "modelId": model_id,
        "featureColumns": feature_columns,
    }


@app.get("/api/model/{model_id}/download")
async def download_model(model_id: str, store: ModelStore = Depends(get_model_store)):
    """Return the simulated model as a JSON file payload."""
    model = store.get(model_id)
    if model is None:
        raise HTTPException(status_code=404, detail="Model not found")

    return {
        "success": True,
        "content": to_json_text(model.to_export()),
        "filename": model.download_filename(),
        "contentType": "application/json",
    }


@app.post("/api/predict")
async def predict(
    request: PredictRequest,
    gateway: AIGateway = Depends(get_ai_gateway),
    store: ModelStore = Depends(get_model_store),
):
    """Ask the model to fabricate a prediction for a stored simulated model."""
    if _is_missing(request.modelId) or _is_missing(request.inputData):
        raise HTTPException(status_code=400, detail="Model ID and input data are required")

    model = store.get(request.modelId)
    if model is None:
        raise HTTPException(status_code=404, detail="Model not found. Please train a model first.")

    prompt = build_predict_prompt(
        model.model_type,
        model.target_column,
        model.feature_columns,
        model.metrics,
        request.inputData,
    )
    try:
        result = await gateway.invoke(prompt, "predict")
    except Exception as e:
        log_event(f"Prediction error: {e}", stage="predict")
        raise _upstream_http_error(e, "Prediction")

    if not isinstance(result, dict):
        raise HTTPException(status_code=500, detail="Prediction failed: AI response was not a JSON object")

    return {**result, "success": True}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=settings.PORT)
