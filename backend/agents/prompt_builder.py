"""
Prompt builder for the three upstream operations.

Each prompt states the strict-JSON response shape, embeds a bounded data
sample, and embeds the operation's parameters.
"""

import json
import math
from typing import Any, Dict, List, Optional

from utils import settings

# Per-model parameter hints embedded in the training template
MODEL_PARAMETER_HINTS = {
    "linear-regression": '"fit_intercept": true, "normalize": false, "coefficients": "computed"',
    "logistic-regression": '"solver": "lbfgs", "max_iter": 100, "C": 1.0, "penalty": "l2"',
    "decision-tree": '"max_depth": <number 3-10>, "min_samples_split": 2, "min_samples_leaf": 1, "criterion": "gini"',
    "random-forest": '"n_estimators": 100, "max_depth": <number 5-15>, "min_samples_split": 2, "bootstrap": true',
    "knn": '"n_neighbors": <number 3-7>, "weights": "uniform", "algorithm": "auto", "metric": "minkowski"',
    "naive-bayes": '"var_smoothing": 1e-9, "priors": null, "type": "GaussianNB"',
}


def _pretty(value: Any) -> str:
    return json.dumps(value, indent=2, ensure_ascii=False, default=str)


def feature_columns_for(rows: List[Dict[str, Any]], target_column: str) -> List[str]:
    """All columns of the first record except the target."""
    if not rows or not isinstance(rows[0], dict):
        return []
    return [col for col in rows[0].keys() if col != target_column]


def build_transform_prompt(data: Any, instruction: str, data_type: Optional[str] = None) -> str:
    """Prompt asking the model to apply a user instruction to the full dataset."""
    if data_type in ("csv", "json") or isinstance(data, (list, dict)):
        data_string = _pretty(data)
    else:
        data_string = str(data)

    return f"""You are a data preprocessing assistant. You will receive a dataset and a user instruction.
Your task is to transform/preprocess the data according to the user's instruction.

IMPORTANT RULES:
1. Return ONLY valid JSON - no explanations, no markdown, no code blocks
2. If the input is an array of objects, return an array of objects
3. If the input is a single object, return an object
4. If the input is text, return a JSON object with a "data" field containing the processed text
5. Preserve the structure as much as possible unless the user asks to change it
6. Handle missing values, duplicates, type conversions as requested
7. For text data, you can return as {{ "data": "processed text" }} or {{ "rows": [...] }} if converting to structured format

USER'S INSTRUCTION: {instruction}

DATASET TO PROCESS:
{data_string}

RESPOND WITH ONLY THE PROCESSED JSON DATA, NO OTHER TEXT:"""


def split_sizes(total_rows: int, test_split: float) -> Dict[str, int]:
    return {
        "trainSize": int(math.floor(total_rows * (1 - test_split))),
        "testSize": int(math.floor(total_rows * test_split)),
    }


def build_train_prompt(
    rows: List[Dict[str, Any]],
    target_column: str,
    model_type: str,
    test_split: float = settings.DEFAULT_TEST_SPLIT,
) -> str:
    """
    Prompt asking the model to fabricate training results.

    Only the first TRAIN_SAMPLE_ROWS records are embedded. Metrics that do not
    apply to the detected task type are requested as null, never omitted.
    """
    feature_columns = feature_columns_for(rows, target_column)
    total_rows = len(rows)
    sizes = split_sizes(total_rows, test_split)
    sample = _pretty(rows[: settings.TRAIN_SAMPLE_ROWS])

    importance_slots = ",\n        ".join(
        f'{json.dumps(col, ensure_ascii=False)}: <importance between 0.01 and 1.0>' for col in feature_columns
    )
    parameter_hint = MODEL_PARAMETER_HINTS.get(model_type, "")

    return f"""You are a machine learning expert and data scientist. Analyze this dataset and simulate training a {model_type} model with comprehensive analysis.

DATASET STATISTICS:
- Total rows: {total_rows}
- Feature columns: {', '.join(feature_columns)}
- Target column: {target_column}
- Test split: {test_split * 100:g}%
- Model type: {model_type}

SAMPLE DATA (first {settings.TRAIN_SAMPLE_ROWS} rows):
{sample}

TASK: Simulate training a {model_type} model on this data. Provide comprehensive data science analysis including model parameters, feature importance, and detailed metrics.

RESPOND WITH ONLY THIS JSON FORMAT (no other text):
{{
    "success": true,
    "modelType": {json.dumps(model_type)},
    "modelDisplayName": "<Human readable model name>",
    "taskType": "<classification or regression>",
    "metrics": {{
        "accuracy": <number between 0.6 and 0.98 for classification, null for regression>,
        "precision": <number between 0.6 and 0.98 for classification, null for regression>,
        "recall": <number between 0.6 and 0.98 for classification, null for regression>,
        "f1Score": <number between 0.6 and 0.98 for classification, null for regression>,
        "mse": <number for regression, null for classification>,
        "rmse": <number for regression, null for classification>,
        "mae": <number for regression, null for classification>,
        "r2Score": <number between 0.5 and 0.98 for regression, null for classification>,
        "crossValScore": <number between 0.6 and 0.95>,
        "trainingTime": "<time in seconds like 0.45s>"
    }},
    "trainSize": {sizes["trainSize"]},
    "testSize": {sizes["testSize"]},
    "featureImportance": {{
        {importance_slots}
    }},
    "modelParameters": {{
        {parameter_hint}
    }},
    "dataAnalysis": {{
        "totalFeatures": {len(feature_columns)},
        "totalSamples": {total_rows},
        "missingValues": <number 0-5>,
        "categoricalFeatures": <number>,
        "numericalFeatures": <number>,
        "targetDistribution": "<balanced or imbalanced for classification, continuous for regression>"
    }},
    "modelSummary": "<2-3 sentence detailed analysis of model performance, strengths, and potential improvements>",
    "recommendations": "<1-2 sentence recommendation for improving model performance>"
}}

Make all metrics realistic based on the data quality, size, and model type. Ensure feature importance values sum close to 1.0."""


def reference_score(metrics: Optional[Dict[str, Any]]) -> Any:
    """Accuracy for classifiers, r2Score for regressors."""
    metrics = metrics or {}
    accuracy = metrics.get("accuracy")
    return accuracy if accuracy is not None else metrics.get("r2Score")


def build_predict_prompt(
    model_type: str,
    target_column: str,
    feature_columns: List[str],
    metrics: Optional[Dict[str, Any]],
    input_data: Any,
) -> str:
    """Prompt asking the model to fabricate a prediction for new input values."""
    return f"""You are a machine learning prediction system. Based on the trained {model_type} model, predict the {target_column} value.

MODEL INFO:
- Type: {model_type}
- Target: {target_column}
- Features: {', '.join(feature_columns)}
- Model Accuracy: {reference_score(metrics)}

INPUT DATA FOR PREDICTION:
{_pretty(input_data)}

TASK: Provide a realistic prediction for the target column "{target_column}" based on the input values.

RESPOND WITH ONLY THIS JSON FORMAT (no other text):
{{
    "prediction": <predicted value - number or string based on model type>,
    "confidence": <confidence score between 0.7 and 0.99>,
    "explanation": "<brief explanation of the prediction>"
}}"""
