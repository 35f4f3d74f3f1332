import logging
import math
import uuid
from datetime import datetime, timezone
import numpy as np
from ..exceptions import InferenceError
from ..schemas import PredictionResult
from .label_mappings import CANCER, NON_CANCER, get_message
from .preprocessing import preprocess

DECISION_THRESHOLD = 50.0


def confidence_score(scores) -> float:
    """Highest model score scaled to 0-100"""
    scores = np.asarray(scores, dtype=np.float64).reshape(-1)
    if scores.size == 0:
        raise InferenceError("Model returned no scores")
    confidence = float(np.max(scores)) * 100
    if not math.isfinite(confidence):
        raise InferenceError(f"Model returned a non-finite score: {confidence}")
    return confidence


def decide(confidence: float):
    """Map a confidence score to (label, suggestion)"""
    if confidence <= DECISION_THRESHOLD:
        return NON_CANCER, get_message(NON_CANCER)
    return CANCER, get_message(CANCER)


def utc_timestamp() -> str:
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def build_result(label: str, suggestion: str) -> PredictionResult:
    return PredictionResult(
        id=str(uuid.uuid4()),
        result=label,
        suggestion=suggestion,
        created_at=utc_timestamp(),
    )


def run_forward_pass(model, tensor):
    try:
        return model.predict(tensor)
    except Exception as e:
        logging.error(f"Forward pass failed: {e}")
        raise InferenceError(str(e)) from e


def do_inference(model, file_path: str) -> PredictionResult:
    tensor = preprocess(file_path)
    scores = run_forward_pass(model, tensor)
    confidence = confidence_score(scores)
    label, suggestion = decide(confidence)
    logging.info(f"Prediction for {file_path}: confidence={confidence:.2f} label={label}")
    return build_result(label, suggestion)
