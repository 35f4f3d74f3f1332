import asyncio
import os
import threading
import logging
import numpy as np
from starlette.concurrency import run_in_threadpool
from .. import config
from ..exceptions import ModelLoadError, ServiceUnavailable

LOADING = "loading"
READY = "ready"
FAILED = "failed"


class LoadedModel:
    """A model held in memory for the process lifetime.

    Forward passes are serialized with a lock: concurrent `predict` calls on
    one Keras model are not documented as thread-safe. A pass abandoned by a
    request timeout still holds the lock until it finishes, so waiting for
    the lock is bounded too.
    """

    def __init__(self, framework, model_obj, path, lock_timeout=None):
        self.framework = framework
        self.model_obj = model_obj
        self.path = path
        self.lock_timeout = config.PREDICT_TIMEOUT if lock_timeout is None else lock_timeout
        self._lock = threading.Lock()
        self._signature = None
        self._input_name = None
        if framework == "saved_model":
            self._signature = model_obj.signatures["serving_default"]
            _, kwargs = self._signature.structured_input_signature
            self._input_name = next(iter(kwargs))

    def predict(self, tensor: np.ndarray) -> np.ndarray:
        if not self._lock.acquire(timeout=self.lock_timeout):
            raise TimeoutError(f"Model {self.path} is busy; waited {self.lock_timeout} seconds")
        try:
            if self.framework == "keras":
                preds = self.model_obj.predict(tensor, verbose=0)
            else:
                import tensorflow as tf
                outputs = self._signature(**{self._input_name: tf.constant(tensor)})
                preds = next(iter(outputs.values()))
        finally:
            self._lock.release()
        return np.asarray(preds, dtype=np.float64).reshape(-1)


def load_keras_model(local_path):
    import tensorflow as tf
    return tf.keras.models.load_model(local_path, compile=False)


def load_saved_model(local_path):
    import tensorflow as tf
    return tf.saved_model.load(local_path)


def load_model(local_path: str) -> LoadedModel:
    if not os.path.exists(local_path):
        raise ModelLoadError(f"Model artifact not found: {local_path}")

    framework = "saved_model" if os.path.isdir(local_path) else "keras"
    logging.info(f"Loading model from {local_path} as {framework}")
    try:
        if framework == "saved_model":
            model_obj = load_saved_model(local_path)
        else:
            model_obj = load_keras_model(local_path)
        return LoadedModel(framework, model_obj, local_path)
    except Exception as e:
        raise ModelLoadError(f"{framework} load failed for {local_path}: {e}") from e


class ModelHolder:
    """Process-wide slot for the model with an explicit loading lifecycle."""

    def __init__(self, path=None, retries=None, retry_delay=None, loader=None):
        self.path = path or config.MODEL_PATH
        self.retries = config.MODEL_LOAD_RETRIES if retries is None else retries
        self.retry_delay = config.MODEL_LOAD_RETRY_DELAY if retry_delay is None else retry_delay
        self.state = LOADING
        self.error = None
        self._model = None
        self._loader = loader or load_model

    async def load(self):
        for attempt in range(1, self.retries + 2):
            try:
                self._model = await run_in_threadpool(self._loader, self.path)
            except ModelLoadError as e:
                self.error = str(e)
                logging.error(f"Model load attempt {attempt} failed: {e}")
                if attempt <= self.retries:
                    await asyncio.sleep(self.retry_delay)
                continue
            self.state = READY
            self.error = None
            logging.info(f"Model loaded successfully from {self.path}")
            return
        self.state = FAILED
        logging.error(f"Giving up on model {self.path}; /predict will answer 503")

    def get(self) -> LoadedModel:
        if self.state != READY:
            raise ServiceUnavailable()
        return self._model
