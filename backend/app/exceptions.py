from . import config
from .services.label_mappings import get_message


class PredictionServiceError(Exception):
    """Base for every failure that is reported to the client as a `fail` body."""
    status_code = 400

    def __init__(self, message: str = None):
        self.message = message if message is not None else self.default_message()
        super().__init__(self.message)

    def default_message(self) -> str:
        return get_message("prediction_error")


class PayloadTooLarge(PredictionServiceError):
    status_code = 413

    def default_message(self):
        return f"Payload content length greater than maximum allowed: {config.MAX_UPLOAD_BYTES}"


class MissingFile(PredictionServiceError):
    def default_message(self):
        return "No file uploaded"


class UploadError(PredictionServiceError):
    pass


class UnsupportedMediaType(UploadError):
    pass


class UploadLimitError(UploadError):
    def default_message(self):
        return get_message("prediction_limit_error")


class PipelineError(PredictionServiceError):
    """Failure after the upload was accepted; the message carries the cause."""

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"{get_message('prediction_error')} {detail}")


class DecodeError(PipelineError):
    pass


class InferenceError(PipelineError):
    pass


class ServiceUnavailable(PredictionServiceError):
    status_code = 503

    def default_message(self):
        return get_message("model_unavailable")


class ModelLoadError(RuntimeError):
    pass
