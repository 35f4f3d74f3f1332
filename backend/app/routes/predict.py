import asyncio
import logging
from fastapi import APIRouter, Depends, Request
from starlette.concurrency import run_in_threadpool
from .. import config
from ..exceptions import InferenceError, ServiceUnavailable
from ..schemas import FailResponse, PredictResponse
from ..services.inference_service import do_inference
from ..services.model_loader import LoadedModel
from ..services.upload_service import stored_upload

router = APIRouter()


def get_model(request: Request) -> LoadedModel:
    holder = getattr(request.app.state, "model_holder", None)
    if holder is None:
        raise ServiceUnavailable()
    return holder.get()


@router.post(
    "/predict",
    response_model=PredictResponse,
    responses={400: {"model": FailResponse}, 413: {"model": FailResponse}, 503: {"model": FailResponse}},
)
async def predict_image(request: Request, model: LoadedModel = Depends(get_model)):
    async with stored_upload(request) as uploaded:
        try:
            result = await asyncio.wait_for(
                run_in_threadpool(do_inference, model, uploaded.path),
                timeout=config.PREDICT_TIMEOUT,
            )
        except asyncio.TimeoutError:
            logging.error(f"Prediction for {uploaded.filename} exceeded {config.PREDICT_TIMEOUT}s")
            raise InferenceError(f"Prediction timed out after {config.PREDICT_TIMEOUT} seconds")
    return PredictResponse(data=result)
