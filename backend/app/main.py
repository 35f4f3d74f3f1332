import asyncio
import logging
import os
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from . import config
from .exceptions import PredictionServiceError
from .routes import predict
from .schemas import HealthResponse
from .services.model_loader import ModelHolder, READY


@asynccontextmanager
async def lifespan(app: FastAPI):
    # ---- startup ----
    logging.basicConfig(level=config.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    os.makedirs(config.UPLOAD_DIR, exist_ok=True)
    holder = ModelHolder(config.MODEL_PATH)
    app.state.model_holder = holder
    load_task = asyncio.create_task(holder.load())
    logging.info(f"Server starting on port {config.PORT}; model loading in background")
    yield
    # ---- shutdown ----
    load_task.cancel()


app = FastAPI(title="Cancer Prediction API", lifespan=lifespan)
app.include_router(predict.router, prefix="")


@app.exception_handler(PredictionServiceError)
async def prediction_error_handler(request: Request, exc: PredictionServiceError):
    return JSONResponse(status_code=exc.status_code, content={"status": "fail", "message": exc.message})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logging.exception(f"Unhandled error on {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"status": "fail", "message": "Internal server error"})


@app.get("/")
def read_root():
    return {"status": "ok", "api": "inference"}


@app.get("/health", response_model=HealthResponse, response_model_exclude_none=True)
def health(request: Request):
    holder = getattr(request.app.state, "model_holder", None)
    state = holder.state if holder is not None else "missing"
    if state == READY:
        return HealthResponse(status="ok", model=state)
    return JSONResponse(
        status_code=503,
        content=HealthResponse(status="fail", model=state, detail=getattr(holder, "error", None)).model_dump(exclude_none=True),
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=config.HOST, port=config.PORT)
