# app.py
import io
import sys
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import APIRouter, Depends, FastAPI, File, Form, Request, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse, StreamingResponse

from config import ServiceConfig
from errors import ServiceError
from history import SAMPLE_HISTORY, history_plot
from inference import format_prediction, run_prediction
from model_builder import build_model
from model_store import ModelStore, check_model_name
from pages import index_page
from preprocessing import load_image_tensor
from schemas import ModelsResponse, PredictResponse, TrainResponse
from stats import process_stats
from uploads import save_upload, validate_upload

router = APIRouter()


def get_config(request: Request) -> ServiceConfig:
    return request.app.state.config


def get_store(request: Request) -> ModelStore:
    return request.app.state.store


@router.get("/", response_class=HTMLResponse)
def serve_index(config: ServiceConfig = Depends(get_config), store: ModelStore = Depends(get_store)):
    return HTMLResponse(content=index_page(SAMPLE_HISTORY, store.list_models(), config.default_model))


@router.get("/plot/history")
def serve_history_plot():
    return StreamingResponse(io.BytesIO(history_plot()), media_type="image/png")


@router.get("/health")
def health_check(config: ServiceConfig = Depends(get_config), store: ModelStore = Depends(get_store)):
    return {
        "status": "ok",
        "port": config.port,
        "default_model": config.default_model,
        "models": store.list_models(),
        "loaded": store.loaded(),
        "process": process_stats(),
    }


@router.get("/models", response_model=ModelsResponse)
def serve_models(config: ServiceConfig = Depends(get_config), store: ModelStore = Depends(get_store)):
    return {"models": store.list_models(), "default": config.default_model}


@router.post("/train", response_model=TrainResponse)
async def train(
    name: Optional[str] = None,
    config: ServiceConfig = Depends(get_config),
    store: ModelStore = Depends(get_store),
):
    name = check_model_name(name or config.default_model)
    input_shape = (config.image_size, config.image_size, 3)

    model = await run_in_threadpool(build_model, input_shape, len(config.class_labels))
    await run_in_threadpool(store.save, name, model, config.class_labels)
    print(f"[Train] Built and saved '{name}' ({len(config.class_labels)} classes)")

    return {"message": "Model trained and saved successfully", "model": name}


@router.post("/predict", response_model=PredictResponse)
async def predict(
    file: Optional[UploadFile] = File(None),
    model: Optional[str] = Form(None),
    config: ServiceConfig = Depends(get_config),
    store: ModelStore = Depends(get_store),
):
    filename = file.filename if file is not None else None
    validate_upload(filename, config.allowed_extensions)
    requested = check_model_name(model) if model else None

    content = await file.read()
    upload_path = await run_in_threadpool(save_upload, content, filename, config.uploads_dir)
    name = await run_in_threadpool(store.resolve, requested, config.default_model)
    print(f"[Predict] {upload_path.name} -> model '{name}'")

    net, labels = await run_in_threadpool(store.get, name)
    size = int(net.input_shape[1] or config.image_size)
    batch = await run_in_threadpool(load_image_tensor, upload_path, size)
    probs = await run_in_threadpool(run_prediction, net, batch)

    return format_prediction(probs, labels)


def create_app(config: ServiceConfig = None) -> FastAPI:
    config = config or ServiceConfig.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        config.ensure_dirs()
        print(f"[Server] Models in {config.model_dir}, uploads in {config.uploads_dir}")
        await run_in_threadpool(app.state.store.preload, config.default_model)
        yield

    app = FastAPI(title="Image Classifier", lifespan=lifespan)
    app.state.config = config
    app.state.store = ModelStore(config.model_dir, config.class_labels)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError):
        print(f"[Server] {request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
        return JSONResponse({"error": exc.message}, status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        detail = "; ".join(
            f"{'.'.join(str(l) for l in err.get('loc', ()))}: {err.get('msg')}" for err in exc.errors()
        )
        print(f"[Server] {request.method} {request.url.path} -> 400: {detail}")
        return JSONResponse({"error": f"Invalid request: {detail}"}, status_code=400)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        print(f"[Server] {request.method} {request.url.path} -> 500: {type(exc).__name__}: {exc}")
        return JSONResponse({"error": "Internal server error"}, status_code=500)

    app.include_router(router)
    return app


app = create_app()

if __name__ == "__main__":
    PORT = int(sys.argv[1]) if len(sys.argv) > 1 else app.state.config.port
    print(f"[Server] Running on port {PORT}")
    uvicorn.run("app:app", host=app.state.config.host, port=PORT, reload=False)
