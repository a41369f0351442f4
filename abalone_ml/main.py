import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Union

from fastapi import FastAPI, HTTPException
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import UJSONResponse
from pydantic import BaseModel

from dotenv import load_dotenv
load_dotenv()

from .artifacts import load_artifacts
from .config import PipelineConfig
from .errors import MissingFeature, SchemaMismatch
from .inference.predictor import iter_predictions
from .training.architecture import RingsRegressor

# --- Logging Configuration ---
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - [%(levelname)s] - %(name)s - %(message)s',
    datefmt="%Y-%m-%d %H:%M:%S"
)
logger = logging.getLogger("abalone_ml_api")

# --- Global In-Memory Artifacts ---
# Read-only after startup, so concurrent requests can share them.
serving_artifacts: Dict[str, Any] = {}


def predict_rows(rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Vectorizes and predicts request rows with the loaded schema, in request order."""
    config: PipelineConfig = serving_artifacts["config"]
    predictions = iter_predictions(
        rows,
        serving_artifacts["model"],
        serving_artifacts["schema"],
        config.id_column,
        config.target_column,
    )
    return [{config.id_column: row_id, config.target_column: value} for row_id, value in predictions]


# --- API Lifespan Management ---

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("--- Starting Abalone-ML Inference API ---")
    try:
        # Load artifacts strictly before accepting traffic
        config = PipelineConfig.from_env()
        model, schema = load_artifacts(config, RingsRegressor.load)
        serving_artifacts.update(config=config, model=model, schema=schema)
        logger.info("--- Abalone-ML API is READY ---")
    except Exception as e:
        logger.critical(f"Fatal Startup Error: {e}")
        raise
    yield
    serving_artifacts.clear()


# --- Application Definition ---

app = FastAPI(
    title="Abalone-ML Rings Regression API",
    version="1.0.0",
    lifespan=lifespan,
    default_response_class=UJSONResponse
)


# --- Pydantic Schemas ---

class PredictRequest(BaseModel):
    rows: List[Dict[str, Union[int, float, str]]]


# --- API Endpoints ---

@app.get("/health")
async def health_check():
    if not serving_artifacts:
        raise HTTPException(status_code=503, detail="Artifacts not loaded")
    schema = serving_artifacts["schema"]
    return {
        "status": "healthy",
        "model": serving_artifacts["config"].model_name,
        "features": len(schema.feature_order),
        "schema_created_at": schema.created_at,
    }


@app.post("/predict", tags=["Inference"])
async def predict(payload: PredictRequest):
    if not serving_artifacts:
        raise HTTPException(status_code=503, detail="Artifacts not loaded")

    try:
        results = await run_in_threadpool(predict_rows, payload.rows)
    except (MissingFeature, SchemaMismatch) as e:
        raise HTTPException(status_code=422, detail=str(e))

    return {"target": serving_artifacts["config"].target_column, "predictions": results}
