from typing import List

from pydantic import BaseModel, Field


class TrainResponse(BaseModel):
    message: str = Field(..., description="Confirmation text")
    model: str = Field(..., description="Identifier the model was saved under")


class PredictResponse(BaseModel):
    prediction: List[List[float]] = Field(..., description="Softmax output, shape [1, num_classes]")
    class_labels: List[str] = Field(..., description="Labels paired positionally with the prediction")


class ModelsResponse(BaseModel):
    models: List[str] = Field(..., description="Model identifiers found in the model directory")
    default: str = Field(..., description="Identifier used when a request names no model")
