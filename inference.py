# inference.py
import numpy as np

from errors import PredictionError


def run_prediction(model, batch: np.ndarray) -> np.ndarray:
    try:
        probs = model.predict(batch, verbose=0)
        return np.asarray(probs)
    except Exception as e:
        raise PredictionError(str(e)) from e


def format_prediction(prediction, class_labels) -> dict:
    """Raw probabilities as nested lists, paired with the labels. No argmax or top-k."""
    return {
        "prediction": np.asarray(prediction).tolist(),
        "class_labels": list(class_labels),
    }
