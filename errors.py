# errors.py


class ServiceError(Exception):
    """Base error; `message` is what the client sees under "error"."""

    status_code = 500
    prefix = ""

    def __init__(self, detail: str = ""):
        self.detail = str(detail)
        self.message = f"{self.prefix}{self.detail}"
        super().__init__(self.message)


class UploadError(ServiceError):
    status_code = 400


class InvalidModelNameError(ServiceError):
    status_code = 400
    prefix = "Invalid model name: "


class ModelNotFoundError(ServiceError):
    status_code = 404


class ModelLoadError(ServiceError):
    prefix = "Error loading model: "


class ImageProcessingError(ServiceError):
    prefix = "Error processing image: "


class PredictionError(ServiceError):
    prefix = "Prediction error: "
