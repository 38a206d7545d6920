# config.py
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

PROJECT_ROOT = Path(__file__).resolve().parent

DEFAULT_PORT = 3000
DEFAULT_MODEL = "model"
CLASS_LABELS = ("class1", "class2", "class3")
IMAGE_SIZE = 224
ALLOWED_EXTENSIONS = frozenset({"jpg", "jpeg", "png"})


@dataclass(frozen=True)
class ServiceConfig:
    """Resolved paths and settings handed to every route."""

    root: Path = PROJECT_ROOT
    model_dir: Optional[Path] = None
    uploads_dir: Optional[Path] = None
    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    default_model: str = DEFAULT_MODEL
    class_labels: tuple = CLASS_LABELS
    image_size: int = IMAGE_SIZE
    allowed_extensions: frozenset = field(default=ALLOWED_EXTENSIONS)

    def __post_init__(self):
        # frozen, so fill derived paths through object.__setattr__
        root = Path(self.root)
        object.__setattr__(self, "root", root)
        model_dir = Path(self.model_dir) if self.model_dir else root / "static" / "model"
        uploads_dir = Path(self.uploads_dir) if self.uploads_dir else root / "static" / "uploads"
        object.__setattr__(self, "model_dir", model_dir)
        object.__setattr__(self, "uploads_dir", uploads_dir)
        object.__setattr__(self, "class_labels", tuple(self.class_labels))
        if not self.class_labels:
            raise ValueError("at least one class label is required")

    @classmethod
    def from_env(cls, environ=None) -> "ServiceConfig":
        env = os.environ if environ is None else environ
        labels = env.get("CLASS_LABELS")
        return cls(
            root=Path(env.get("CLASSIFIER_ROOT", PROJECT_ROOT)),
            model_dir=env.get("MODEL_DIR") or None,
            uploads_dir=env.get("UPLOADS_DIR") or None,
            host=env.get("HOST", "0.0.0.0"),
            port=int(env.get("PORT", DEFAULT_PORT)),
            default_model=env.get("DEFAULT_MODEL", DEFAULT_MODEL),
            class_labels=tuple(label.strip() for label in labels.split(",") if label.strip()) if labels else CLASS_LABELS,
        )

    def ensure_dirs(self):
        self.model_dir.mkdir(parents=True, exist_ok=True)
        self.uploads_dir.mkdir(parents=True, exist_ok=True)
