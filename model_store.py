# model_store.py
import json
import os
import re
import threading
import time
from pathlib import Path

from tensorflow import keras

from config import CLASS_LABELS
from errors import InvalidModelNameError, ModelLoadError, ModelNotFoundError
from model_builder import output_units

MANIFEST_SUFFIX = ".json"
WEIGHTS_SUFFIX = ".weights.h5"
MODEL_NAME_RE = re.compile(r"^[A-Za-z0-9_-][A-Za-z0-9_.-]*$")


def check_model_name(name: str) -> str:
    if not name or not MODEL_NAME_RE.match(name):
        raise InvalidModelNameError(repr(name))
    return name


def manifest_path(model_dir, name: str) -> Path:
    return Path(model_dir) / f"{name}{MANIFEST_SUFFIX}"


def weights_path(model_dir, name: str) -> Path:
    return Path(model_dir) / f"{name}{WEIGHTS_SUFFIX}"


def list_models(model_dir) -> list:
    """Identifiers of every manifest in `model_dir`, sorted. Hidden (temporary) files are skipped."""
    model_dir = Path(model_dir)
    if not model_dir.is_dir():
        return []
    return sorted(
        p.name[: -len(MANIFEST_SUFFIX)]
        for p in model_dir.iterdir()
        if p.is_file() and p.name.endswith(MANIFEST_SUFFIX) and not p.name.startswith(".")
    )


class ModelStore:
    """
    Saves models as a JSON manifest plus a weights file and keeps loaded
    models in memory, keyed by name and manifest mtime.

    One lock covers saves and loads: a save renames its files into place
    only after both are fully written (weights first, manifest last), and a
    load never overlaps a save, so readers cannot see half a model.
    """

    def __init__(self, model_dir, default_labels=CLASS_LABELS):
        self.model_dir = Path(model_dir)
        self.default_labels = tuple(default_labels)
        self.lock = threading.Lock()
        self.cache = {}  # name -> (mtime_ns, model, labels)

    def list_models(self) -> list:
        return list_models(self.model_dir)

    def loaded(self) -> list:
        with self.lock:
            return sorted(self.cache)

    def save(self, name: str, model: keras.Model, class_labels) -> Path:
        check_model_name(name)
        labels = list(class_labels)
        units = output_units(model)
        if units != len(labels):
            raise ValueError(f"model has {units} outputs but {len(labels)} class labels")

        target_manifest = manifest_path(self.model_dir, name)
        target_weights = weights_path(self.model_dir, name)
        manifest = {
            "name": name,
            "format": "keras-layers-model",
            "model_topology": json.loads(model.to_json()),
            "weights_manifest": [{"paths": [target_weights.name]}],
            "class_labels": labels,
            "input_shape": list(model.input_shape[1:]),
            "created_at": int(time.time() * 1000),
        }

        with self.lock:
            self.model_dir.mkdir(parents=True, exist_ok=True)
            tmp_weights = self.model_dir / f".{name}.tmp{WEIGHTS_SUFFIX}"
            tmp_manifest = self.model_dir / f".{name}.tmp"
            try:
                model.save_weights(str(tmp_weights))
                with open(tmp_manifest, "w") as f:
                    json.dump(manifest, f)
                os.replace(tmp_weights, target_weights)
                os.replace(tmp_manifest, target_manifest)
            finally:
                # no-ops after a successful rename
                tmp_weights.unlink(missing_ok=True)
                tmp_manifest.unlink(missing_ok=True)
            self.cache.pop(name, None)
        print(f"[Models] Saved '{name}' to {target_manifest}")
        return target_manifest

    def resolve(self, requested, default: str) -> str:
        """A named request wins; otherwise a lone model on disk, otherwise `default`."""
        if requested:
            return check_model_name(requested)
        models = self.list_models()
        if len(models) == 1:
            return models[0]
        return check_model_name(default)

    def get(self, name: str):
        """Return (model, class_labels) for `name`, loading from disk only when the manifest changed."""
        check_model_name(name)
        path = manifest_path(self.model_dir, name)
        with self.lock:
            try:
                mtime = path.stat().st_mtime_ns
            except FileNotFoundError:
                self.cache.pop(name, None)
                if not list_models(self.model_dir):
                    raise ModelNotFoundError("No model files found")
                raise ModelNotFoundError(f"No model files found for '{name}'")

            cached = self.cache.get(name)
            if cached and cached[0] == mtime:
                return cached[1], cached[2]

            model, labels = self._load(path)
            self.cache[name] = (mtime, model, labels)
        print(f"[Models] Loaded '{name}' ({len(labels)} classes)")
        return model, labels

    def preload(self, name: str) -> bool:
        try:
            self.get(name)
            return True
        except ModelNotFoundError:
            print(f"[Models] No '{name}' model on disk yet, skipping preload")
        except ModelLoadError as e:
            print(f"[Models] Preload of '{name}' failed: {e.message}")
        return False

    def _load(self, path: Path):
        try:
            with open(path) as f:
                manifest = json.load(f)
            model = keras.models.model_from_json(json.dumps(manifest["model_topology"]))
            for group in manifest.get("weights_manifest", []):
                for rel in group["paths"]:
                    model.load_weights(str(self.model_dir / os.path.basename(rel)))
            labels = tuple(manifest.get("class_labels") or self.default_labels)
        except Exception as e:
            raise ModelLoadError(str(e)) from e

        units = output_units(model)
        if units != len(labels):
            raise ModelLoadError(f"model has {units} outputs but {len(labels)} class labels")
        return model, labels
