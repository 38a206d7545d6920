import json
import threading

import numpy as np
import pytest

from errors import InvalidModelNameError, ModelLoadError, ModelNotFoundError
from model_builder import build_model
import model_store
from model_store import ModelStore, list_models, manifest_path, weights_path

SMALL = (4, 4, 3)
LABELS = ("class1", "class2", "class3")


@pytest.fixture
def store(tmp_path):
    return ModelStore(tmp_path / "model", LABELS)


def test_save_writes_manifest_and_weights(store):
    path = store.save("model", build_model(SMALL), LABELS)
    assert path == manifest_path(store.model_dir, "model")
    assert weights_path(store.model_dir, "model").is_file()

    manifest = json.loads(path.read_text())
    assert manifest["name"] == "model"
    assert manifest["class_labels"] == list(LABELS)
    assert manifest["input_shape"] == [4, 4, 3]
    assert manifest["weights_manifest"] == [{"paths": ["model.weights.h5"]}]
    # no temporary files left behind
    assert sorted(p.name for p in store.model_dir.iterdir()) == ["model.json", "model.weights.h5"]


def test_round_trip_predictions_match(store):
    model = build_model(SMALL)
    store.save("model", model, LABELS)
    loaded, labels = store.get("model")
    x = np.random.default_rng(1).random((1, 4, 4, 3), dtype=np.float32)
    assert labels == LABELS
    assert np.allclose(model.predict(x, verbose=0), loaded.predict(x, verbose=0), atol=1e-6)


def test_missing_model(store):
    with pytest.raises(ModelNotFoundError) as info:
        store.get("model")
    assert info.value.status_code == 404
    assert info.value.message == "No model files found"


def test_named_model_missing_among_others(store):
    store.save("other", build_model(SMALL), LABELS)
    with pytest.raises(ModelNotFoundError) as info:
        store.get("model")
    assert "'model'" in info.value.message


@pytest.mark.parametrize("name", ["", "../model", ".hidden", "a/b", "sp ace"])
def test_invalid_names(store, name):
    with pytest.raises(InvalidModelNameError):
        store.get(name)


def test_cache_reused_until_manifest_changes(store):
    store.save("model", build_model(SMALL), LABELS)
    first, _ = store.get("model")
    again, _ = store.get("model")
    assert first is again
    assert store.loaded() == ["model"]

    store.save("model", build_model(SMALL), LABELS)
    assert store.loaded() == []
    reloaded, _ = store.get("model")
    assert reloaded is not first


def test_label_mismatch_rejected_on_save(store):
    with pytest.raises(ValueError):
        store.save("model", build_model(SMALL, num_classes=2), LABELS)


def test_label_mismatch_rejected_on_load(store):
    path = store.save("model", build_model(SMALL), LABELS)
    manifest = json.loads(path.read_text())
    manifest["class_labels"] = ["a", "b"]
    path.write_text(json.dumps(manifest))
    with pytest.raises(ModelLoadError) as info:
        store.get("model")
    assert info.value.message.startswith("Error loading model: ")


def test_labels_fall_back_to_defaults(store):
    path = store.save("model", build_model(SMALL), LABELS)
    manifest = json.loads(path.read_text())
    del manifest["class_labels"]
    path.write_text(json.dumps(manifest))
    _, labels = store.get("model")
    assert labels == LABELS


def test_corrupt_manifest(store):
    store.model_dir.mkdir(parents=True)
    manifest_path(store.model_dir, "model").write_text("{not json")
    with pytest.raises(ModelLoadError):
        store.get("model")


def test_missing_weights(store):
    store.save("model", build_model(SMALL), LABELS)
    weights_path(store.model_dir, "model").unlink()
    with pytest.raises(ModelLoadError):
        store.get("model")


def test_list_models_sorted_and_skips_hidden(tmp_path):
    d = tmp_path / "model"
    assert list_models(d) == []
    d.mkdir()
    for name in ("b.json", "a.json", ".a.tmp", ".x.json", "a.weights.h5"):
        (d / name).write_text("{}")
    assert list_models(d) == ["a", "b"]


def test_preload(store, capsys):
    assert store.preload("model") is False
    store.save("model", build_model(SMALL), LABELS)
    assert store.preload("model") is True
    assert "[Models] Loaded 'model'" in capsys.readouterr().out


def test_failed_save_leaves_no_temp_files(store, monkeypatch):
    store.save("model", build_model(SMALL), LABELS)
    before = (store.model_dir / "model.json").read_bytes()

    def boom(*args, **kwargs):
        raise OSError("disk full")

    monkeypatch.setattr(model_store.json, "dump", boom)
    with pytest.raises(OSError):
        store.save("model", build_model(SMALL), LABELS)

    assert sorted(p.name for p in store.model_dir.iterdir()) == ["model.json", "model.weights.h5"]
    assert (store.model_dir / "model.json").read_bytes() == before


def test_loads_never_see_a_save_in_progress(store):
    store.save("model", build_model(SMALL), LABELS)
    models = [build_model(SMALL) for _ in range(3)]
    done = threading.Event()
    errors, listings = [], []

    def writer():
        try:
            for _ in range(3):
                for m in models:
                    store.save("model", m, LABELS)
        finally:
            done.set()

    def reader():
        while True:
            try:
                store.get("model")
            except Exception as e:
                errors.append(e)
            listings.append(store.list_models())
            if done.is_set():
                break

    threads = [threading.Thread(target=writer)] + [threading.Thread(target=reader) for _ in range(3)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=120)

    assert errors == []
    assert listings and all(names == ["model"] for names in listings)
    assert not any(p.name.startswith(".") for p in store.model_dir.iterdir())


def test_resolve_prefers_named_then_lone_model(store):
    assert store.resolve(None, "model") == "model"
    store.save("classifier", build_model(SMALL), LABELS)
    assert store.resolve(None, "model") == "classifier"
    assert store.resolve("model", "model") == "model"
    store.save("other", build_model(SMALL), LABELS)
    assert store.resolve(None, "model") == "model"
    with pytest.raises(InvalidModelNameError):
        store.resolve("../x", "model")
