"""Tests for utils.model_store."""
from schemas.model_schema import SimulatedModel
from utils.model_store import InMemoryModelStore, new_model_id


def _model(model_id):
    return SimulatedModel(
        model_id=model_id,
        model_type="knn",
        target_column="y",
        feature_columns=["a", "b"],
        metrics={"accuracy": 0.8},
        data_shape={"rows": 10, "features": 2},
    )


def test_put_get_evict():
    store = InMemoryModelStore()
    assert store.get("model_1") is None
    store.put("model_1", _model("model_1"))
    assert "model_1" in store
    assert len(store) == 1
    assert store.get("model_1").target_column == "y"
    assert store.evict("model_1") is True
    assert store.evict("model_1") is False
    assert "model_1" not in store


def test_new_model_id_is_time_based():
    store = InMemoryModelStore()
    assert new_model_id(store, now_ms=1700000000000) == "model_1700000000000"


def test_new_model_id_skips_taken_ids():
    store = InMemoryModelStore()
    store.put("model_1000", _model("model_1000"))
    store.put("model_1001", _model("model_1001"))
    assert new_model_id(store, now_ms=1000) == "model_1002"


def test_model_export_file():
    model = _model("model_5")
    exported = model.to_export(exported_at="2024-01-01T00:00:00")
    assert exported["modelId"] == "model_5"
    assert exported["featureColumns"] == ["a", "b"]
    assert exported["dataShape"] == {"rows": 10, "features": 2}
    assert exported["version"] == "1.0.0"
    assert exported["exportedAt"] == "2024-01-01T00:00:00"
    assert model.download_filename() == "knn_model_model_5.json"
