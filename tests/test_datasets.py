import pytest

from datadash.config import EngineConfig
from datadash.datasets import DatasetRegistry, assign_color, canonical_name, dataset_label
from datadash.errors import DatasetNotFoundError


@pytest.mark.parametrize("raw, expected", [
    ("POS LFOM Sales 2024", "POS LFOM"),
    ("LFOM Direct", "LFOM"),
    ("pos fom q1", "POS FOM"),
    ("FOM-April.xlsx", "FOM"),
    ("Closing Stock", "Closing Stock"),
])
def test_canonical_name(raw, expected):
    assert canonical_name(raw) == expected


def test_dataset_label():
    assert dataset_label("lfom direct") == "LFOM Sales"


def test_fixed_colors_for_known_categories():
    assert assign_color("POS LFOM Sales 2024", 7) == "#ef4444"
    assert assign_color("FOM", 3) == "#3b82f6"


def test_position_and_hash_strategies():
    cfg = EngineConfig()
    assert assign_color("Upload A", 0) == cfg.palette[0]
    assert assign_color("Upload A", len(cfg.palette) + 1) == cfg.palette[1]
    hashed = assign_color("Upload A", 0, strategy="hash")
    assert hashed == assign_color("Upload A", 5, strategy="hash")
    assert hashed in cfg.palette


def test_add_assigns_identity(registry, sales_rows):
    ds = registry.add("FOM Sales", sales_rows, file_name="fom.xlsx")
    assert ds.id
    assert ds.canonical_name == "FOM"
    assert ds.label == "FOM Sales"
    assert ds.color == "#3b82f6"
    assert ds.row_count == 5
    assert ds.file_name == "fom.xlsx"
    assert ds.status == "warning"  # fewer than ten rows
    assert registry.is_active(ds.id)
    assert registry.get(ds.id) is ds


def test_rows_are_copied(registry):
    rows = [{"Qty": 1}]
    ds = registry.add("A", rows)
    rows[0]["Qty"] = 99
    assert ds.rows[0]["Qty"] == 1


def test_empty_upload_is_an_error(registry):
    ds = registry.add("Empty", [])
    assert ds.status == "error"
    assert ds.errors


def test_duplicate_id_rejected(registry):
    registry.add("A", [{"x": 1}], dataset_id="one")
    with pytest.raises(ValueError):
        registry.add("B", [{"x": 1}], dataset_id="one")


def test_remove_and_missing(registry):
    ds = registry.add("A", [{"x": 1}])
    registry.remove(ds.id)
    assert ds.id not in registry
    with pytest.raises(DatasetNotFoundError):
        registry.get(ds.id)
    with pytest.raises(KeyError):
        registry.remove("nope")


def test_activation(registry):
    a = registry.add("A", [{"x": 1}])
    b = registry.add("B", [{"x": 2}], active=False)
    assert [d.id for d in registry.active] == [a.id]
    assert registry.toggle(b.id) is True
    assert [d.id for d in registry.active] == [a.id, b.id]
    registry.set_active([b.id])
    assert [d.id for d in registry.active] == [b.id]
    registry.set_active_all(False)
    assert registry.active == []
    with pytest.raises(DatasetNotFoundError):
        registry.set_active(["nope"])


def test_colors_follow_active_position(registry):
    a = registry.add("Upload A", [{"x": 1}])
    b = registry.add("Upload B", [{"x": 2}])
    palette = registry.cfg.palette
    assert registry.colors() == {a.id: palette[0], b.id: palette[1]}
    registry.toggle(a.id)
    assert registry.colors() == {b.id: palette[0]}


def test_combine_active_tags_rows(registry):
    a = registry.add("FOM", [{"Qty": 1}, {"Qty": 2}])
    registry.add("LFOM", [{"Qty": 3}], active=False)
    combined = registry.combine_active()
    assert len(combined) == 2
    assert combined[0]["__datasetId"] == a.id
    assert combined[0]["__datasetName"] == "FOM"
    assert combined[0]["__datasetColor"] == "#3b82f6"
    assert "__datasetId" not in a.rows[0]


def test_subscribers_are_notified(registry):
    events = []
    unsubscribe = registry.subscribe(lambda event, dataset_id: events.append(event))
    ds = registry.add("A", [{"x": 1}])
    registry.toggle(ds.id)
    unsubscribe()
    registry.remove(ds.id)
    assert events == ["added", "active"]


def test_dataset_kind(registry, claim_rows):
    assert registry.add("MDA", claim_rows).kind == "claims"
    assert registry.add("FOM", [{"Quantity": 1}]).kind == "sales"


def test_color_of_follows_active_position(registry):
    a = registry.add("Upload A", [{"x": 1}])
    b = registry.add("Upload B", [{"x": 2}])
    palette = registry.cfg.palette
    assert b.color == registry.color_of(b.id) == palette[1]

    registry.toggle(a.id)
    assert registry.color_of(b.id) == registry.colors()[b.id] == palette[0]
    assert registry.color_of(a.id) == a.color


def test_registration_color_counts_active_datasets_only(registry):
    registry.add("Upload A", [{"x": 1}], active=False)
    b = registry.add("Upload B", [{"x": 2}])
    assert b.color == registry.colors()[b.id] == registry.cfg.palette[0]


def test_dataset_columns_use_registry_config():
    reg = DatasetRegistry(EngineConfig(sample_size=2))
    ds = reg.add("Upload", [{"Qty": i} for i in range(5)])
    assert ds.columns.sample_size == 2
