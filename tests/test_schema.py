import logging

from datadash.schema import (
    ColumnRole,
    classify,
    column_names,
    find_best_column,
    infer_dataset_kind,
    resolve_role,
)


def test_classify_roles(sales_rows):
    reg = classify(sales_rows)

    assert reg.role_of("Date") == ColumnRole.DATE
    assert reg.role_of("Quantity") == ColumnRole.NUMERIC
    assert reg.role_of("Price") == ColumnRole.NUMERIC
    assert reg.role_of("Buyer Type") == ColumnRole.CATEGORICAL
    assert reg.role_of("Month") == ColumnRole.CATEGORICAL
    assert reg.names == ["Date", "Buyer Type", "Name", "Quantity", "Price", "Month"]


def test_date_content_without_date_in_name():
    rows = [{"When": "2024-01-0%d" % i, "Units": i} for i in range(1, 6)]
    reg = classify(rows)
    assert reg.role_of("When") == ColumnRole.DATE
    assert reg.role_of("Units") == ColumnRole.NUMERIC


def test_numeric_columns_are_not_read_as_serial_dates():
    rows = [{"Qty": 45000 + i} for i in range(5)]
    assert classify(rows).role_of("Qty") == ColumnRole.NUMERIC


def test_empty_column_is_categorical():
    rows = [{"Notes": None, "Value": 1}, {"Notes": "", "Value": 2}]
    assert classify(rows).role_of("Notes") == ColumnRole.CATEGORICAL


def test_classification_only_samples_leading_rows():
    rows = [{"Code": "A"} for _ in range(3)] + [{"Code": str(i)} for i in range(20)]
    assert classify(rows, sample_size=3).role_of("Code") == ColumnRole.CATEGORICAL
    assert classify(rows, sample_size=3).sample_size == 3


def test_column_names_union_in_first_seen_order():
    rows = [{"a": 1, "b": 2}, {"c": 3, "a": 4}]
    assert column_names(rows) == ["a", "b", "c"]


def test_exact_keyword_beats_substring():
    rows = [{"Total Amount": 1, "quantity": 2, "Quantity Returned": 3}]
    assert find_best_column(rows, ColumnRole.NUMERIC, ["quantity", "amount"]) == "quantity"


def test_keyword_priority_order():
    rows = [{"Amount": 1, "Units Sold": 2}]
    assert find_best_column(rows, ColumnRole.NUMERIC, ["units", "amount"]) == "Units Sold"


def test_fallback_to_first_column_of_role():
    rows = [{"Label": "x", "Foo": 1, "Bar": 2}]
    assert find_best_column(rows, ColumnRole.NUMERIC, ["price"]) == "Foo"
    assert find_best_column(rows, ColumnRole.NUMERIC, ["price"], strict=True) is None


def test_no_column_of_role():
    rows = [{"Label": "x"}]
    assert find_best_column(rows, ColumnRole.NUMERIC, ["price"]) is None


def test_ambiguous_match_is_reported(caplog):
    rows = [{"Unit Price": 1, "Price Paid": 2}]
    reg = classify(rows)
    with caplog.at_level(logging.WARNING, logger="datadash.schema"):
        m = reg.match(ColumnRole.NUMERIC, ["price"])
    assert m.column == "Unit Price"
    assert m.ambiguous
    assert m.alternatives == ("Price Paid",)
    assert "Ambiguous" in caplog.text


def test_compound_keyword_needs_all_parts():
    rows = [{"Type": "x", "Buyer Type": "B2B", "Buyer": "y"}]
    reg = classify(rows)
    assert reg.best(ColumnRole.CATEGORICAL, ["buyer+type"], strict=True) == "Buyer Type"


def test_excluded_columns_are_not_chartable():
    rows = [{"Address": "Main Street", "Pin Code": "ABC", "District": "Ludhiana"}]
    reg = classify(rows)
    assert reg.chartable(ColumnRole.CATEGORICAL) == ["District"]
    assert "Address" in reg.columns(ColumnRole.CATEGORICAL)


def test_resolve_role_prefers_literal_column(sales_rows):
    reg = classify(sales_rows)
    assert resolve_role(reg, "Buyer Type") == "Buyer Type"
    assert resolve_role(reg, "buyer_type") == "Buyer Type"
    assert resolve_role(reg, "district") is None
    assert resolve_role(reg, "no_such_role") is None


def test_infer_dataset_kind(claim_rows):
    assert infer_dataset_kind("MDA Claims FY24") == "claims"
    assert infer_dataset_kind("Closing Stock") == "stock"
    assert infer_dataset_kind("Upload 7", classify(claim_rows)) == "claims"
    assert infer_dataset_kind("FOM Sales") == "sales"


def test_time_of_day_column_is_categorical():
    rows = [{"Time": "10:45", "Qty": 1}, {"Time": "12:30", "Qty": 2}, {"Time": "18:05:00", "Qty": 3}]
    reg = classify(rows)
    assert reg.role_of("Time") == ColumnRole.CATEGORICAL
    assert reg.date_column is None
