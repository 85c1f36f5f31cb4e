from ev_dashboard.data import (
    PASSTHROUGH_COLUMNS,
    RECORD_COLUMNS,
    _load_dashboard_data_cached,
    build_data_context,
    clean_records,
    load_dashboard_data,
    missing_columns,
    normalize_records,
    parse_csv_text,
    parse_leading_int,
)


def test_scenario_rows_normalize_with_range_default(scenario_csv_text):
    records = normalize_records(parse_csv_text(scenario_csv_text))

    assert len(records) == 3
    assert records["model_year"].tolist() == [2020, 2020, 2021]
    assert records["make"].tolist() == ["Tesla", "Nissan", "Tesla"]
    assert records["range"].tolist() == [250, 150, 0]
    assert records["record_id"].tolist() == [0, 1, 2]


def test_rows_missing_make_or_year_are_dropped():
    text = (
        "Model Year,Make,Model,Electric Range,City,County\n"
        "2020,Tesla,Model 3,250,Seattle,King\n"
        ",Tesla,Model S,300,Seattle,King\n"
        "2021,,Leaf,150,Seattle,King\n"
        "2021,   ,Leaf,150,Seattle,King\n"
        "abcd,Nissan,Leaf,150,Seattle,King\n"
        "2022,Kia,Niro,not listed,Tacoma,Pierce\n"
    )
    records, dq = clean_records(parse_csv_text(text))

    assert records["make"].tolist() == ["Tesla", "Kia"]
    assert dq == {
        "raw_rows": 6,
        "records": 2,
        "dropped_missing_make_or_year": 3,
        "dropped_unparseable_year": 1,
        "range_defaulted": 1,
    }
    assert records["range"].tolist() == [250, 0]


def test_text_fields_are_trimmed_and_passthrough_kept():
    text = (
        "Model Year,Make,Model,Electric Range,City,County,VIN,Base MSRP\n"
        "2020, Tesla , Model 3 ,250,  Seattle , King ,5YJ3E1EB4L, 0 \n"
    )
    records = normalize_records(parse_csv_text(text))
    row = records.iloc[0]

    assert row["make"] == "Tesla"
    assert row["model"] == "Model 3"
    assert row["city"] == "Seattle"
    assert row["county"] == "King"
    assert row["VIN"] == "5YJ3E1EB4L"
    # passthrough values are not touched
    assert row["Base MSRP"] == " 0 "
    assert row["Make"] == " Tesla "
    assert list(records.columns[: len(RECORD_COLUMNS)]) == RECORD_COLUMNS


def test_range_is_never_negative():
    text = "Model Year,Make,Electric Range\n2020,Tesla,-5\n2020,Tesla,215 mi\n"
    records = normalize_records(parse_csv_text(text))
    assert records["range"].tolist() == [0, 215]
    assert all(r >= 0 for r in records["range"].tolist())


def test_optional_columns_absent_default_to_empty(scenario_csv_text):
    records = normalize_records(parse_csv_text(scenario_csv_text))
    assert records["model"].tolist() == ["", "", ""]
    assert records["city"].tolist() == ["", "", ""]


def test_blank_lines_are_skipped():
    text = "Model Year,Make,Electric Range\n2020,Tesla,250\n\n\n2021,Kia,239\n"
    assert len(normalize_records(parse_csv_text(text))) == 2


def test_header_only_csv_yields_no_records():
    ctx = build_data_context(parse_csv_text("Model Year,Make,Model,Electric Range,City,County\n"))
    assert ctx["loaded"] is True
    assert ctx["records"].empty
    assert ctx["dq"]["raw_rows"] == 0


def test_parse_leading_int():
    assert parse_leading_int("2021") == 2021
    assert parse_leading_int(" 215 mi") == 215
    assert parse_leading_int("12.5") == 12
    assert parse_leading_int("") is None
    assert parse_leading_int("n/a") is None
    assert parse_leading_int(None) is None
    assert parse_leading_int("9" * 30) is None
    assert parse_leading_int(str(2**63 - 1)) == 2**63 - 1


def test_missing_columns_report():
    report = missing_columns(["Model Year", "Make", "VIN"])
    assert report["required"] == ["Model", "Electric Range", "City", "County"]
    assert "VIN" not in report["passthrough"]
    assert len(report["passthrough"]) == len(PASSTHROUGH_COLUMNS) - 1


def test_load_dashboard_data_from_file(ev_csv_file):
    _load_dashboard_data_cached.cache_clear()
    ctx = load_dashboard_data(ev_csv_file)

    assert ctx["loaded"] is True
    assert ctx["error"] is None
    assert len(ctx["records"]) == 6
    assert load_dashboard_data(ev_csv_file) is ctx


def test_load_dashboard_data_env_override(monkeypatch, ev_csv_file):
    _load_dashboard_data_cached.cache_clear()
    monkeypatch.setenv("EV_DASHBOARD_CSV", str(ev_csv_file))
    assert load_dashboard_data()["loaded"] is True


def test_missing_file_leaves_context_unloaded(tmp_path, caplog):
    ctx = load_dashboard_data(tmp_path / "nope.csv")

    assert ctx["loaded"] is False
    assert ctx["records"].empty
    assert ctx["error"] == "file not found"
    assert "not found" in caplog.text


def test_unreadable_file_is_logged_not_raised(tmp_path, caplog):
    path = tmp_path / "empty.csv"
    path.write_text("", encoding="utf-8")
    _load_dashboard_data_cached.cache_clear()

    ctx = load_dashboard_data(path)

    assert ctx["loaded"] is False
    assert ctx["records"].empty
    assert "EmptyDataError" in ctx["error"]
    assert "Failed to load EV data" in caplog.text


def test_overlong_numbers_drop_year_and_default_range():
    text = (
        "Model Year,Make,Electric Range\n"
        "2020,Tesla,99999999999999999999999\n"
        "2021,Nissan,100\n"
        "99999999999999999999999,Kia,239\n"
    )
    records, dq = clean_records(parse_csv_text(text))

    assert records["make"].tolist() == ["Tesla", "Nissan"]
    assert records["range"].tolist() == [0, 100]
    assert dq["dropped_unparseable_year"] == 1
    assert dq["range_defaulted"] == 1


def test_rows_with_extra_cells_keep_leading_fields():
    text = (
        "Model Year,Make,Electric Range\n"
        "2020,Tesla,250\n"
        "2020,Nissan,150,extra\n"
    )
    raw = parse_csv_text(text)

    assert list(raw.columns) == ["Model Year", "Make", "Electric Range"]
    records = normalize_records(raw)
    assert records["make"].tolist() == ["Tesla", "Nissan"]
    assert records["range"].tolist() == [250, 150]


def test_extra_cells_on_first_row_do_not_shift_columns():
    text = "Model Year,Make,Electric Range\n2020,Tesla,250,extra,more\n2021,Kia,239\n"
    records = normalize_records(parse_csv_text(text))

    assert records["model_year"].tolist() == [2020, 2021]
    assert records["make"].tolist() == ["Tesla", "Kia"]
    assert records["range"].tolist() == [250, 239]


def test_overlong_values_in_file_still_load(tmp_path):
    path = tmp_path / "wide.csv"
    path.write_text(
        "Model Year,Make,Electric Range\n99999999999999999999999,Tesla,1\n2021,Kia,99999999999999999999999\n",
        encoding="utf-8",
    )
    _load_dashboard_data_cached.cache_clear()

    ctx = load_dashboard_data(path)

    assert ctx["loaded"] is True
    assert ctx["records"]["make"].tolist() == ["Kia"]
    assert ctx["records"]["range"].tolist() == [0]


def test_normalization_failure_is_logged_as_load_failure(tmp_path, monkeypatch, caplog):
    path = tmp_path / "ev.csv"
    path.write_text("Model Year,Make\n2020,Tesla\n", encoding="utf-8")
    _load_dashboard_data_cached.cache_clear()

    def boom(raw, source=None):
        raise ValueError("bad frame")

    monkeypatch.setattr("ev_dashboard.data.build_data_context", boom)
    ctx = load_dashboard_data(path)
    _load_dashboard_data_cached.cache_clear()

    assert ctx["loaded"] is False
    assert ctx["error"] == "ValueError: bad frame"
    assert "Failed to load EV data" in caplog.text
