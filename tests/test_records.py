import pytest

from solar_logger.constants import POWER_STATION_CONFIGS, StationConfig, StationId, get_station_config
from solar_logger.models.record import DailyPowerRecord
from solar_logger.services.records import (
    compute_record,
    find_invalid_stations,
    find_record,
    normalize_station_inputs,
    reconcile,
    remove_record,
    search_records,
    sort_records,
    station_inputs_for,
    UnknownStation,
)

RIVER2_ONLY = [StationConfig(StationId.RIVER2, "River2", 256)]


def _record(date, total):
    return DailyPowerRecord(date=date, total_wh_generated=total)


def test_end_to_end_single_station():
    record = compute_record("2024-07-21", {StationId.RIVER2: "50"}, RIVER2_ONLY)
    assert record.to_dict() == {
        "date": "2024-07-21",
        "stationData": {"River2": {"input": "50", "recoveredPercentage": 50.0, "recoveredWh": 128.0}},
        "totalWhGenerated": 128.0,
    }


def test_every_configured_station_gets_an_entry():
    record = compute_record("2024-07-21", {"River2": "50"})
    assert list(record.station_data) == [c.id for c in POWER_STATION_CONFIGS]
    assert record.station_data[StationId.DELTA3].input == ""
    assert record.station_data[StationId.DELTA3].recovered_wh == 0


def test_total_is_sum_of_station_wh(stations_inputs):
    record = compute_record("2024-07-21", stations_inputs)
    expected = sum(d.recovered_wh for d in record.station_data.values())
    assert record.total_wh_generated == pytest.approx(expected, abs=1e-9)
    # 128 + 0.48*230 + 768 + 134
    assert record.total_wh_generated == pytest.approx(1140.4)


def test_percentage_is_capped_at_100():
    record = compute_record("2024-07-21", {"River2": "150"}, RIVER2_ONLY)
    data = record.station_data[StationId.RIVER2]
    assert data.recovered_percentage == 100
    assert data.recovered_wh == 256
    assert data.input == "150"


def test_invalid_station_degrades_to_zero(caplog):
    record = compute_record("2024-07-21", {"River2": "50", "River3": "abc"})
    bad = record.station_data[StationId.RIVER3]
    assert (bad.input, bad.recovered_percentage, bad.recovered_wh) == ("abc", 0, 0)
    assert record.total_wh_generated == 128
    assert "Invalid input for River3" in caplog.text


def test_compute_record_is_deterministic(stations_inputs):
    first = compute_record("2024-07-21", stations_inputs)
    second = compute_record("2024-07-21", dict(stations_inputs))
    assert first == second
    assert first.to_dict() == second.to_dict()


def test_find_invalid_stations_ignores_blank_inputs():
    invalid = find_invalid_stations({"River2": "", "River3": "60-12-5", "EB3A": "-3"})
    assert [c.id for c in invalid] == [StationId.RIVER3, StationId.EB3A]


def test_station_config_lookup():
    assert get_station_config("Delta3").capacity_wh == 1024
    assert get_station_config(StationId.EB3A).name == "EB3A"
    with pytest.raises(ValueError):
        get_station_config("River9")


def test_reconcile_upserts_by_date():
    existing = [_record("2024-01-01", 1)]
    merged = reconcile(existing, [_record("2024-01-01", 5), _record("2024-01-02", 7)])
    assert [(r.date, r.total_wh_generated) for r in merged] == [("2024-01-02", 7), ("2024-01-01", 5)]


def test_reconcile_keeps_untouched_records_and_last_incoming_wins():
    existing = [_record("2024-01-01", 1), _record("2024-01-03", 3)]
    merged = reconcile(existing, [_record("2024-01-02", 2), _record("2024-01-02", 9)])
    assert [r.date for r in merged] == ["2024-01-03", "2024-01-02", "2024-01-01"]
    assert find_record(merged, "2024-01-02").total_wh_generated == 9


def test_sort_records_ascending():
    records = [_record("2024-02-01", 1), _record("2023-12-31", 1), _record("2024-01-15", 1)]
    assert [r.date for r in sort_records(records, descending=False)] == ["2023-12-31", "2024-01-15", "2024-02-01"]


def test_remove_record():
    records = [_record("2024-01-01", 1), _record("2024-01-02", 2)]
    kept, removed = remove_record(records, "2024-01-01")
    assert removed and [r.date for r in kept] == ["2024-01-02"]
    kept, removed = remove_record(kept, "2030-01-01")
    assert not removed and len(kept) == 1


def test_station_inputs_for_prefills_form(stations_inputs):
    record = compute_record("2024-07-21", stations_inputs)
    assert station_inputs_for(record) == stations_inputs
    assert station_inputs_for(None) == {"River2": "", "River3": "", "Delta3": "", "EB3A": ""}


def test_search_records():
    records = [
        compute_record("2024-07-21", {"River2": "50"}),
        compute_record("2024-08-01", {"River3": "60-12"}),
    ]
    assert [r.date for r in search_records(records, "2024-07")] == ["2024-07-21"]
    assert [r.date for r in search_records(records, "60-")] == ["2024-08-01"]
    assert [r.date for r in search_records(records, "128")] == ["2024-07-21"]
    assert [r.date for r in search_records(records, "")] == ["2024-08-01", "2024-07-21"]


def test_normalize_station_inputs_matches_ids_case_insensitively():
    inputs = normalize_station_inputs({"river2": "50", "EB3A": "1", StationId.DELTA3: "75"})
    assert inputs == {StationId.RIVER2: "50", StationId.EB3A: "1", StationId.DELTA3: "75"}
    assert compute_record("2024-07-21", inputs).total_wh_generated == pytest.approx(128 + 2.68 + 768)


def test_normalize_station_inputs_rejects_unknown_ids():
    with pytest.raises(UnknownStation, match="River9"):
        normalize_station_inputs({"River2": "50", "River9": "5"})
