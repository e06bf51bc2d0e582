from potmonitor.services.thresholds import Threshold, find_breaches, parse_thresholds, serialize_thresholds


def test_parse_thresholds_absent_is_empty():
    assert parse_thresholds(None) == {}


def test_parse_thresholds_from_stored_json():
    parsed = parse_thresholds('{"moisture": {"min": 20, "max": 80}, "light": {"max": 900.5}}')
    assert parsed["moisture"] == Threshold(min=20.0, max=80.0)
    assert parsed["light"] == Threshold(min=None, max=900.5)


def test_parse_thresholds_accepts_decoded_mapping():
    assert parse_thresholds({"moisture": {"min": 10}}) == {"moisture": Threshold(min=10.0)}


def test_parse_thresholds_malformed_is_empty():
    assert parse_thresholds("{not json") == {}
    assert parse_thresholds("[1, 2, 3]") == {}
    assert parse_thresholds('"moisture"') == {}
    assert parse_thresholds(42) == {}


def test_parse_thresholds_drops_bad_entries_and_bounds():
    parsed = parse_thresholds(
        {
            "moisture": {"min": True, "max": "80"},
            "temperature": [5, 30],
            "light": {"min": 100, "max": None},
        }
    )
    assert parsed["moisture"].inert
    assert "temperature" not in parsed
    assert parsed["light"] == Threshold(min=100.0)


def test_find_breaches_below_min():
    assert find_breaches(15, Threshold(min=20, max=80)) == [("min", 20)]


def test_find_breaches_above_max():
    assert find_breaches(95, Threshold(min=20, max=80)) == [("max", 80)]


def test_find_breaches_bounds_are_inclusive():
    threshold = Threshold(min=20, max=80)
    assert find_breaches(20, threshold) == []
    assert find_breaches(50, threshold) == []
    assert find_breaches(80, threshold) == []


def test_find_breaches_inverted_config_fires_both():
    assert find_breaches(30, Threshold(min=50, max=10)) == [("min", 50), ("max", 10)]


def test_find_breaches_inert_threshold():
    assert find_breaches(-1000, Threshold()) == []


def test_serialize_thresholds_omits_unset_bounds():
    raw = serialize_thresholds({"moisture": Threshold(min=20.0), "light": Threshold()})
    assert raw == '{"light": {}, "moisture": {"min": 20.0}}'
    assert serialize_thresholds(None) is None


def test_parse_thresholds_oversized_integer_bound_is_unset():
    raw = '{"moisture": {"min": 1' + "0" * 400 + ', "max": 80}}'
    assert parse_thresholds(raw) == {"moisture": Threshold(max=80.0)}


def test_parse_thresholds_non_finite_bounds_are_unset():
    parsed = parse_thresholds('{"moisture": {"min": NaN, "max": Infinity}, "light": {"min": -Infinity}}')
    assert parsed["moisture"].inert
    assert parsed["light"].inert
