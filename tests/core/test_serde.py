import json
import math

from plotgram.core.serde import json_dumps_pretty, json_safe


def test_json_dumps_pretty_sorted_and_keeps_unicode() -> None:
    obj1 = {"b": 2, "a": 1, "nested": {"y": 2, "x": 1}, "label": "µm"}
    obj2 = {"nested": {"x": 1, "y": 2}, "a": 1, "label": "µm", "b": 2}
    s1 = json_dumps_pretty(obj1)
    assert s1 == json_dumps_pretty(obj2)
    assert "µm" in s1
    assert s1.index('"a"') < s1.index('"b"')


def test_non_finite_floats_become_null() -> None:
    out = json_safe({"a": [1.0, math.nan, math.inf], "b": (1, 2)})
    assert out == {"a": [1.0, None, None], "b": [1, 2]}
    assert json.loads(json_dumps_pretty({"v": -math.inf})) == {"v": None}
