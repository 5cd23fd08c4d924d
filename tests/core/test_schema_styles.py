import pytest
from pydantic import ValidationError

from plotgram.core.grammar import Channel, Interpolation, ScaleKind, ShapeKind
from plotgram.core.schema import FieldEncoding, MarkStyle, merge_styles


def test_field_encoding_normalizes_channel_and_scale() -> None:
    enc = FieldEncoding(channel="position_x", field="v", scale="categorical")
    assert enc.channel is Channel.X
    assert enc.scale is ScaleKind.DISCRETE


def test_field_encoding_rejects_bad_bins_and_extra_keys() -> None:
    with pytest.raises(ValidationError):
        FieldEncoding(channel="x", field="v", bins=0)
    with pytest.raises(ValidationError):
        FieldEncoding(channel="x", field="v", stack=True)  # type: ignore[call-arg]


def test_field_encoding_is_frozen() -> None:
    enc = FieldEncoding(channel="x", field="v")
    with pytest.raises(ValidationError):
        enc.field = "w"  # type: ignore[misc]


def test_mark_style_clamps_ratios() -> None:
    s = MarkStyle(opacity=1.5, inner_radius_ratio=-0.2)
    assert s.opacity == 1.0
    assert s.inner_radius_ratio == 0.0


def test_mark_style_normalizes_vocabulary() -> None:
    s = MarkStyle(shape="plus", interpolation="step-after", text_anchor="END")
    assert s.shape is ShapeKind.CROSS
    assert s.interpolation is Interpolation.STEP_AFTER
    assert s.text_anchor == "end"


def test_mark_style_rejects_unknown_keys_and_values() -> None:
    with pytest.raises(ValidationError):
        MarkStyle(glow=True)  # type: ignore[call-arg]
    with pytest.raises(ValidationError):
        MarkStyle(text_anchor="left")
    with pytest.raises(ValidationError):
        MarkStyle(stroke_width=-1.0)


def test_merge_styles_precedence() -> None:
    theme = MarkStyle(color="gray", opacity=0.5, stroke="black")
    chart_level = MarkStyle(color="teal")
    mark_level = MarkStyle(opacity=0.9)

    merged = merge_styles(theme, chart_level, None, mark_level)

    assert merged.color == "teal"
    assert merged.opacity == 0.9
    assert merged.stroke == "black"


def test_mark_style_get_default() -> None:
    assert MarkStyle().get("cap_length", 6.0) == 6.0
    assert MarkStyle(cap_length=2.0).get("cap_length", 6.0) == 2.0
