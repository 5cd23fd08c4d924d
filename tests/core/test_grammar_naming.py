import pytest

from plotgram.core.grammar import (
    BandwidthRule,
    Channel,
    Interpolation,
    KernelKind,
    MarkKind,
    OutputFormat,
    ScaleKind,
    ShapeKind,
    WindowOp,
    channel_from_value,
    ensure_all_enum_values_lower_snake,
    interpolation_from_value,
    kernel_from_value,
    mark_kind_from_value,
    output_format_from_suffix,
    scale_kind_from_value,
    window_op_from_value,
)


def test_all_enum_values_are_lower_snake() -> None:
    ensure_all_enum_values_lower_snake(
        [
            Channel,
            MarkKind,
            ScaleKind,
            KernelKind,
            BandwidthRule,
            WindowOp,
            Interpolation,
            ShapeKind,
            OutputFormat,
        ]
    )


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("hist", MarkKind.HISTOGRAM),
        ("pie", MarkKind.ARC),
        ("donut", MarkKind.ARC),
        ("heatmap", MarkKind.RECT),
        ("Point", MarkKind.POINT),
        (MarkKind.RULE, MarkKind.RULE),
    ],
)
def test_mark_kind_aliases(raw: object, expected: MarkKind) -> None:
    assert mark_kind_from_value(raw) is expected  # type: ignore[arg-type]


def test_channel_accepts_camel_case_and_aliases() -> None:
    assert channel_from_value("strokeWidth") is Channel.STROKE_WIDTH
    assert channel_from_value("stroke-width") is Channel.STROKE_WIDTH
    assert channel_from_value("angle") is Channel.THETA
    assert channel_from_value("fill") is Channel.COLOR


def test_other_vocabularies() -> None:
    assert scale_kind_from_value("nominal") is ScaleKind.DISCRETE
    assert kernel_from_value("gaussian") is KernelKind.NORMAL
    assert window_op_from_value("ecdf") is WindowOp.CUME_DIST
    assert interpolation_from_value("step-after") is Interpolation.STEP_AFTER
    assert interpolation_from_value("stepAfter") is Interpolation.STEP_AFTER


@pytest.mark.parametrize("bad", ["sparkline", "", "3d"])
def test_unknown_mark_raises(bad: str) -> None:
    with pytest.raises(ValueError):
        mark_kind_from_value(bad)


def test_non_string_identifier_raises() -> None:
    with pytest.raises(ValueError, match="channel must be a string"):
        channel_from_value(3)  # type: ignore[arg-type]


@pytest.mark.parametrize(
    "suffix,fmt",
    [(".svg", OutputFormat.SVG), ("PNG", OutputFormat.PNG), (".Json", OutputFormat.JSON)],
)
def test_output_format_from_suffix(suffix: str, fmt: OutputFormat) -> None:
    assert output_format_from_suffix(suffix) is fmt


@pytest.mark.parametrize("suffix", ["", ".pdf", ".jpeg"])
def test_output_format_from_suffix_rejects(suffix: str) -> None:
    with pytest.raises(ValueError):
        output_format_from_suffix(suffix)
