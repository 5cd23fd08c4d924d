"""
Core package for plotgram contracts (grammar, schemas, errors, serde, versioning).

## Contracts (single source of truth)
- Grammar: enums for channels, marks, scales, kernels and style vocabulary, with
  normalization helpers.
- Schemas: pydantic models for field encodings and mark styles.
- Errors: the typed exception hierarchy raised across the pipeline.
- Serde/Versioning: JSON output policy and the emitted document version.

## Notes
- Zero-IO policy: stdlib + pydantic only; no file/network IO.
- Naming policy: enum `.value` is lower_snake; table field names are never rewritten.

## Downstream usage
- plotgram.encoding: builds `FieldEncoding` values and validates them against a table.
- plotgram.transform / plotgram.render: branch on `MarkKind` and read merged `MarkStyle`.
- plotgram.render.backends: tags JSON documents with `DOCUMENT_V`.

## Examples
```python
from plotgram.core.grammar import mark_kind_from_value, MarkKind
mark_kind_from_value("pie") == MarkKind.ARC  # True

from plotgram.core.schema import MarkStyle, merge_styles
merge_styles(MarkStyle(opacity=0.3), MarkStyle(color="teal")).model_dump(exclude_none=True)
# {'color': 'teal', 'opacity': 0.3}
```
"""
