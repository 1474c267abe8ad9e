"""
Core package for desub: the generic value model, wire codec, type shapes and errors.

## Contracts
- Value — closed union of composite, variant, sequence and primitive values.
- Codec — SCALE byte cursor and writer (fixed-width, compact, strings, vectors, options).
- Shapes — minimal type descriptors; shape-driven decode, encode and conformance.
- Errors — framing, unsupported generation, truncation, malformed field, conformance.
- Versioning/Constants — metadata generations, magic prefix, decoding limits.
- Hashing — canonical JSON, JSON parsing and fingerprints.

## Notes
- Zero-IO policy: stdlib only; no file/network IO.
- Values are immutable and own all their descendants; safe to share across threads.

## Examples
```python
from desub.core.value import Variant, UnnamedComposite, u32, render

render(Variant("Some", UnnamedComposite([u32(7)])))  # 'Some(7)'
```
"""

from .errors import (
    ConformanceError,
    DecodeError,
    DesubError,
    FramingError,
    MalformedField,
    SchemaError,
    TruncatedInput,
    UnsupportedVersion,
)
from .value import (
    NamedComposite,
    Primitive,
    PrimitiveKind,
    Sequence,
    UnnamedComposite,
    Value,
    ValueKind,
    Variant,
    classify,
    render,
)

__all__ = [
    "ConformanceError",
    "DecodeError",
    "DesubError",
    "FramingError",
    "MalformedField",
    "SchemaError",
    "TruncatedInput",
    "UnsupportedVersion",
    "NamedComposite",
    "Primitive",
    "PrimitiveKind",
    "Sequence",
    "UnnamedComposite",
    "Value",
    "ValueKind",
    "Variant",
    "classify",
    "render",
]
