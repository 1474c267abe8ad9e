"""
desub.metadata — versioned runtime metadata model.

## Responsibilities
- DecodeDifferent cells: one record definition for static producers and decoding tooling.
- Generation-8 records (modules, storage, calls, events, constants, errors).
- The magic-prefixed, generation-tagged envelope and its gating rules.
- JSON view and fingerprint of decoded metadata.

## Examples
```python
from desub.metadata import decode_metadata

meta = decode_metadata(blob)  # doctest: +SKIP
[m.module_name for m in meta.v8.module_list()]  # doctest: +SKIP
```
"""

from __future__ import annotations

from .decode_different import DecodeDifferent, DefaultByteGetter, FnEncode
from .envelope import (
    RuntimeMetadata,
    RuntimeMetadataDeprecated,
    RuntimeMetadataPrefixed,
    decode_metadata,
    encode_metadata,
)
from .serde import metadata_fingerprint, metadata_to_json, metadata_to_json_obj
from .v8 import (
    ErrorMetadata,
    EventMetadata,
    FunctionArgumentMetadata,
    FunctionMetadata,
    ModuleConstantMetadata,
    ModuleMetadata,
    OuterEventMetadata,
    RuntimeMetadataV8,
    StorageDoubleMap,
    StorageEntryMetadata,
    StorageEntryModifier,
    StorageHasher,
    StorageMap,
    StorageMetadata,
    StoragePlain,
)

__all__ = [
    "DecodeDifferent",
    "DefaultByteGetter",
    "FnEncode",
    "RuntimeMetadata",
    "RuntimeMetadataDeprecated",
    "RuntimeMetadataPrefixed",
    "decode_metadata",
    "encode_metadata",
    "metadata_fingerprint",
    "metadata_to_json",
    "metadata_to_json_obj",
    "ErrorMetadata",
    "EventMetadata",
    "FunctionArgumentMetadata",
    "FunctionMetadata",
    "ModuleConstantMetadata",
    "ModuleMetadata",
    "OuterEventMetadata",
    "RuntimeMetadataV8",
    "StorageDoubleMap",
    "StorageEntryMetadata",
    "StorageEntryModifier",
    "StorageHasher",
    "StorageMap",
    "StorageMetadata",
    "StoragePlain",
]
