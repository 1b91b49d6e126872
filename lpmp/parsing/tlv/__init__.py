"""
TLV (type-length-value) codec for business message parameter lists.

This sub-package walks parameter fields whose length is either fixed or
carried in 1-3 explicit length bytes after the field header, and encodes
``(type_code, value)`` pairs back into that layout.
"""
from lpmp.parsing.tlv.decode import (
    FIELD_HEADER_LEN,
    FIXED_VALUE_LEN,
    LENGTH_FLAG_BYTES,
    ParameterField,
    encode_parameter_fields,
    iter_parameter_fields,
    pack_field_header,
    read_value_length,
    split_field_header,
)

__all__ = [
    "FIELD_HEADER_LEN",
    "FIXED_VALUE_LEN",
    "LENGTH_FLAG_BYTES",
    "ParameterField",
    "encode_parameter_fields",
    "iter_parameter_fields",
    "pack_field_header",
    "read_value_length",
    "split_field_header",
]
