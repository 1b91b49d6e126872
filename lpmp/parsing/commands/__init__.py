from lpmp.parsing.commands.builder import (
    CONTROL_LENGTH_FLAGS,
    CTRL_TYPE_GENERAL_PARAMS,
    MAX_BATCH_PARAMS,
    QUERY_ALL_COUNT,
    REQUEST_QUERY,
    REQUEST_SET,
    ControlContent,
    build_ctrl_byte,
    build_general_param_frame,
    build_query_frame,
    build_set_frame,
)

__all__ = [
    "CONTROL_LENGTH_FLAGS",
    "CTRL_TYPE_GENERAL_PARAMS",
    "MAX_BATCH_PARAMS",
    "QUERY_ALL_COUNT",
    "REQUEST_QUERY",
    "REQUEST_SET",
    "ControlContent",
    "build_ctrl_byte",
    "build_general_param_frame",
    "build_query_frame",
    "build_set_frame",
]
