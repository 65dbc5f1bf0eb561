"""Core domain types and logic."""

from .config import ConfigError, Options, load_options, validate_options
from .debug_id import debug_id_for
from .edit_buffer import EditBuffer, EditError, SourceMap
from .errors import ErrorCode
from .result import Err, Ok, Result

__all__ = [
    # config
    "ConfigError",
    "Options",
    "load_options",
    "validate_options",
    # debug ids
    "debug_id_for",
    # edits
    "EditBuffer",
    "EditError",
    "SourceMap",
    # errors
    "ErrorCode",
    # result
    "Err",
    "Ok",
    "Result",
]
