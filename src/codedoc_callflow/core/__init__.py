"""Core records and errors for codedoc-callflow"""

from .models import (
    ParameterRecord,
    VariableRecord,
    FieldRecord,
    MethodRecord,
    TypeRecord,
    join_fqn,
)
from .exceptions import CallFlowError, ConfigError

__all__ = [
    "ParameterRecord", "VariableRecord", "FieldRecord", "MethodRecord", "TypeRecord",
    "join_fqn", "CallFlowError", "ConfigError",
]
