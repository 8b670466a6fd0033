"""Exception hierarchy for codedoc-callflow"""


class CallFlowError(Exception):
    """Base class for all codedoc-callflow errors."""
    pass


class ConfigError(CallFlowError):
    """Raised when a configuration value is invalid."""
    pass
