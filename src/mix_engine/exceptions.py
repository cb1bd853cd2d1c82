"""Custom exceptions for the mix engine."""


class MixEngineError(Exception):
    """Base class for mix engine failures."""

    pass


class MixConfigurationError(MixEngineError):
    """Raised when a required source is unlinked or the option is unsupported."""

    pass


class MixBuildError(MixEngineError):
    """Raised when no source can supply a single playable track."""

    pass


class ValidationError(ValueError):
    """Raised when rule settings or overrides are out of range."""

    pass


class StoreError(MixEngineError):
    """Raised when persisted state cannot be read or written."""

    pass
