class DriverError(Exception):
    """Base class for every error raised by the driver."""


class ConfigurationError(DriverError):
    """Driver options are missing a required field or carry a bad value."""


class StateError(DriverError):
    """Persisted cluster state could not be written or read back."""


class CredentialsError(DriverError):
    """No usable Google credentials for the requested source."""


class ProviderError(DriverError):
    """A GKE API call failed.

    The original ``GoogleAPICallError`` is kept on ``__cause__``.
    """


class WaitError(DriverError):
    """A resource did not reach RUNNING."""


class WaitTimeoutError(WaitError):
    """The wait deadline passed before the resource was RUNNING."""


class WaitCancelledError(WaitError):
    """The caller cancelled the wait."""
