class StepError(Exception):
    """Base step exception."""

    pass


class ConfigurationError(StepError):
    """Job specification is missing a required field or holds an invalid value."""

    pass


class ProvisioningError(StepError):
    """Project download, extraction, checkout or module installation failed."""

    pass


class ArtifactError(StepError):
    """A run artifact could not be written to the workspace."""

    pass


class OutputError(StepError):
    """The step output could not be published."""

    pass
