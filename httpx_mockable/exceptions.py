from .models import ComparisonResult


class MockableError(Exception):
    pass


class ConfigurationError(MockableError, ValueError):
    """Raised at construction when the mode, file or policy settings are unusable."""

    pass


class UnrecognizedRequest(MockableError, RuntimeError):
    """Raised in playback when a request does not match the next recorded one."""

    def __init__(self, result: ComparisonResult):
        super().__init__(f"Unrecognized request: {result}")
        self.result = result


class MockableWarning(UserWarning):
    pass
