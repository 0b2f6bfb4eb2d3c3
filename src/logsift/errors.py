"""Exception hierarchy for logsift.

Only ConfigurationError subclasses abort a run. Discovery and read errors
are reported inline and processing continues with the next source.
"""


class LogsiftError(Exception):
    """Base class for all logsift errors."""


class ConfigurationError(LogsiftError):
    """Invalid combination of inputs, reported to the user before any work."""


class AmbiguousModelError(ConfigurationError):
    def __init__(self, model_path: str):
        super().__init__(f'Ambiguous baselines and model provided: {model_path} already exists')
        self.model_path = model_path


class ContentNotFoundError(ConfigurationError):
    def __init__(self, path: str):
        super().__init__(f'Unknown path: {path}')
        self.path = path


class ModelRequiredError(ConfigurationError):
    def __init__(self):
        super().__init__('--model is required')


class ModelExistsError(ConfigurationError):
    def __init__(self, model_path: str):
        super().__init__(f'Refusing to overwrite existing model: {model_path}')
        self.model_path = model_path


class ModelLoadError(ConfigurationError):
    def __init__(self, model_path: str, reason: str):
        super().__init__(f'Could not load model {model_path}: {reason}')
        self.model_path = model_path
        self.reason = reason


class DiscoveryError(LogsiftError):
    """A filesystem entry could not be listed or inspected during a walk."""

    def __init__(self, path: str, reason: str):
        super().__init__(f'{path}: {reason}')
        self.path = path
        self.reason = reason


class SourceReadError(LogsiftError):
    """A source could not be opened or failed mid-stream."""

    def __init__(self, source: str, reason: str):
        super().__init__(reason)
        self.source = source
        self.reason = reason
