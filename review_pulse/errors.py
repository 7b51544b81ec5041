"""Error taxonomy for the review session."""


class ReviewPulseError(Exception):
    """Base class for all review session errors."""


class InitializationError(ReviewPulseError):
    """Session setup failed. Terminal for the session: the user must reload."""


class DataUnavailable(InitializationError):
    """The review dataset could not be fetched or parsed."""


class EmptyCorpus(InitializationError):
    """The review dataset contained no usable review text."""


class ModelLoadError(InitializationError):
    """The sentiment model could not be initialized."""


class AnalysisError(ReviewPulseError):
    """A single analysis failed. The session stays usable."""


class ModelNotReady(AnalysisError):
    """Classification was requested before the model finished loading."""


class InferenceFailure(AnalysisError):
    """The sentiment backend raised or returned something unusable."""


class InvalidTransition(ReviewPulseError):
    """A session state change that the state machine does not allow."""

    def __init__(self, current: str, target: str):
        super().__init__(f"Invalid session transition: {current} -> {target}")
        self.current = current
        self.target = target
