"""Error taxonomy for the detection engine.

Only session-level errors (capture failures and analysis setup failures)
leave the engine. ``FrameMalformed`` is raised by the analyzer and absorbed
by the engine loop, which skips the offending frame.
"""


class EngineError(Exception):
    """Base class for all engine errors."""

    retryable = False


class CaptureError(EngineError):
    """The audio capture resource could not be acquired."""


class CaptureUnavailable(CaptureError):
    """No usable input device was found."""

    retryable = True


class CapturePermissionDenied(CaptureError):
    """Access to the input device was refused.

    The consumer has to obtain permission through its own channel before
    retrying.
    """

    retryable = True


class CaptureUnsupported(CaptureError):
    """The host cannot provide audio capture at all."""


class AnalysisInitFailed(EngineError):
    """The spectral transform could not be constructed."""


class FrameMalformed(EngineError):
    """A frame had the wrong shape or non-finite samples."""

    retryable = True
