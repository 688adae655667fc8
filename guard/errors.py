class CaptureError(RuntimeError):
    """Camera could not be opened or stopped delivering frames."""


class DetectionTimeout(TimeoutError):
    pass


class AudioPlaybackError(RuntimeError):
    pass


class DetectorInitError(RuntimeError):
    """Detector model could not be loaded."""
