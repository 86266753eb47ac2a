"""Failure taxonomy for the auto-stamper pipeline.

Frame-level failures (inference, geocoding) are absorbed inside a video;
video-level failures (acquisition, extraction, no locations) are absorbed
inside a batch. Only PreconditionFailure stops a run.
"""


class StamperError(Exception):
    """Base class for all pipeline failures."""


class PreconditionFailure(StamperError):
    """Required credentials or settings are missing at startup."""


class AcquisitionFailure(StamperError):
    """Metadata fetch or download failed for a source URL."""


class ExtractionFailure(StamperError):
    """No frames could be sampled from the downloaded asset."""


class InferenceFailure(StamperError):
    """The vision provider call failed (transient, retried)."""


class MalformedInferenceResponse(InferenceFailure):
    """The vision provider answered with something that is not the expected JSON."""


class GeocodeMiss(StamperError):
    """A location query produced no geocoding match."""

    def __init__(self, query: str):
        super().__init__(f"No geocoding match for {query!r}")
        self.query = query


class NoLocationsFound(StamperError):
    """Every frame of a video was skipped or dropped."""
