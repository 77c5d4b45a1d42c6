"""
Pipeline error taxonomy.

Stages raise these; the stage runner logs them and exits, the admin API maps
them to HTTP statuses. Nothing below is retried except where the AI retry
policy says so.
"""

from __future__ import annotations


class PipelineError(Exception):
    """Base class for every failure a stage or the admin API can report."""


class ConfigurationError(PipelineError):
    """A required credential or connection setting is missing.

    Raised before any network or store call is attempted.
    """


class UpstreamServiceError(PipelineError):
    """An external service (feed, AI, image search) answered with a failure."""

    def __init__(self, service: str, message: str, status_code: int | None = None) -> None:
        super().__init__(f"{service}: {message}")
        self.service = service
        self.status_code = status_code


class ResponseValidationError(PipelineError):
    """An external service answered 2xx but the body does not have the expected shape."""

    def __init__(self, service: str, message: str) -> None:
        super().__init__(f"{service}: {message}")
        self.service = service


class StoreError(PipelineError):
    """Database connection or query failure."""


class RecordNotFoundError(StoreError):
    """Update addressed a record that does not exist."""

    def __init__(self, model: str, record_id: int) -> None:
        super().__init__(f"{model} {record_id} not found")
        self.model = model
        self.record_id = record_id
