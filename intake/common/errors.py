"""Domain errors and failure typing."""


class PipelineError(Exception):
    """Base class for intake failures."""

    error_code = "PIPELINE_ERROR"


class ConfigError(PipelineError):
    """Raised for invalid or missing configuration."""

    error_code = "CONFIG_ERROR"


class ContractError(PipelineError):
    """Raised when an inbound payload or store contract is broken."""

    error_code = "CONTRACT_ERROR"


class WebhookPayloadError(ContractError):
    """Raised when a webhook body lacks a submission or form identifier."""

    error_code = "WEBHOOK_PAYLOAD_ERROR"


class StageError(PipelineError):
    """Raised for stage failures that are counted and skipped in batch mode."""

    error_code = "STAGE_ERROR"


class UpstreamError(StageError):
    """Raised when the forms provider or a file host fails or answers non-2xx."""

    error_code = "UPSTREAM_ERROR"

    def __init__(self, message: str, *, status: int | None = None, body: str | None = None) -> None:
        super().__init__(message)
        self.status = status
        self.body = body


class StorageError(StageError):
    """Raised when a blob upload or a metadata/entity write fails."""

    error_code = "STORAGE_ERROR"


class VersionConflictError(StorageError):
    """Raised when an update carries a stale record version."""

    error_code = "VERSION_CONFLICT"


class ValidationSkip(PipelineError):
    """Raised when an extracted record lacks the fields required to persist it."""

    error_code = "VALIDATION_SKIP"


class NoMatchError(PipelineError):
    """A webhook submission that resolved to no known entity. Reported as an outcome code."""

    error_code = "NO_ENTITY_MATCH"
