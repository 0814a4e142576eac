"""Pipeline error taxonomy"""


class PipelineError(Exception):
    """Base error carrying a machine-readable code"""
    default_code = "PIPELINE_ERROR"

    def __init__(self, message: str, code: str = None):
        self.message = message
        self.code = code or self.default_code
        super().__init__(message)


class ConfigurationError(PipelineError):
    """Required credential or key is missing"""
    default_code = "CONFIG_MISSING"


class ProviderError(PipelineError):
    """External provider call failed (transport, auth, rate limit)"""
    default_code = "PROVIDER_UNAVAILABLE"


class MalformedPayloadError(PipelineError):
    """Provider payload is missing fields the transform needs"""
    default_code = "MALFORMED_PAYLOAD"


class StorageError(PipelineError):
    """A transactional write failed and was rolled back"""
    default_code = "STORAGE_FAILURE"


class EtlError(PipelineError):
    """ETL run failed; nothing from the run was committed"""
    default_code = "ETL_FAILED"
