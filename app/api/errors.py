from fastapi import HTTPException

from core.errors import ConfigurationError, PipelineError, ProviderError


def error_response(status_code: int, code: str, message: str, trace_id: str) -> HTTPException:
    return HTTPException(
        status_code=status_code,
        detail={
            "error": {
                "code": code,
                "message": message,
                "trace_id": trace_id
            }
        }
    )


def pipeline_error_response(e: PipelineError, trace_id: str) -> HTTPException:
    if isinstance(e, ConfigurationError):
        return error_response(503, e.code, e.message, trace_id)
    if isinstance(e, ProviderError):
        return error_response(502, e.code, e.message, trace_id)
    return error_response(500, e.code, e.message, trace_id)


def not_found(what: str, trace_id: str) -> HTTPException:
    return error_response(404, "NOT_FOUND", f"{what} not found", trace_id)
