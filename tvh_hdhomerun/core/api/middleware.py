"""
API Middleware - access control, request logging and JSON error responses.
"""

import time
import traceback
from typing import Any, Callable, Optional

from aiohttp import web

from tvh_hdhomerun.core.logging_utils import get_module_logger


logger = get_module_logger("APIMiddleware")

_debug_mode: bool = False

_LOCALHOST_IPS = frozenset({"127.0.0.1", "::1", "::ffff:127.0.0.1"})


def set_debug_mode(enabled: bool) -> None:
    """Enable or disable tracebacks in error responses."""
    global _debug_mode
    _debug_mode = enabled


@web.middleware
async def localhost_only_middleware(request: web.Request, handler: Callable) -> web.Response:
    """Reject requests from any peer other than the local host."""
    peername = request.transport.get_extra_info("peername") if request.transport else None
    if peername:
        remote_ip = peername[0]
        if remote_ip not in _LOCALHOST_IPS:
            logger.warning("Rejected request from non-localhost IP: %s", remote_ip)
            return create_error_response(
                "ACCESS_DENIED", "API access is restricted to localhost only", status=403
            )

    return await handler(request)


@web.middleware
async def request_logging_middleware(request: web.Request, handler: Callable) -> web.Response:
    start_time = time.perf_counter()
    response = await handler(request)
    logger.debug(
        "%s %s -> %d (%.1f ms)",
        request.method, request.path, response.status,
        (time.perf_counter() - start_time) * 1000.0,
    )
    return response


@web.middleware
async def error_handling_middleware(request: web.Request, handler: Callable) -> web.Response:
    """
    Catch errors and format them as JSON responses:

    {
        "error": {"code": "ERROR_CODE", "message": "...", "details": {...}},
        "status": 500
    }
    """
    try:
        return await handler(request)
    except web.HTTPException as e:
        code = e.reason.upper().replace(" ", "_") if e.reason else "HTTP_ERROR"
        return create_error_response(code, e.text or str(e), status=e.status)
    except ValueError as e:
        logger.warning("Validation error: %s", e)
        return create_error_response("VALIDATION_ERROR", str(e), status=400)
    except Exception as e:
        tb = traceback.format_exc()
        logger.error("Unexpected error: %s\n%s", e, tb)

        details: dict[str, Any] = {"type": type(e).__name__, "message": str(e)}
        if _debug_mode:
            details["traceback"] = tb.split("\n")
            details["request"] = {"method": request.method, "path": request.path}
        return create_error_response(
            "INTERNAL_ERROR", "An unexpected error occurred", status=500, details=details
        )


def create_error_response(
    code: str, message: str, status: int = 400, details: Optional[dict] = None
) -> web.Response:
    """Create standardized error response."""
    error: dict[str, Any] = {"error": {"code": code, "message": message}, "status": status}
    if details:
        error["error"]["details"] = details
    return web.json_response(error, status=status)


async def parse_json_body(request: web.Request, required: bool = True):
    """Parse a JSON object body. Returns (body, error_response)."""
    try:
        body = await request.json()
    except ValueError:
        if required:
            return None, create_error_response("INVALID_BODY", "Request body must be valid JSON")
        return {}, None
    if not isinstance(body, dict):
        return None, create_error_response("INVALID_BODY", "Request body must be a JSON object")
    if required and not body:
        return None, create_error_response("EMPTY_BODY", "Request body must contain data")
    return body, None


def result_to_response(result, not_found_code: str = "NOT_FOUND", not_found_msg: str = "Resource not found"):
    """Convert a controller result to a response (None -> 404, error dict -> 400)."""
    if result is None:
        return create_error_response(not_found_code, not_found_msg, status=404)
    if isinstance(result, dict) and result.get("error"):
        return create_error_response(result.get("error_code", "ERROR"), result["error"], status=400)
    return web.json_response(result)
