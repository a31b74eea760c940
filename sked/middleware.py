import uuid

import structlog

log = structlog.get_logger()


class RequestLogMiddleware:
    """Bind a request_id to structlog's context for the life of each request."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        request_id = uuid.uuid4().hex
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.path,
        )
        log.info("request_started")

        response = self.get_response(request)

        log.info("request_completed", status_code=response.status_code)
        response["X-Request-ID"] = request_id
        return response
