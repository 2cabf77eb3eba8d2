import logging
import time
import uuid
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

# Use the rewardapi logger so it goes to the JSON handler
logger = logging.getLogger("rewardapi")

REQUEST_ID_HEADER = "X-Request-ID"


class LoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        start = time.time()
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:12]
        # 예외 핸들러 로그에서 같은 요청을 추적
        request.state.request_id = request_id
        method = request.method
        path = request.url.path
        client = request.client.host if request.client else "-"

        logger.info(f"[Request {request_id}] {method} {path} from {client}")
        try:
            response = await call_next(request)
        except Exception:
            logger.exception(f"[Unhandled Error {request_id}] {method} {path} from {client}")
            raise

        duration_ms = (time.time() - start) * 1000
        message = f"[Response {request_id}] {method} {path} -> {response.status_code} in {duration_ms:.1f}ms"
        if response.status_code >= 500:
            logger.error(message)
        elif response.status_code >= 400:
            logger.warning(message)
        else:
            logger.info(message)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
