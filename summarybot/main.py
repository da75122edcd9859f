
import logging
from typing import Optional

from fastapi import Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from langchain_core.language_models.chat_models import BaseChatModel
from redis.asyncio import Redis
from redis.exceptions import RedisError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .di import history_service, make_lifespan, orchestrator, rate_limiter
from .errors import ProviderError, StoreError, ValidationError
from .models import ChatRequest, ChatResponse, ErrorResponse, MessagesPage
from .orchestrator import ChatOrchestrator, HistoryService
from .rate_limiter import RATE_LIMIT_MESSAGE
from .settings import Settings, get_settings
from .utils import client_address, parse_int_param

logger = logging.getLogger("summarybot")


def _error(status: int, error: str, details: Optional[str] = None) -> JSONResponse:
    body = ErrorResponse(error=error, details=details)
    return JSONResponse(status_code=status, content=body.model_dump(exclude_none=True))


def create_app(
    settings: Optional[Settings] = None,
    redis: Optional[Redis] = None,
    llm: Optional[BaseChatModel] = None,
) -> FastAPI:
    settings = settings or get_settings()
    app = FastAPI(
        title="summarybot",
        lifespan=make_lifespan(settings, redis=redis, llm=llm),
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def enforce_rate_limit(request: Request, call_next):
        if request.method == "OPTIONS":
            return await call_next(request)
        addr = client_address(request)
        try:
            allowed = await rate_limiter(request).allow(addr)
        except RedisError as exc:
            logger.warning("Rate limiter unavailable, letting request through: %s", exc)
            allowed = True
        if not allowed:
            logger.warning("Rate limit exceeded for %s", addr)
            return _error(429, RATE_LIMIT_MESSAGE)
        return await call_next(request)

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        if exc.status_code in (404, 405):
            return _error(404, "Route not found")
        return _error(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def request_validation_error(request: Request, exc: RequestValidationError):
        return _error(400, "Invalid request body", details=str(exc.errors()))

    @app.exception_handler(ValidationError)
    async def validation_error(request: Request, exc: ValidationError):
        return _error(400, str(exc))

    @app.post(
        "/api/chat",
        status_code=201,
        response_model=ChatResponse,
        responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    )
    async def chat_endpoint(
        req: ChatRequest,
        nocache: Optional[str] = Query(None),
        orch: ChatOrchestrator = Depends(orchestrator),
    ):
        try:
            return await orch.handle(
                req.user_message,
                want_email=req.wants_email,
                skip_cache=nocache == "true",
            )
        except (ProviderError, StoreError) as exc:
            logger.exception("Error generating AI response: %s", exc)
            return _error(500, str(exc))

    @app.get(
        "/api/messages1",
        response_model=MessagesPage,
        responses={500: {"model": ErrorResponse}},
    )
    async def messages_endpoint(
        page: Optional[str] = Query(None),
        limit: Optional[str] = Query(None),
        history: HistoryService = Depends(history_service),
    ):
        try:
            return await history.page(
                parse_int_param(page, default=1),
                parse_int_param(limit, default=10),
            )
        except StoreError as exc:
            logger.exception("Error fetching messages: %s", exc)
            return _error(500, "Failed to fetch chat messages", details=str(exc))

    @app.get("/health")
    def health():
        return {"status": "ok"}

    return app


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="[%(asctime)s] %(levelname)s - %(message)s",
    )


def run() -> None:
    import uvicorn

    settings = get_settings()
    configure_logging(settings)
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


"""
curl -X POST "http://localhost:5000/api/chat?nocache=true" \
  -H "Content-Type: application/json" \
  -d '{"userMessage": "Plan my day", "type": "email"}'

curl "http://localhost:5000/api/messages1?page=1&limit=10"
"""


if __name__ == "__main__":
    run()
