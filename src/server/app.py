"""FastAPI webhook receiver for the LINE channel."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.responses import PlainTextResponse

from src.audit.logger import AuditLogger
from src.config import Settings, configure_logging
from src.line.client import LineApi, LineApiClient, build_http_client
from src.linking.controller import LinkingFlowController
from src.models import AuditEvent, AuditEventType, RiskLevel
from src.webhook.errors import InvalidSignatureError, WebhookParseError
from src.webhook.replies import ReplyDispatcher
from src.webhook.router import EventRouter
from src.webhook.signature import SIGNATURE_HEADER, SignatureVerifier

logger = logging.getLogger(__name__)


def create_app_from_env() -> FastAPI:
    """Factory for uvicorn --factory: reads config from environment variables."""
    configure_logging()
    settings = Settings.from_env()
    return create_app(settings)


def create_app(
    settings: Settings,
    api: LineApi | None = None,
    audit_logger: AuditLogger | None = None,
) -> FastAPI:
    """Create the webhook app.

    When ``api`` is not supplied, one httpx client is opened for the app's
    lifetime and shared by all requests.
    """
    http_client = None
    if api is None:
        http_client = build_http_client(settings.api_base_url, settings.api_timeout)
        api = LineApiClient(settings.channel_token, http_client)
    if audit_logger is None and settings.audit_log_path:
        audit_logger = AuditLogger(settings.audit_log_path)

    verifier = SignatureVerifier(settings.channel_secret)
    dispatcher = ReplyDispatcher(api)
    controller = LinkingFlowController(settings, api, dispatcher, audit_logger)
    router = EventRouter(settings, controller, dispatcher)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        try:
            yield
        finally:
            if http_client is not None:
                await http_client.aclose()

    app = FastAPI(docs_url=None, redoc_url=None, openapi_url=None, lifespan=lifespan)

    @app.get("/", response_class=PlainTextResponse)
    async def index() -> str:
        return "hello world"

    @app.post("/callback")
    async def callback(request: Request) -> Response:
        logger.info("/callback called")
        body = await request.body()
        signature = request.headers.get(SIGNATURE_HEADER)

        try:
            webhook = verifier.parse_request(body, signature)
        except InvalidSignatureError as exc:
            logger.warning("Cannot parse request: %s", exc)
            _log_rejection(audit_logger, request, "invalid_signature")
            return PlainTextResponse("Invalid signature", status_code=400)
        except WebhookParseError as exc:
            logger.error("Cannot parse request: %s", exc)
            return PlainTextResponse("Malformed request", status_code=500)

        logger.info("Handling %d event(s)", len(webhook.events))
        await router.dispatch(webhook)
        return PlainTextResponse("OK")

    return app


def _log_rejection(audit_logger: AuditLogger | None, request: Request, reason: str) -> None:
    if not audit_logger:
        return
    try:
        audit_logger.log(AuditEvent(
            event_type=AuditEventType.WEBHOOK_REJECTED,
            action=f"{request.method} {request.url.path}",
            result="failure",
            risk_level=RiskLevel.HIGH,
            details={
                "reason": reason,
                "source_ip": request.client.host if request.client else None,
            },
        ))
    except OSError as exc:
        logger.warning("Audit write failed for rejected webhook (%s): %s", reason, exc)
