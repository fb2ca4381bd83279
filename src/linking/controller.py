"""Account-linking flow.

The link state itself lives on the LINE platform: this controller only
requests a link token, hands the user a login URL carrying it, reacts to the
accountLink callback, and asks the platform to undo the link. Each operation
is a standalone exchange; nothing is kept between them.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from urllib.parse import urlencode, urlsplit, urlunsplit

from src.line.client import LineApi, LineApiError
from src.line.messages import ButtonsTemplate, TemplateMessage, UriAction
from src.models import AuditEvent, AuditEventType, RiskLevel
from src.webhook.models import LinkOutcome

if TYPE_CHECKING:
    from src.audit.logger import AuditLogger
    from src.config import Settings
    from src.webhook.replies import ReplyDispatcher

logger = logging.getLogger(__name__)

LINK_PROMPT_ALT_TEXT = "Buttons template"
LINK_PROMPT_TITLE = "アカウント連携開始"
LINK_PROMPT_TEXT = "連携を開始します。リンク先でログイン\nを行なってください。"
LINK_PROMPT_LABEL = "連携開始"
LINK_OK_TEXT = "アカウント連携が完了しました。"
LINK_FAILED_TEXT = "アカウント連携が失敗しました。"
UNLINK_OK_TEXT = "連携解除が完了しました。"
UNLINK_FAILED_TEXT = "連携解除が失敗しました。"


def build_login_url(login_url: str, link_token: str) -> str:
    """Add ``linkToken=<token>`` to the query of the external login URL.

    An existing query is extended and any fragment stays at the end.
    """
    parts = urlsplit(login_url)
    token_query = urlencode({"linkToken": link_token})
    query = f"{parts.query}&{token_query}" if parts.query else token_query
    return urlunsplit(parts._replace(query=query))


def build_link_prompt(url: str) -> TemplateMessage:
    return TemplateMessage(
        alt_text=LINK_PROMPT_ALT_TEXT,
        template=ButtonsTemplate(
            title=LINK_PROMPT_TITLE,
            text=LINK_PROMPT_TEXT,
            actions=[UriAction(label=LINK_PROMPT_LABEL, uri=url)],
        ),
    )


class LinkingFlowController:
    def __init__(
        self,
        settings: Settings,
        api: LineApi,
        dispatcher: ReplyDispatcher,
        audit_logger: AuditLogger | None = None,
    ) -> None:
        self._login_url = settings.login_url
        self._api = api
        self._dispatcher = dispatcher
        self._audit = audit_logger

    async def begin_linking(self, user_id: str, reply_token: str | None) -> bool:
        """Issue a fresh link token and reply with the login prompt.

        If the token cannot be obtained nothing is sent to the user; they can
        retry by sending the trigger phrase again.
        """
        logger.info("Initiating link token process for %s", user_id)
        try:
            link_token = await self._api.issue_link_token(user_id)
        except LineApiError as exc:
            # TODO: reply with a user-visible failure message instead of staying silent.
            logger.error("Could not issue link token for %s: %s", user_id, exc)
            self._record(
                AuditEventType.LINK_TOKEN_FAILED, user_id, "issue_link_token", "failure",
                RiskLevel.MEDIUM, {"error": str(exc), "status_code": exc.status_code},
            )
            return False

        self._record(
            AuditEventType.LINK_TOKEN_ISSUED, user_id, "issue_link_token", "success",
            RiskLevel.INFO,
        )
        url = build_login_url(self._login_url, link_token)
        return await self._dispatcher.send(reply_token, [build_link_prompt(url)])

    async def handle_link_result(
        self, outcome: LinkOutcome, reply_token: str | None, user_id: str | None = None,
    ) -> bool:
        """React to an accountLink callback. Unrecognized results get no reply."""
        if outcome.result == "ok":
            self._record(
                AuditEventType.LINK_COMPLETED, user_id, "account_link", "success",
                RiskLevel.INFO, {"nonce": outcome.nonce},
            )
            return await self._dispatcher.send_text(reply_token, LINK_OK_TEXT)
        if outcome.result == "failed":
            self._record(
                AuditEventType.LINK_FAILED, user_id, "account_link", "failure",
                RiskLevel.LOW, {"nonce": outcome.nonce},
            )
            return await self._dispatcher.send_text(reply_token, LINK_FAILED_TEXT)

        logger.warning("Unrecognized account link result %r for %s", outcome.result, user_id)
        self._record(
            AuditEventType.LINK_RESULT_UNKNOWN, user_id, "account_link", "ignored",
            RiskLevel.MEDIUM, {"result": outcome.result},
        )
        return False

    async def unlink(self, user_id: str, reply_token: str | None) -> bool:
        """Revoke the link and tell the user whether it worked."""
        try:
            await self._api.revoke_link(user_id)
        except LineApiError as exc:
            logger.error("Unlink failed for %s: %s", user_id, exc)
            self._record(
                AuditEventType.UNLINK_FAILED, user_id, "revoke_link", "failure",
                RiskLevel.MEDIUM, {"error": str(exc), "status_code": exc.status_code},
            )
            return await self._dispatcher.send_text(reply_token, UNLINK_FAILED_TEXT)

        logger.info("Unlinked account for %s", user_id)
        self._record(
            AuditEventType.UNLINK_SUCCEEDED, user_id, "revoke_link", "success", RiskLevel.INFO,
        )
        return await self._dispatcher.send_text(reply_token, UNLINK_OK_TEXT)

    def _record(
        self,
        event_type: AuditEventType,
        user_id: str | None,
        action: str,
        result: str,
        risk_level: RiskLevel,
        details: dict[str, object] | None = None,
    ) -> None:
        if not self._audit:
            return
        try:
            self._audit.log(AuditEvent(
                event_type=event_type,
                user_id=user_id,
                action=action,
                result=result,
                risk_level=risk_level,
                details=details,
            ))
        except OSError as exc:
            # The user-facing reply must not depend on the audit write.
            logger.warning("Audit write failed for %s (%s): %s", event_type.value, user_id, exc)
