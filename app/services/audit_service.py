from __future__ import annotations

import logging

logger = logging.getLogger('app.audit')


def log_auth_event(
    *,
    attempted_email: str,
    success: bool,
    ip: str | None,
    flow: str,
    user_id: str | None = None,
    failure_reason: str | None = None,
) -> None:
    if success:
        logger.info('auth flow=%s email=%s user_id=%s ip=%s success', flow, attempted_email, user_id, ip)
        return
    logger.warning(
        'auth flow=%s email=%s user_id=%s ip=%s failed reason=%s',
        flow,
        attempted_email,
        user_id,
        ip,
        failure_reason,
    )


def log_audit(
    *,
    actor_user_id: str | None,
    action: str,
    ip: str | None,
    metadata: dict | None = None,
) -> None:
    logger.info('audit action=%s actor=%s ip=%s metadata=%s', action, actor_user_id, ip, metadata or {})
