"""Sentry error tracking, enabled only when SENTRY_DSN is set."""

import logging

from brandpulse.core.config import settings
from brandpulse.core.exceptions import AppError

logger = logging.getLogger(__name__)

# Client errors are answered with 4xx and are not incidents
_IGNORED_ERRORS = (AppError,)


def _provider_keys() -> list[str]:
    return [key for key in (settings.openai_api_key, settings.perplexity_api_key, settings.gemini_api_key) if key]


def _redact(value, secrets: list[str]):
    if isinstance(value, str):
        for secret in secrets:
            value = value.replace(secret, "[redacted]")
        return value
    if isinstance(value, dict):
        return {k: _redact(v, secrets) for k, v in value.items()}
    if isinstance(value, list):
        return [_redact(v, secrets) for v in value]
    return value


def before_send(event: dict, hint: dict) -> dict | None:
    """Drop expected request errors and strip provider API keys from the payload."""
    exc_info = hint.get("exc_info")
    if exc_info and isinstance(exc_info[1], _IGNORED_ERRORS):
        return None
    secrets = _provider_keys()
    return _redact(event, secrets) if secrets else event


def init_sentry() -> None:
    if not settings.sentry_dsn:
        logger.debug("Sentry DSN not configured, skipping")
        return

    import sentry_sdk
    from sentry_sdk.integrations.celery import CeleryIntegration
    from sentry_sdk.integrations.fastapi import FastApiIntegration
    from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment=settings.app_env,
        traces_sample_rate=settings.sentry_traces_sample_rate,
        send_default_pii=False,
        before_send=before_send,
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            SqlalchemyIntegration(),
            CeleryIntegration(monitor_beat_tasks=True),
        ],
    )
    logger.info("Sentry initialized (env=%s, providers=%s)", settings.app_env, settings.enabled_providers)
