"""Observability configuration using Logfire.

Assertions, checkpoint tokens and session cookies are bearer credentials;
they must never reach a span or log attribute.

Usage:
    import logfire

    logfire.info("Identity linked", account_id=str(account.id), provider=provider)

    with logfire.span("link_decision.evaluate", provider=provider):
        ...
"""

from typing import Any

import logfire
from fastapi import FastAPI
from sqlalchemy.ext.asyncio import AsyncEngine

from idlink.config import Settings

SERVICE_NAME = "idlink"
SERVICE_VERSION = "0.1.0"

# Route parameters holding credentials
SECRET_REQUEST_VALUES = frozenset({"assertion", "auth_token", "request", "token"})

SCRUB_PATTERNS = ["assertion", "auth_token", "checkpoint_token", "token_value"]


def _should_send(settings: Settings) -> bool:
    # Explicit setting wins, then token presence
    if settings.observability.send_to_logfire is not None:
        return settings.observability.send_to_logfire
    return bool(settings.observability.logfire_token)


def configure_logfire(settings: Settings) -> None:
    """Configure Logfire for observability.

    OBSERVABILITY__LOGFIRE_TOKEN enables sending to Logfire cloud;
    OBSERVABILITY__SEND_TO_LOGFIRE overrides that either way.

    Args:
        settings: Application settings
    """
    send_to_logfire = _should_send(settings)

    logfire.configure(
        service_name=SERVICE_NAME,
        service_version=SERVICE_VERSION,
        environment=settings.environment,
        send_to_logfire=send_to_logfire,
        token=settings.observability.logfire_token,
        scrubbing=logfire.ScrubbingOptions(extra_patterns=SCRUB_PATTERNS),
        console=logfire.ConsoleOptions(
            colors="auto",
            span_style="show-parents",
            include_timestamps=True,
            verbose=settings.debug,
        ),
    )

    logfire.info(
        "Observability configured",
        environment=settings.environment,
        send_to_logfire=send_to_logfire,
    )


def _map_request_attributes(
    request: Any, attributes: dict[str, Any]
) -> dict[str, Any]:
    values = {
        name: value
        for name, value in attributes.get("values", {}).items()
        if name not in SECRET_REQUEST_VALUES
    }
    return {**attributes, "values": values, "path": request.url.path}


def instrument_fastapi(app: FastAPI) -> None:
    """Trace requests without headers or credential parameters."""
    logfire.instrument_fastapi(
        app,
        capture_headers=False,  # Cookie header carries the session token
        request_attributes_mapper=_map_request_attributes,
    )


def instrument_sqlalchemy(engine: AsyncEngine) -> None:
    """Trace queries on the engine."""
    logfire.instrument_sqlalchemy(engine=engine.sync_engine, enable_commenter=True)
