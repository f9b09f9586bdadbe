"""
Monitoring and Tracing Module.

This module provides optional integration with Pydantic Logfire for the
routing core:
- Request traversal completion events (status, capability, latency)
- Capability selection events (stage, scores)
- Error events

Logfire is only used when ``LOGFIRE_ENABLED`` is set and a token is
configured. Every helper degrades to a debug log line otherwise, so the
routing core never depends on the monitoring backend being reachable.
"""

import logging
from typing import Any, Optional

from switchboard_ai.core.config import Settings, settings

logger = logging.getLogger(__name__)

_LOGFIRE_READY = False


def initialize_logfire(config: Optional[Settings] = None) -> bool:
    """
    Initialize Pydantic Logfire for monitoring and tracing.

    Args:
        config: Settings to read the Logfire options from (defaults to the
                module-level ``settings``).

    Returns:
        True when Logfire was configured, False otherwise.
    """
    global _LOGFIRE_READY
    cfg = config or settings

    if not cfg.logfire_enabled:
        logger.info("Logfire monitoring is disabled. Set LOGFIRE_ENABLED=true to enable.")
        return False

    if not cfg.logfire_token:
        logger.warning(
            "Logfire is enabled but LOGFIRE_TOKEN is not set. "
            "Monitoring will not work. Set LOGFIRE_TOKEN to enable Logfire."
        )
        return False

    try:
        import logfire

        logfire.configure(
            token=cfg.logfire_token,
            service_name=cfg.logfire_service_name,
            environment=cfg.logfire_environment,
        )
        try:
            logfire.instrument_pydantic_ai()
            logger.info("Logfire: Pydantic AI instrumentation enabled")
        except Exception as e:
            logger.warning(f"Failed to instrument Pydantic AI: {e}")
    except ImportError:
        logger.warning(
            "Logfire is enabled but 'logfire' package is not installed. "
            "Install it with: pip install 'switchboard-ai[monitoring]'"
        )
        return False
    except Exception as e:
        logger.error(f"Failed to initialize Logfire: {e}", exc_info=True)
        return False

    _LOGFIRE_READY = True
    logger.info(f"Logfire monitoring initialized: service={cfg.logfire_service_name}")
    return True


def is_logfire_ready() -> bool:
    """Return whether ``initialize_logfire`` succeeded in this process."""
    return _LOGFIRE_READY


def log_request_handled(
    request_id: str,
    session_id: str,
    status: str,
    capability_id: Optional[str],
    elapsed_ms: float,
) -> None:
    """
    Log the completion of one pipeline traversal.

    Args:
        request_id: The request identifier
        session_id: The originating session
        status: Final response status
        capability_id: The capability that produced the response, if any
        elapsed_ms: Traversal duration in milliseconds
    """
    if not _LOGFIRE_READY:
        logger.debug(
            f"Request handled: request_id={request_id}, status={status}, "
            f"capability={capability_id}, elapsed_ms={elapsed_ms:.2f}"
        )
        return
    try:
        import logfire

        logfire.info(
            "Request handled",
            request_id=request_id,
            session_id=session_id,
            status=status,
            capability_id=capability_id,
            elapsed_ms=elapsed_ms,
        )
    except Exception:
        logger.debug(f"Could not log request completion to Logfire: request_id={request_id}")


def log_selection(request_id: str, capability_id: str, stage: str, scores: dict[str, Any]) -> None:
    """
    Log a capability selection decision.

    Args:
        request_id: The request identifier
        capability_id: The selected capability
        stage: ``score`` or ``arbiter``
        scores: Capability id to score mapping
    """
    if not _LOGFIRE_READY:
        logger.debug(f"Selection: request_id={request_id}, capability={capability_id}, stage={stage}")
        return
    try:
        import logfire

        logfire.info(
            "Capability selected",
            request_id=request_id,
            capability_id=capability_id,
            stage=stage,
            scores=scores,
        )
    except Exception:
        logger.debug(f"Could not log selection to Logfire: request_id={request_id}")


def log_error(error_type: str, error_message: str, context: Optional[dict] = None) -> None:
    """
    Log an error with context for debugging.

    Args:
        error_type: Type of error
        error_message: Error message
        context: Additional context dictionary
    """
    if not _LOGFIRE_READY:
        logger.debug(f"Error recorded: {error_type}: {error_message}")
        return
    try:
        import logfire

        logfire.error(
            "Error occurred",
            error_type=error_type,
            error_message=error_message,
            **(context or {}),
        )
    except Exception:
        logger.debug(f"Could not log error to Logfire: {error_type}")
