"""Feature flag gating for handlers."""

import functools
from enum import Enum
from typing import Any, Callable

import structlog

from cleanstay.config import is_cleanstay_enabled
from cleanstay.utils.exceptions import FeatureDisabledError
from cleanstay.utils.responses import from_exception

logger = structlog.get_logger()


class Feature(str, Enum):
    """Gated features."""

    ADMIN_API = "admin_api"
    AI_PARSE = "ai_parse"
    WHATSAPP_WEBHOOK = "whatsapp_webhook"


def feature_disabled_response() -> dict:
    """503 response returned by gated routes while CLEANSTAY_ENABLED is off."""
    return from_exception(FeatureDisabledError())


def requires_cleanstay(feature: Feature) -> Callable:
    """Decorate a Lambda handler so it answers 503 while CleanStay is disabled.

    Args:
        feature: The feature the handler serves, used for logging.
    """

    def decorator(func: Callable[[dict, Any], dict]) -> Callable[[dict, Any], dict]:
        @functools.wraps(func)
        def wrapper(event: dict[str, Any], context: Any) -> dict:
            if not is_cleanstay_enabled():
                logger.info(
                    "Request blocked by feature flag",
                    feature=feature.value,
                    path=event.get("path"),
                )
                return feature_disabled_response()
            return func(event, context)

        return wrapper

    return decorator
