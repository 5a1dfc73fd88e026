"""Runtime configuration read from environment variables.

All getters read the environment at call time so Lambda configuration
changes and test overrides apply without re-importing. The optional
integrations (AI, WhatsApp, e-mail) return None when CleanStay is disabled
or when their configuration is incomplete, so callers can degrade instead
of failing.
"""

import os
from dataclasses import dataclass, field

import structlog

logger = structlog.get_logger()

_TRUTHY = {"1", "true", "yes", "on"}

DEFAULT_ADMIN_WHATSAPP_NUMBER = "+420776292312"
DEFAULT_DASHBOARD_BASE_URL = "https://app.cleanstay.cz"
DEFAULT_SITE_URL = "https://cleanstay.cz"
DEFAULT_CONTACT_EMAIL = "info@cleanstay.cz"
DEFAULT_WHATSAPP_API_BASE_URL = "https://graph.facebook.com/v19.0"
DEFAULT_BEDROCK_MODEL = "us.anthropic.claude-haiku-4-5-20251001-v1:0"


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUTHY


def _env_float(name: str, default: float) -> float:
    value = os.environ.get(name)
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        logger.warning("Invalid float in environment, using default", name=name, value=value)
        return default


def _env_int(name: str, default: int) -> int:
    value = os.environ.get(name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        logger.warning("Invalid int in environment, using default", name=name, value=value)
        return default


@dataclass(frozen=True)
class AIConfig:
    """LLM access configuration."""

    model_id: str
    chat_enabled: bool = True


@dataclass(frozen=True)
class WhatsAppConfig:
    """WhatsApp Cloud API configuration."""

    api_token: str
    phone_number_id: str
    api_base_url: str = DEFAULT_WHATSAPP_API_BASE_URL
    verify_token: str | None = None
    app_secret: str | None = None


@dataclass(frozen=True)
class EmailConfig:
    """Outbound e-mail configuration."""

    from_email: str
    contact_email: str = DEFAULT_CONTACT_EMAIL


@dataclass(frozen=True)
class CostSettings:
    """Unit costs and daily alert limits (EUR)."""

    ai_per_1k_input: float = 0.0008
    ai_per_1k_output: float = 0.004
    whatsapp_per_message: float = 0.05
    ai_daily_limit: float = 2.0
    whatsapp_daily_limit: float = 5.0
    eur_czk_rate: float = 25.0


@dataclass(frozen=True)
class Settings:
    """Snapshot of deployment settings."""

    stage: str
    table_name: str
    cleanstay_enabled: bool
    default_tenant_id: str | None
    admin_whatsapp_numbers: list[str] = field(default_factory=list)
    admin_dashboard_base_url: str = DEFAULT_DASHBOARD_BASE_URL
    site_url: str = DEFAULT_SITE_URL
    contact_email: str = DEFAULT_CONTACT_EMAIL
    auth_jwt_secret: str | None = None
    confirm_token_secret: str | None = None
    git_sha: str | None = None
    cleaning_capacity_per_day: int = 8
    costs: CostSettings = field(default_factory=CostSettings)


def get_settings() -> Settings:
    """Build a Settings snapshot from the current environment."""
    numbers_raw = os.environ.get("ADMIN_WHATSAPP_NUMBERS") or DEFAULT_ADMIN_WHATSAPP_NUMBER
    numbers = [n.strip() for n in numbers_raw.split(",") if n.strip()]

    return Settings(
        stage=os.environ.get("STAGE", "dev"),
        table_name=os.environ.get("TABLE_NAME", "cleanstay-dev"),
        cleanstay_enabled=_env_bool("CLEANSTAY_ENABLED"),
        default_tenant_id=os.environ.get("DEFAULT_TENANT_ID") or None,
        admin_whatsapp_numbers=numbers,
        admin_dashboard_base_url=(
            os.environ.get("ADMIN_DASHBOARD_BASE_URL") or DEFAULT_DASHBOARD_BASE_URL
        ).rstrip("/"),
        site_url=(os.environ.get("SITE_URL") or DEFAULT_SITE_URL).rstrip("/"),
        contact_email=os.environ.get("CONTACT_EMAIL") or DEFAULT_CONTACT_EMAIL,
        auth_jwt_secret=os.environ.get("AUTH_JWT_SECRET") or None,
        confirm_token_secret=os.environ.get("CONFIRM_TOKEN_SECRET") or None,
        git_sha=os.environ.get("GIT_SHA") or None,
        cleaning_capacity_per_day=_env_int("CLEANING_CAPACITY_PER_DAY", 8),
        costs=CostSettings(
            ai_per_1k_input=_env_float("AI_COST_PER_1K_INPUT_EUR", 0.0008),
            ai_per_1k_output=_env_float("AI_COST_PER_1K_OUTPUT_EUR", 0.004),
            whatsapp_per_message=_env_float("WHATSAPP_COST_PER_MESSAGE_EUR", 0.05),
            ai_daily_limit=_env_float("AI_DAILY_COST_LIMIT_EUR", 2.0),
            whatsapp_daily_limit=_env_float("WHATSAPP_DAILY_COST_LIMIT_EUR", 5.0),
            eur_czk_rate=_env_float("EUR_CZK_RATE", 25.0),
        ),
    )


def is_cleanstay_enabled() -> bool:
    """Check the CLEANSTAY_ENABLED master flag."""
    return _env_bool("CLEANSTAY_ENABLED")


def get_default_tenant_id() -> str | None:
    """Tenant that owns all anonymous web traffic (chat, leads, contact form)."""
    return os.environ.get("DEFAULT_TENANT_ID") or None


def get_ai_config() -> AIConfig | None:
    """Get LLM configuration, or None when CleanStay is disabled."""
    if not is_cleanstay_enabled():
        return None

    return AIConfig(
        model_id=os.environ.get("BEDROCK_MODEL_ID") or DEFAULT_BEDROCK_MODEL,
        chat_enabled=_env_bool("AI_CHAT_ENABLED", default=True),
    )


def get_whatsapp_config() -> WhatsAppConfig | None:
    """Get WhatsApp configuration, or None when disabled or incomplete."""
    if not is_cleanstay_enabled():
        return None

    api_token = os.environ.get("WHATSAPP_API_TOKEN")
    phone_number_id = os.environ.get("WHATSAPP_PHONE_NUMBER_ID")

    if not api_token or not phone_number_id:
        logger.warning(
            "WhatsApp configuration incomplete",
            has_token=bool(api_token),
            has_phone_number_id=bool(phone_number_id),
        )
        return None

    return WhatsAppConfig(
        api_token=api_token,
        phone_number_id=phone_number_id,
        api_base_url=(
            os.environ.get("WHATSAPP_API_BASE_URL") or DEFAULT_WHATSAPP_API_BASE_URL
        ).rstrip("/"),
        verify_token=os.environ.get("WHATSAPP_VERIFY_TOKEN") or None,
        app_secret=os.environ.get("WHATSAPP_APP_SECRET") or None,
    )


def get_webhook_secrets() -> tuple[str | None, str | None]:
    """Get (verify_token, app_secret) for the inbound WhatsApp webhook.

    These are independent of the outbound API credentials so the webhook can
    be verified before sending is set up.
    """
    return (
        os.environ.get("WHATSAPP_VERIFY_TOKEN") or None,
        os.environ.get("WHATSAPP_APP_SECRET") or None,
    )


def get_email_config() -> EmailConfig | None:
    """Get e-mail configuration, or None when no sender is configured."""
    from_email = os.environ.get("SES_FROM_EMAIL")
    if not from_email:
        logger.warning("Email configuration incomplete", has_from_email=False)
        return None

    return EmailConfig(
        from_email=from_email,
        contact_email=os.environ.get("CONTACT_EMAIL") or DEFAULT_CONTACT_EMAIL,
    )
