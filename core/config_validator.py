# core/config_validator.py

from typing import List
from core.config import settings
from core.logging_config import logger


def validate_required_config() -> List[str]:
    """
    Settings that make the service unsafe to run.
    Returns list of problems found.
    """
    problems = []

    if settings.ALLOW_INSECURE_SENTINEL_TOKEN and settings.ENV == "production":
        problems.append("ALLOW_INSECURE_SENTINEL_TOKEN must be off in production")

    return problems


def validate_optional_config() -> List[str]:
    """
    Validate optional but recommended configuration.
    Returns list of warnings.
    """
    warnings = []

    if not all([settings.AWS_ACCESS_KEY_ID, settings.AWS_SECRET_ACCESS_KEY, settings.AWS_BUCKET_NAME]):
        warnings.append("AWS_ACCESS_KEY_ID / AWS_SECRET_ACCESS_KEY / AWS_BUCKET_NAME (blob uploads disabled)")

    if not settings.JWT_SECRET:
        warnings.append("JWT_SECRET (bearer token signatures are not verified)")

    if settings.ALLOW_INSECURE_SENTINEL_TOKEN and settings.ENV != "production":
        warnings.append(f"ALLOW_INSECURE_SENTINEL_TOKEN is on in {settings.ENV}")

    return warnings


def validate_config_on_startup():
    """
    Validate configuration on application startup.
    Raises RuntimeError if critical config is wrong.
    Logs warnings for optional config.
    """
    problems = validate_required_config()
    warnings = validate_optional_config()

    if problems:
        error_msg = f"Invalid configuration: {', '.join(problems)}"
        logger.error(error_msg)
        raise RuntimeError(error_msg)

    for warning in warnings:
        logger.warning(f"Configuration: {warning}")

    logger.info("Configuration validation passed")
