"""
Environment variable validation.

This module checks that the database and model-provider settings are usable
before the application starts serving requests.
"""

import sys
from typing import List, Optional, Tuple

from app.core.config import Settings, settings
from app.core.logging import get_logger

logger = get_logger(__name__)


def validate_api_key(key_name: str, key_value: Optional[str]) -> List[str]:
    """
    Validate that a provider API key is present and not a placeholder.

    Returns:
        List of validation errors (empty if valid)
    """
    errors = []

    if not key_value:
        errors.append(f"{key_name} is not set")
        return errors

    lowered = key_value.lower()
    if "your-" in lowered or "change" in lowered or "example" in lowered:
        errors.append(
            f"{key_name} appears to be a placeholder value - update with a real key"
        )

    return errors


def validate_database_url(config: Settings = settings) -> List[str]:
    """
    Validate database URL configuration.

    Returns:
        List of validation errors (empty if valid)
    """
    errors = []

    if not config.DATABASE_URL:
        errors.append("DATABASE_URL is not set")
        return errors

    # Check for async driver
    if not config.DATABASE_URL.startswith("postgresql+asyncpg://"):
        errors.append(
            "DATABASE_URL must use asyncpg driver (format: postgresql+asyncpg://...)"
        )

    return errors


def validate_provider_settings(config: Settings = settings) -> List[str]:
    """
    Validate that the configured generation and embedding providers have credentials.

    Returns:
        List of validation errors (empty if valid)
    """
    errors = []

    if config.GENERATION_PROVIDER == "openai":
        errors.extend(validate_api_key("OPENAI_API_KEY", config.OPENAI_API_KEY))
    else:
        errors.extend(validate_api_key("ANTHROPIC_API_KEY", config.ANTHROPIC_API_KEY))

    if config.EMBEDDING_PROVIDER == "openai" and config.GENERATION_PROVIDER != "openai":
        errors.extend(validate_api_key("OPENAI_API_KEY", config.OPENAI_API_KEY))

    if config.EMBEDDING_DIMENSION <= 0:
        errors.append("EMBEDDING_DIMENSION must be a positive integer")

    if not 0.0 <= config.RAG_EXEMPLAR_THRESHOLD <= 1.0:
        errors.append("RAG_EXEMPLAR_THRESHOLD must be between 0 and 1")

    return errors


def validate_production_settings(config: Settings = settings) -> List[str]:
    """
    Validate production-specific settings.

    Returns:
        List of validation errors (empty if valid)
    """
    errors = []

    if not config.is_production:
        return errors

    if config.DEBUG:
        errors.append("DEBUG must be false in production")

    if "localhost" in ",".join(config.ALLOWED_ORIGINS):
        logger.warning(
            "localhost_in_allowed_origins",
            message="ALLOWED_ORIGINS includes localhost in production - may be insecure"
        )

    if config.LOG_FORMAT != "json":
        logger.warning(
            "log_format_not_json",
            message="LOG_FORMAT should be 'json' in production for better log aggregation"
        )

    return errors


def validate_environment(config: Settings = settings) -> Tuple[bool, List[str]]:
    """
    Validate all environment variables.

    Returns:
        (is_valid, list_of_errors)
    """
    all_errors = []

    logger.info(
        "validating_environment",
        app_env=config.APP_ENV,
        app_name=config.APP_NAME
    )

    all_errors.extend(validate_database_url(config))
    all_errors.extend(validate_provider_settings(config))
    all_errors.extend(validate_production_settings(config))

    if all_errors:
        logger.error(
            "environment_validation_failed",
            errors=all_errors,
            error_count=len(all_errors)
        )
        return False, all_errors

    logger.info(
        "environment_validation_successful",
        app_env=config.APP_ENV,
        generation_provider=config.GENERATION_PROVIDER,
        embedding_provider=config.EMBEDDING_PROVIDER,
    )
    return True, []


def validate_or_exit(config: Settings = settings) -> None:
    """
    Validate environment and exit if validation fails.

    Called during startup in production; other environments only log.
    """
    is_valid, errors = validate_environment(config)

    if not is_valid:
        logger.critical(
            "startup_aborted_invalid_environment",
            errors=errors
        )
        print("\nENVIRONMENT VALIDATION FAILED\n")
        print("The following configuration errors were found:\n")
        for i, error in enumerate(errors, 1):
            print(f"  {i}. {error}")
        print("\nPlease fix these errors and restart the application.\n")
        sys.exit(1)

    logger.info("environment_validation_passed")
