"""Business configuration for pricing, numbering and stock alerts."""

import logging
import os
from decimal import Decimal
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

_ENV_PREFIX = "PUBLIMAR_"


class PublimarConfig(BaseModel):
    """
    Business defaults.

    Tax rate is a percentage (21 = 21%, Argentine IVA). Validity and
    thresholds are in their natural units.
    """

    default_tax_rate_percent: Decimal = Field(
        default=Decimal("21"),
        description="Tax rate applied to new quotes and orders",
        ge=0,
        le=100,
    )
    quote_validity_days: int = Field(
        default=30,
        description="Days a new quote stays valid",
        ge=1,
        le=365,
    )
    low_stock_threshold: int = Field(
        default=5,
        description="Warn when a variant's stock drops below this",
        ge=0,
    )

    # Numbering
    quote_number_prefix: str = Field(default="P", min_length=1, max_length=5)
    order_number_prefix: str = Field(default="O", min_length=1, max_length=5)
    sale_number_prefix: str = Field(default="V", min_length=1, max_length=5)

    # Display
    currency: str = Field(default="ARS", description="ISO currency code for display")
    display_timezone: str = Field(
        default="America/Argentina/Buenos_Aires",
        description="IANA timezone used when rendering dates",
    )


def load_config(env_file: str | Path | None = None) -> PublimarConfig:
    """
    Build configuration from PUBLIMAR_* environment variables.

    A .env file, if present, is loaded first without overriding variables
    already set in the environment.

    Raises:
        pydantic.ValidationError: If a variable is out of range
    """
    load_dotenv(env_file, override=False)

    overrides = {}
    for name in PublimarConfig.model_fields:
        value = os.getenv(f"{_ENV_PREFIX}{name.upper()}")
        if value is not None:
            overrides[name] = value

    if overrides:
        logger.info(f"Configuration overrides from environment: {sorted(overrides)}")

    return PublimarConfig(**overrides)
