"""Configuration handling for the Figma connector."""

import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from .exceptions import ConfigurationError


@dataclass(frozen=True)
class FigmaOptions:
    """Credentials and organization scope for the connector.

    The host passes these once to ``FigmaEngine.init``. They are held in
    memory for the life of the engine and never written anywhere.
    """

    organization: int
    user: str
    password: str

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any]) -> "FigmaOptions":
        """Build options from the host's plain options object.

        Raises:
            ConfigurationError: If a field is missing or the organization
                is not numeric.
        """
        # 0 is a valid organization id
        missing = [
            key for key in ("organization", "user", "password") if options.get(key) in (None, "")
        ]
        if missing:
            raise ConfigurationError(f"Missing Figma options: {', '.join(missing)}")

        try:
            organization = int(options["organization"])
        except (TypeError, ValueError):
            raise ConfigurationError(
                f"Figma organization must be numeric, got {options['organization']!r}"
            ) from None

        return cls(
            organization=organization,
            user=str(options["user"]),
            password=str(options["password"]),
        )

    @classmethod
    def from_env(cls) -> "FigmaOptions":
        """Load options from environment variables.

        Environment variables:
            FIGMA_ORGANIZATION: Numeric organization id
            FIGMA_USER: Login email
            FIGMA_PASSWORD: Password
        """
        return cls.from_mapping(
            {
                "organization": os.environ.get("FIGMA_ORGANIZATION", ""),
                "user": os.environ.get("FIGMA_USER", ""),
                "password": os.environ.get("FIGMA_PASSWORD", ""),
            }
        )

    def validate(self) -> list[str]:
        """Validate options, returning list of missing fields."""
        missing = []
        if self.organization is None:
            missing.append("organization (FIGMA_ORGANIZATION)")
        if not self.user:
            missing.append("user (FIGMA_USER)")
        if not self.password:
            missing.append("password (FIGMA_PASSWORD)")
        return missing
