"""Credential service - resolves Stripe keys from the runtime or build-time environment"""
import logging
import os
import sys
from typing import Mapping, Optional

from dotenv import dotenv_values

from aura.core.config import BUILD_ENV_FILE
from aura.core.errors import configuration_error

logger = logging.getLogger(__name__)

MOBILE_PLATFORMS = ("ios", "android")


def load_build_values(path: str = BUILD_ENV_FILE) -> dict:
    """Read the values bundled with the build (missing file -> no values)"""
    return {k: v for k, v in dotenv_values(path).items() if v is not None}


class CredentialProvider:
    """
    Resolves configuration secrets.

    The runtime environment wins; the values bundled at build time are the
    fallback for platforms where the app cannot read a runtime environment
    (mobile builds).
    """

    def __init__(
        self,
        runtime_env: Optional[Mapping[str, str]] = None,
        build_values: Optional[Mapping[str, str]] = None,
        platform: Optional[str] = None,
    ):
        self.runtime_env = runtime_env if runtime_env is not None else os.environ
        self.build_values = dict(build_values or {})
        self.platform = platform or sys.platform

    def get(self, name: str) -> str:
        """
        Resolve a value by name.

        Raises:
            AuraError(CONFIGURATION): If neither source has the value
        """
        value = self.runtime_env.get(name)
        if value is not None:
            return value
        value = self.build_values.get(name)
        if value is not None:
            return value

        if self.platform in MOBILE_PLATFORMS:
            raise configuration_error(f"{name} must be set at build time for mobile platforms")
        raise configuration_error(f"{name} environment variable not set")

    def stripe_secret_key(self) -> str:
        secret_key = self.get("STRIPE_SECRET_KEY")
        if not secret_key.strip():
            raise configuration_error("STRIPE_SECRET_KEY is empty")
        return secret_key

    def stripe_publishable_key(self) -> str:
        key = self.get("STRIPE_PUBLISHABLE_KEY")
        if not key.strip():
            raise configuration_error("STRIPE_PUBLISHABLE_KEY is empty")
        return key
