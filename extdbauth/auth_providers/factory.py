"""Factory for creating auth providers and the chain that runs them."""

from __future__ import annotations

import logging
from typing import Sequence

from extdbauth.auth_providers.base import (
    AuthenticationRequest,
    AuthResponse,
    AuthStatus,
    PrimaryAuthProvider,
    PrimaryResult,
)
from extdbauth.config import Settings
from extdbauth.exceptions import ConfigurationError
from extdbauth.storage.database import LocalUserStore

logger = logging.getLogger("extdbauth.auth_providers.factory")

_audit_logger = logging.getLogger("extdbauth.audit")


def create_provider(provider_name: str, *, settings: Settings) -> PrimaryAuthProvider:
    """Create an auth provider by name."""
    if provider_name == "external_database":
        from extdbauth.auth_providers.external_database import ExternalDatabaseProvider
        from extdbauth.storage.external import ExternalUserStore

        store = ExternalUserStore(settings.database, settings.field_mapping)
        return ExternalDatabaseProvider(
            store, settings.field_mapping, hash_algorithm=settings.hash_algorithm
        )

    msg = f"Unknown auth provider: {provider_name}"
    raise ConfigurationError(msg)


class AuthenticationChain:
    """Consult primary providers in order until one of them takes the attempt.

    ABSTAIN moves on to the next provider. PASS loads or creates the local
    user and lets the winning provider post-process it. FAIL, UI and
    REDIRECT end the attempt as returned.
    """

    def __init__(
        self, providers: Sequence[PrimaryAuthProvider], user_store: LocalUserStore
    ) -> None:
        self._providers = list(providers)
        self._user_store = user_store

    async def authenticate(self, reqs: Sequence[AuthenticationRequest]) -> AuthResponse:
        for provider in self._providers:
            result = await provider.begin_primary_authentication(reqs)
            status = result.response.status

            if status is AuthStatus.ABSTAIN:
                continue
            if status is AuthStatus.PASS:
                return await self._finish_pass(provider, result)
            if status is AuthStatus.FAIL:
                self._audit_failure(provider.name, result.response.message)
                await provider.post_authentication(None, result)
                return result.response
            if status is AuthStatus.UI or status is AuthStatus.REDIRECT:
                await provider.post_authentication(None, result)
                return result.response
            raise AssertionError(f"Unhandled auth status from {provider.name}: {status!r}")

        self._audit_failure("chain", "no_primary_provider")
        return AuthResponse.new_fail("No provider could authenticate the credentials")

    async def _finish_pass(
        self, provider: PrimaryAuthProvider, result: PrimaryResult
    ) -> AuthResponse:
        username = result.response.username
        if not username:
            raise AssertionError(f"{provider.name} passed without a username")
        user = await self._user_store.get_or_create_user(username)
        await provider.post_authentication(user, result)
        _audit_logger.info(
            "Auth success: %s via %s",
            username,
            provider.name,
            extra={
                "event_category": "audit",
                "action": "auth_success",
                "provider": provider.name,
                "username": username,
            },
        )
        return result.response

    def _audit_failure(self, provider_name: str, reason: str | None) -> None:
        _audit_logger.warning(
            "Auth failure via %s: %s",
            provider_name,
            reason,
            extra={
                "event_category": "audit",
                "action": "auth_failure",
                "provider": provider_name,
            },
        )
