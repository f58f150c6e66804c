"""Primary authentication provider backed by an external user database.

The provider looks the submitted login name up in the external user table
and compares the submitted password with the stored hash. It only ever
answers PASS or ABSTAIN: a missing record or a wrong password abstains so
that later providers in the chain can still try the same credentials.

After a PASS the chain hands the matched record back through
:meth:`ExternalDatabaseProvider.post_authentication`, which mirrors the
real name and email onto the local user. The local user never stores the
password hash, so every login goes to the external database.
"""

from __future__ import annotations

import logging
from typing import Sequence

from extdbauth.auth_providers.base import (
    AccountCreationType,
    AuthenticationRequest,
    AuthResponse,
    AuthStatus,
    ExternalRecord,
    LocalIdentity,
    PasswordAuthenticationRequest,
    PrimaryResult,
    StatusValue,
    get_request_by_class,
)
from extdbauth.auth_providers.hashing import resolve_verifier
from extdbauth.auth_providers.reconcile import reconcile_profile
from extdbauth.config import DEFAULT_HASH_ALGORITHM, FieldMapping
from extdbauth.exceptions import ConfigurationError, UnsupportedOperationError
from extdbauth.storage.external import ExternalUserStore

logger = logging.getLogger("extdbauth.auth_providers.external_database")


class ExternalDatabaseProvider:
    """Authenticate login/password pairs against the external user table."""

    name = "external_database"

    def __init__(
        self,
        store: ExternalUserStore,
        fields: FieldMapping,
        hash_algorithm: str = DEFAULT_HASH_ALGORITHM,
    ) -> None:
        self._store = store
        self._fields = fields
        # Raises UnsupportedAlgorithmError before any request is served.
        self._verifier = resolve_verifier(hash_algorithm)

    @property
    def store(self) -> ExternalUserStore:
        return self._store

    @property
    def hash_algorithm(self) -> str:
        return self._verifier.algorithm

    async def begin_primary_authentication(
        self, reqs: Sequence[AuthenticationRequest]
    ) -> PrimaryResult:
        req = get_request_by_class(reqs, PasswordAuthenticationRequest)
        if req is None:
            return PrimaryResult(AuthResponse.new_abstain())

        if req.username is None or req.password is None:
            return PrimaryResult(AuthResponse.new_abstain())

        record = await self._store.find_user(req.username)
        if record is None:
            logger.debug(
                "No external record for %s",
                req.username,
                extra={"provider": self.name, "username": req.username},
            )
            return PrimaryResult(AuthResponse.new_abstain())

        self._check_columns(record)
        if self._verifier.verify(req.password, self._stored_hash(record)):
            logger.info(
                "Authenticated %s against external database",
                req.username,
                extra={"provider": self.name, "username": req.username, "status": "pass"},
            )
            return PrimaryResult(AuthResponse.new_pass(req.username), record)

        logger.debug(
            "Password mismatch for %s",
            req.username,
            extra={"provider": self.name, "username": req.username},
        )
        return PrimaryResult(AuthResponse.new_abstain())

    def _check_columns(self, record: ExternalRecord) -> None:
        # Reconciliation reads the profile columns after PASS; fail before it.
        for column in (
            self._fields.user_password,
            self._fields.user_real_name,
            self._fields.user_email,
        ):
            if column not in record:
                raise ConfigurationError(f"External user table has no column {column!r}")

    def _stored_hash(self, record: ExternalRecord) -> str:
        stored = record[self._fields.user_password]
        if stored is None:
            return ""
        if isinstance(stored, (bytes, bytearray)):
            return bytes(stored).decode("utf-8", errors="replace")
        return str(stored)

    async def post_authentication(
        self, user: LocalIdentity | None, result: PrimaryResult
    ) -> None:
        """Mirror real name and email from the matched record onto ``user``."""
        if result.response.status is not AuthStatus.PASS:
            return
        if user is None or result.record is None:
            return
        await reconcile_profile(user, result.record, self._fields)

    def test_user_exists(self, username: str) -> bool:
        """Not supported: a successful login creates or updates the local user anyway."""
        raise UnsupportedOperationError(
            "The external database provider does not test whether users exist"
        )

    def account_creation_type(self) -> AccountCreationType:
        return AccountCreationType.NONE

    async def begin_primary_account_creation(
        self,
        user: LocalIdentity,
        creator: LocalIdentity | None,
        reqs: Sequence[AuthenticationRequest],
    ) -> PrimaryResult:
        raise UnsupportedOperationError(
            "The external database provider does not create accounts"
        )

    def provider_allows_authentication_data_change(
        self, req: AuthenticationRequest, check_data: bool = True
    ) -> StatusValue:
        return StatusValue.new_good("ignored")

    def provider_change_authentication_data(self, req: AuthenticationRequest) -> None:
        # Passwords live in the external database; nothing to change here.
        return None
