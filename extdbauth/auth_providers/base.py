"""Chain contract shared by all primary authentication providers.

A provider answers every credential check with an :class:`AuthResponse`
tagged by :class:`AuthStatus`:

- ``PASS``: the user is authenticated; no other primary provider runs.
- ``FAIL``: the user is definitively rejected; the attempt ends.
- ``ABSTAIN``: the provider does not handle these requests; the next
  provider in the chain is consulted.
- ``UI``: the requests were accepted but more input is needed.
- ``REDIRECT``: the requests were accepted but a third party must finish.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Mapping, Protocol, Sequence, TypeVar, runtime_checkable

# One row of the external user table, keyed by column name.
ExternalRecord = Mapping[str, Any]


class AuthStatus(str, Enum):
    PASS = "pass"
    FAIL = "fail"
    ABSTAIN = "abstain"
    UI = "ui"
    REDIRECT = "redirect"


class AccountCreationType(str, Enum):
    CREATE = "create"
    LINK = "link"
    NONE = "none"


@dataclass(frozen=True)
class AuthResponse:
    """Outcome of one provider for one authentication attempt."""

    status: AuthStatus
    username: str | None = None
    message: str | None = None
    redirect_target: str | None = None

    @classmethod
    def new_pass(cls, username: str) -> AuthResponse:
        return cls(status=AuthStatus.PASS, username=username)

    @classmethod
    def new_fail(cls, message: str) -> AuthResponse:
        return cls(status=AuthStatus.FAIL, message=message)

    @classmethod
    def new_abstain(cls) -> AuthResponse:
        return cls(status=AuthStatus.ABSTAIN)

    @classmethod
    def new_ui(cls, message: str) -> AuthResponse:
        return cls(status=AuthStatus.UI, message=message)

    @classmethod
    def new_redirect(cls, target: str) -> AuthResponse:
        return cls(status=AuthStatus.REDIRECT, redirect_target=target)


@dataclass
class AuthenticationRequest:
    """Base class for the data a client submits with an attempt."""


@dataclass
class PasswordAuthenticationRequest(AuthenticationRequest):
    """A login name and password typed into a login form."""

    username: str | None = None
    password: str | None = field(default=None, repr=False)


@dataclass(frozen=True)
class PrimaryResult:
    """A provider's response plus whatever it needs later in the same attempt.

    The record is handed back to the provider's ``post_authentication`` by
    the chain and dropped afterwards. It holds the stored password hash, so
    it is kept out of ``repr``.
    """

    response: AuthResponse
    record: ExternalRecord | None = field(default=None, repr=False)


@dataclass(frozen=True)
class StatusValue:
    """Answer to "may this provider's data be changed"."""

    ok: bool
    value: str | None = None

    @classmethod
    def new_good(cls, value: str | None = None) -> StatusValue:
        return cls(ok=True, value=value)


R = TypeVar("R", bound=AuthenticationRequest)


def get_request_by_class(reqs: Sequence[AuthenticationRequest], cls: type[R]) -> R | None:
    """Return the single request of type ``cls``, or None if there are zero or several."""
    matches = [r for r in reqs if isinstance(r, cls)]
    if len(matches) != 1:
        return None
    return matches[0]


@runtime_checkable
class LocalIdentity(Protocol):
    """The write-only slice of a local user that providers may touch."""

    def set_real_name(self, real_name: str) -> None: ...

    def set_email(self, email: str) -> None: ...

    def set_email_authenticated_at(self, timestamp: datetime) -> None: ...

    async def save_settings(self) -> None: ...


@runtime_checkable
class PrimaryAuthProvider(Protocol):
    """Protocol that all primary auth providers must implement."""

    name: str

    async def begin_primary_authentication(
        self, reqs: Sequence[AuthenticationRequest]
    ) -> PrimaryResult:
        """Decide on the submitted requests."""
        ...

    async def post_authentication(
        self, user: LocalIdentity | None, result: PrimaryResult
    ) -> None:
        """Run after the chain has settled on ``result``."""
        ...
