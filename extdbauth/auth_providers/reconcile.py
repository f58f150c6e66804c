"""Copy authoritative profile fields from the external record onto the local user."""

from __future__ import annotations

from datetime import datetime, timezone

from extdbauth.auth_providers.base import ExternalRecord, LocalIdentity
from extdbauth.config import FieldMapping


def _text(value: object) -> str:
    # NULL columns become empty strings
    return "" if value is None else str(value)


async def reconcile_profile(
    user: LocalIdentity,
    record: ExternalRecord,
    fields: FieldMapping,
    now: datetime | None = None,
) -> None:
    """Overwrite real name and email with the external values and commit.

    The external record always wins; nothing is read back from the local
    user, so applying the same record twice leaves the same state.
    """
    user.set_real_name(_text(record[fields.user_real_name]))
    user.set_email(_text(record[fields.user_email]))
    user.set_email_authenticated_at(now or datetime.now(timezone.utc))
    await user.save_settings()
