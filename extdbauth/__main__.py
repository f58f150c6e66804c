"""Check a login against the external database: python3 -m extdbauth USERNAME"""

from __future__ import annotations

import argparse
import asyncio
import getpass
import sys

from extdbauth.auth_providers.base import AuthStatus, PasswordAuthenticationRequest
from extdbauth.auth_providers.external_database import ExternalDatabaseProvider
from extdbauth.auth_providers.factory import AuthenticationChain
from extdbauth.config import settings
from extdbauth.logging_config import log_startup_info, setup_logging
from extdbauth.storage.database import LocalUserStore
from extdbauth.storage.external import ExternalUserStore


async def check_login(username: str, password: str) -> AuthStatus:
    store = ExternalUserStore(settings.database, settings.field_mapping)
    provider = ExternalDatabaseProvider(
        store, settings.field_mapping, hash_algorithm=settings.hash_algorithm
    )
    users = LocalUserStore(settings.local_db_path)
    await users.connect()
    try:
        chain = AuthenticationChain([provider], users)
        response = await chain.authenticate(
            [PasswordAuthenticationRequest(username=username, password=password)]
        )
    finally:
        await store.close()
        await users.close()
    return response.status


def main() -> None:
    parser = argparse.ArgumentParser(description="Check a login against the external user database")
    parser.add_argument("username", help="Login name to check")
    parser.add_argument(
        "--password-stdin", action="store_true", help="Read the password from standard input"
    )
    args = parser.parse_args()

    setup_logging()
    log_startup_info()

    if args.password_stdin:
        password = sys.stdin.readline().rstrip("\n")
    else:
        password = getpass.getpass(f"Password for {args.username}: ")

    status = asyncio.run(check_login(args.username, password))
    print(status.value)
    sys.exit(0 if status is AuthStatus.PASS else 1)


if __name__ == "__main__":
    main()
