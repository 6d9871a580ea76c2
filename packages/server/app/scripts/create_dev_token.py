"""
Mint a development access token shaped like the identity provider's.

    python -m app.scripts.create_dev_token --email alice@example.com --name Alice

The token is printed to stdout; send it as ``Authorization: Bearer <token>``
or exchange it for session cookies via ``POST /auth/session``.
"""

import argparse
import uuid
from datetime import timedelta

from app.core.auth import create_jwt


def main(argv=None) -> str:
    parser = argparse.ArgumentParser(description="Create a local development token.")
    parser.add_argument("--email", required=True, help="Email address for the identity")
    parser.add_argument("--user-id", type=uuid.UUID, default=None, help="Identity id (random if omitted)")
    parser.add_argument("--name", default=None, help="Display name")
    parser.add_argument("--avatar-url", default=None, help="Avatar image URL")
    parser.add_argument("--minutes", type=int, default=60 * 24, help="Token lifetime in minutes")
    args = parser.parse_args(argv)

    token, _jti = create_jwt(
        args.user_id or uuid.uuid4(),
        args.email,
        full_name=args.name,
        avatar_url=args.avatar_url,
        expires_delta=timedelta(minutes=args.minutes),
    )
    print(token)
    return token


if __name__ == "__main__":
    main()
