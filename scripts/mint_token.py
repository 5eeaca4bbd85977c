"""Mint a bearer token for an identity, using the configured secret key.

    python scripts/mint_token.py 0xAbC...123 --minutes 60
"""
import argparse
import sys
from datetime import timedelta

from chainfolio.kernel.errors import InvalidIdentity
from chainfolio.kernel.identity.jwt import JWTManager


def main(argv=None):
    parser = argparse.ArgumentParser(description="Mint a Chainfolio access token")
    parser.add_argument("identity", help="0x-prefixed account address")
    parser.add_argument("--minutes", type=int, default=None, help="Lifetime (default: ACCESS_TOKEN_EXPIRE_MINUTES)")
    args = parser.parse_args(argv)

    manager = JWTManager()
    expires = timedelta(minutes=args.minutes) if args.minutes else None
    try:
        token, expire, jti = manager.create_access_token(args.identity, expires_delta=expires)
    except InvalidIdentity as e:
        print(f"Invalid identity: {e}", file=sys.stderr)
        return 1

    print(token)
    print(f"expires {expire.isoformat()}  jti {jti}", file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())
