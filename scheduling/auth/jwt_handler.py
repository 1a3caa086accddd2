import jwt

from scheduling.core import config


def decode_access_token(token: str) -> dict:
    """Verify signature and expiry of a token minted by the account service.

    Tokens are issued elsewhere; this service only reads the ``sub`` claim,
    which carries the account email.
    """
    return jwt.decode(
        token,
        config.JWT_SECRET_KEY,
        algorithms=[config.JWT_ALGORITHM],
        options={"require": ["sub", "exp"]},
    )
