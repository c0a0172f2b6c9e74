import datetime

import jwt

import config


class TokenConfigError(Exception):
    pass


def generate_token(user_id: str, email: str, expires_in: int = 3600) -> str:
    if not config.JWT_SECRET:
        raise TokenConfigError("JWT_SECRET is not configured.")
    now = datetime.datetime.now(datetime.timezone.utc)
    payload = {
        "sub": str(user_id),
        "email": email,
        "iat": now,
        "exp": now + datetime.timedelta(seconds=expires_in),
    }
    if config.JWT_AUDIENCE:
        payload["aud"] = config.JWT_AUDIENCE
    return jwt.encode(payload, config.JWT_SECRET, algorithm="HS256")


def decode_token(token: str):
    if not config.JWT_SECRET:
        raise TokenConfigError("JWT_SECRET is not configured.")
    if config.JWT_AUDIENCE:
        return jwt.decode(
            token,
            config.JWT_SECRET,
            algorithms=["HS256"],
            audience=config.JWT_AUDIENCE,
        )
    return jwt.decode(
        token,
        config.JWT_SECRET,
        algorithms=["HS256"],
        options={"verify_aud": False},
    )
