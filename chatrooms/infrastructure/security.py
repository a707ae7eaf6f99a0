import datetime
import secrets
from typing import Optional

import jwt
from jwt import ExpiredSignatureError, InvalidTokenError

from chatrooms.domain.entities import Identity


class SecurityService:
    """Verifies bearer tokens issued by the identity provider.

    Tokens carry the username in ``sub`` and the numeric user id in ``uid``.
    Issuing tokens is the identity provider's job; create_access_token only
    exists for local development and tests.
    """

    def __init__(self, config):
        self.config = config

    def create_access_token(
        self,
        user_id: int,
        username: str,
        expires_delta: Optional[datetime.timedelta] = None,
    ):
        expire = datetime.datetime.now(datetime.timezone.utc) + (
            expires_delta
            or datetime.timedelta(minutes=self.config.ACCESS_TOKEN_EXPIRE_MINUTES)
        )
        to_encode = {
            "sub": username,
            "uid": user_id,
            "nonce": secrets.token_hex(8),
            "exp": expire,
        }
        encoded_jwt = jwt.encode(
            to_encode, self.config.SECRET_KEY, algorithm=self.config.ALGORITHM
        )
        return encoded_jwt, expire

    def decode_access_token(self, token: str) -> Optional[Identity]:
        try:
            payload = jwt.decode(
                token, self.config.SECRET_KEY, algorithms=[self.config.ALGORITHM]
            )
        except (ExpiredSignatureError, InvalidTokenError):
            return None
        username = payload.get("sub")
        user_id = payload.get("uid")
        if not isinstance(username, str) or not username:
            return None
        if not isinstance(user_id, int) or isinstance(user_id, bool) or user_id < 0:
            return None
        return Identity(user_id=user_id, username=username)
