from datetime import datetime, timezone
from typing import Any, Dict

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from app.common.errors import InvalidCredentials


class PasslibPasswordHasher:
    def __init__(self) -> None:
        self._context = CryptContext(schemes=["bcrypt"], deprecated="auto")

    def hash(self, password: str) -> str:
        if not password:
            raise ValueError("Password must not be empty")
        return self._context.hash(password)

    def verify(self, password: str, password_hash: str) -> bool:
        if not password or not password_hash:
            return False
        return self._context.verify(password, password_hash)


class JoseTokenCodec:
    def __init__(self, secret_key: str, algorithm: str = "HS256", issuer: str = "rdq-app") -> None:
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._issuer = issuer

    def encode(self, claims: Dict[str, Any], expires_at: datetime) -> str:
        to_encode = claims.copy()
        to_encode.update({
            "iss": self._issuer,
            "iat": datetime.now(timezone.utc),
            "exp": expires_at,
        })
        return jwt.encode(to_encode, self._secret_key, algorithm=self._algorithm)

    def decode(self, token: str) -> Dict[str, Any]:
        try:
            return jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
                issuer=self._issuer,
            )
        except ExpiredSignatureError as exc:
            raise InvalidCredentials("Token has expired", code="TOKEN_EXPIRED") from exc
        except JWTError as exc:
            raise InvalidCredentials("Invalid token", code="INVALID_TOKEN") from exc
