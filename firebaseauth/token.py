import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

import jwt

from firebaseauth.err import InvalidResponseErr

logger = logging.getLogger(__name__)

'''
Narrowed shapes of the identity provider responses. The raw JSON is validated once, here, so that the rest of
the package never deals with loosely typed payloads.
'''


def _require(data: Mapping[str, Any], key: str, op: str) -> Any:
    value = data.get(key)
    if value is None or value == "":
        raise InvalidResponseErr("{} response is missing '{}'".format(op, key), body=dict(data))
    return value


def _seconds(value: Any, key: str, op: str) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError):
        raise InvalidResponseErr("{} response has a malformed '{}': {!r}".format(op, key, value))


def _mapping(data: Any, op: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise InvalidResponseErr("{} response is not a JSON object".format(op), body=data)
    return data


@dataclass(frozen=True)
class SignInResponse:
    id_token: str
    refresh_token: str
    expires_in: int

    @classmethod
    def from_json(cls, data: Any) -> "SignInResponse":
        data = _mapping(data, "verifyPassword")
        return cls(
            id_token=_require(data, "idToken", "verifyPassword"),
            refresh_token=_require(data, "refreshToken", "verifyPassword"),
            expires_in=_seconds(_require(data, "expiresIn", "verifyPassword"), "expiresIn", "verifyPassword"),
        )


@dataclass(frozen=True)
class RefreshResponse:
    id_token: str
    refresh_token: str
    expires_in: int

    @classmethod
    def from_json(cls, data: Any) -> "RefreshResponse":
        data = _mapping(data, "token")
        return cls(
            id_token=_require(data, "id_token", "token"),
            refresh_token=_require(data, "refresh_token", "token"),
            expires_in=_seconds(_require(data, "expires_in", "token"), "expires_in", "token"),
        )


@dataclass(frozen=True)
class UserProfile:
    uid: str
    display_name: Optional[str] = None
    email: Optional[str] = None
    email_verified: bool = False
    photo_url: Optional[str] = None


@dataclass(frozen=True)
class AccountInfo:
    local_id: str
    display_name: Optional[str]
    email: Optional[str]
    email_verified: bool
    photo_url: Optional[str]
    disabled: bool

    @classmethod
    def from_json(cls, data: Any) -> "AccountInfo":
        data = _mapping(data, "getAccountInfo")
        users = data.get("users")
        if not isinstance(users, list) or not users or not isinstance(users[0], Mapping):
            raise InvalidResponseErr("getAccountInfo response has no users", body=dict(data))

        user = users[0]
        return cls(
            local_id=_require(user, "localId", "getAccountInfo"),
            display_name=user.get("displayName"),
            email=user.get("email"),
            email_verified=bool(user.get("emailVerified", False)),
            photo_url=user.get("photoUrl"),
            disabled=bool(user.get("disabled", False)),
        )

    def to_profile(self) -> UserProfile:
        return UserProfile(
            uid=self.local_id,
            display_name=self.display_name,
            email=self.email,
            email_verified=self.email_verified,
            photo_url=self.photo_url,
        )


@dataclass(frozen=True)
class AccountUpdateResponse:
    """
    The provider only returns fresh tokens when the update touched the credentials (password or email),
    so every token field is optional.
    """
    display_name: Optional[str] = None
    photo_url: Optional[str] = None
    id_token: Optional[str] = None
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None

    @classmethod
    def from_json(cls, data: Any) -> "AccountUpdateResponse":
        data = _mapping(data, "setAccountInfo")
        expires_in = data.get("expiresIn")
        return cls(
            display_name=data.get("displayName"),
            photo_url=data.get("photoUrl"),
            id_token=data.get("idToken") or None,
            refresh_token=data.get("refreshToken") or None,
            expires_in=None if expires_in in (None, "") else _seconds(expires_in, "expiresIn", "setAccountInfo"),
        )


'''
An ID token is a JSON Web Token. Its claims are decoded without verifying the signature, they are only used
for bookkeeping (e.g., the expiration time) and never to make trust decisions.
'''
class IdToken:
    def __init__(self, token: str):
        self._value = token
        self._decoded = jwt.decode(
            self._value,
            options={"verify_signature": False, "verify_exp": False},
            algorithms=[jwt.get_unverified_header(self._value).get('alg')]
        )

    @classmethod
    def try_parse(cls, token: Optional[str]) -> Optional["IdToken"]:
        if not token:
            return None
        try:
            return cls(token)
        except jwt.PyJWTError as e:
            logger.debug("ID token can't be decoded: {}".format(e))
            return None

    def ttl(self) -> float:
        exp = self._decoded.get('exp')
        if exp is None:
            return -1

        return exp - datetime.now(timezone.utc).timestamp()

    def get_expires_at(self) -> Optional[int]:
        return self._decoded.get('exp')

    def get_claims(self) -> Dict[str, Any]:
        return dict(self._decoded)
