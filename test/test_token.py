from datetime import datetime, timezone

import jwt
import pytest

from firebaseauth.err import InvalidResponseErr
from firebaseauth.token import (
    AccountInfo,
    AccountUpdateResponse,
    IdToken,
    RefreshResponse,
    SignInResponse,
    UserProfile,
)


def now():
    return datetime.now(timezone.utc).timestamp()


class TestResponses:

    def test_sign_in_response(self):
        response = SignInResponse.from_json({"idToken": "T1", "refreshToken": "R1", "expiresIn": "3600"})

        assert response == SignInResponse("T1", "R1", 3600)

    def test_sign_in_response_missing_token(self):
        with pytest.raises(InvalidResponseErr):
            SignInResponse.from_json({"refreshToken": "R1", "expiresIn": "3600"})

    def test_sign_in_response_malformed_expiry(self):
        with pytest.raises(InvalidResponseErr):
            SignInResponse.from_json({"idToken": "T1", "refreshToken": "R1", "expiresIn": "soon"})

    def test_refresh_response(self):
        response = RefreshResponse.from_json({"id_token": "T2", "refresh_token": "R2", "expires_in": "3600"})

        assert response == RefreshResponse("T2", "R2", 3600)

    def test_not_an_object(self):
        with pytest.raises(InvalidResponseErr):
            RefreshResponse.from_json(["T2"])

    def test_account_info(self):
        info = AccountInfo.from_json({"users": [{
            "localId": "u1",
            "displayName": "Jane",
            "email": "jane@example.com",
            "emailVerified": True,
            "photoUrl": "https://example.com/jane.png",
        }]})

        assert info.disabled is False
        assert info.to_profile() == UserProfile(
            uid="u1",
            display_name="Jane",
            email="jane@example.com",
            email_verified=True,
            photo_url="https://example.com/jane.png",
        )

    @pytest.mark.parametrize(
        "payload",
        [{}, {"users": []}, {"users": ["u1"]}, {"users": [{"email": "jane@example.com"}]}],
        ids=["no users", "empty users", "user not an object", "no local id"]
    )
    def test_account_info_invalid(self, payload):
        with pytest.raises(InvalidResponseErr):
            AccountInfo.from_json(payload)

    def test_account_update_without_tokens(self):
        response = AccountUpdateResponse.from_json({"displayName": "Jane"})

        assert response.display_name == "Jane"
        assert response.expires_in is None
        assert response.refresh_token is None


class TestIdToken:

    def test_claims(self):
        encoded = jwt.encode({"exp": int(now()) + 100, "user_id": "u1"}, "secret", algorithm='HS256')
        token = IdToken(encoded)

        assert token.ttl() == pytest.approx(100, abs=1)
        assert token.get_claims()["user_id"] == "u1"

    def test_expired_token_still_decodes(self):
        encoded = jwt.encode({"exp": int(now()) - 100}, "secret", algorithm='HS256')
        token = IdToken(encoded)

        assert token.ttl() == pytest.approx(-100, abs=1)
        assert token.get_expires_at() < now()

    def test_without_exp(self):
        token = IdToken(jwt.encode({"user_id": "u1"}, "secret", algorithm='HS256'))

        assert token.ttl() == -1
        assert token.get_expires_at() is None

    @pytest.mark.parametrize("value", [None, "", "T1"])
    def test_try_parse_opaque(self, value):
        assert IdToken.try_parse(value) is None
