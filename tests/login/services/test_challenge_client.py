from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from dauth.login.models.errors import ChallengeRequestFailed
from dauth.login.models.params import AuthRequestParams
from dauth.login.services.challenge import ChallengeClient


def make_response(status_code, body):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = body
    return response


class TestRequestChallenge:
    def setup_method(self):
        # Arrange
        self.client = ChallengeClient("https://auth.example.com/api/wallet/challenge")
        self.client._http_client = AsyncMock()
        self.params = AuthRequestParams(
            client_id="c1",
            redirect_uri="https://rp.example/cb",
            state="xyz",
            code_challenge="E9Melhoa2OwvFrEMTJguCHaoeK1t8URWbuGJSstw-cM",
        )

    async def test_returns_challenge_and_forwards_all_parameters(self):
        # Arrange
        self.client._http_client.post.return_value = make_response(
            200, {"challenge": "nonce-1"}
        )

        # Act
        challenge = await self.client.request_challenge(self.params)

        # Assert
        assert challenge == "nonce-1"
        call_args = self.client._http_client.post.call_args
        assert call_args[0][0] == "https://auth.example.com/api/wallet/challenge"
        assert call_args[1]["json"] == {
            "client_id": "c1",
            "redirect_uri": "https://rp.example/cb",
            "state": "xyz",
            "code_challenge": "E9Melhoa2OwvFrEMTJguCHaoeK1t8URWbuGJSstw-cM",
            "code_challenge_method": "S256",
        }

    async def test_absent_optional_parameters_are_still_sent(self):
        # Arrange
        self.client._http_client.post.return_value = make_response(
            200, {"challenge": "nonce-1"}
        )
        params = AuthRequestParams(client_id="c1", redirect_uri="https://rp.example/cb")

        # Act
        await self.client.request_challenge(params)

        # Assert
        body = self.client._http_client.post.call_args[1]["json"]
        assert set(body) == {
            "client_id",
            "redirect_uri",
            "state",
            "code_challenge",
            "code_challenge_method",
        }
        assert body["code_challenge"] == ""

    async def test_missing_client_id_fails_before_network(self):
        # Act & Assert
        with pytest.raises(ChallengeRequestFailed, match="client_id"):
            await self.client.request_challenge(
                AuthRequestParams(redirect_uri="https://rp.example/cb")
            )
        self.client._http_client.post.assert_not_awaited()

    async def test_server_error_is_normalized(self):
        # Arrange
        self.client._http_client.post.return_value = make_response(
            500, {"error": "internal"}
        )

        # Act & Assert
        with pytest.raises(ChallengeRequestFailed, match="500"):
            await self.client.request_challenge(self.params)

    async def test_network_error_is_normalized(self):
        # Arrange
        self.client._http_client.post.side_effect = httpx.ConnectError("refused")

        # Act & Assert
        with pytest.raises(ChallengeRequestFailed, match="ConnectError"):
            await self.client.request_challenge(self.params)

    async def test_malformed_body_is_rejected(self):
        # Arrange
        self.client._http_client.post.return_value = make_response(200, {"nonce": 1})

        # Act & Assert
        with pytest.raises(ChallengeRequestFailed, match="Invalid challenge"):
            await self.client.request_challenge(self.params)

    async def test_empty_challenge_is_rejected(self):
        # Arrange
        self.client._http_client.post.return_value = make_response(
            200, {"challenge": ""}
        )

        # Act & Assert
        with pytest.raises(ChallengeRequestFailed):
            await self.client.request_challenge(self.params)
