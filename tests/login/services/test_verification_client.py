from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from dauth.login.models.challenge import VerificationRequest
from dauth.login.models.errors import VerificationFailed
from dauth.login.services.verification import VerificationClient


def make_response(status_code, body):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = body
    return response


class TestVerify:
    def setup_method(self):
        # Arrange
        self.client = VerificationClient("https://auth.example.com/api/wallet/verify")
        self.client._http_client = AsyncMock()
        self.request = VerificationRequest(
            wallet_address="0xabc",
            public_key="pub-key-1",
            signature="very-secret-signature",
            client_id="c1",
            redirect_uri="https://rp.example/cb",
            state="xyz",
            email="a@x.com",
        )

    async def test_returns_authorization_code(self):
        # Arrange
        self.client._http_client.post.return_value = make_response(
            200, {"code": "AUTHCODE1"}
        )

        # Act
        code = await self.client.verify(self.request)

        # Assert
        assert code == "AUTHCODE1"
        body = self.client._http_client.post.call_args[1]["json"]
        assert body == {
            "walletAddress": "0xabc",
            "publicKey": "pub-key-1",
            "signature": "very-secret-signature",
            "client_id": "c1",
            "redirect_uri": "https://rp.example/cb",
            "state": "xyz",
            "email": "a@x.com",
        }

    async def test_rejection_does_not_leak_signature(self):
        # Arrange
        self.client._http_client.post.return_value = make_response(
            401, {"error": "bad signature very-secret-signature"}
        )

        # Act
        with pytest.raises(VerificationFailed) as exc_info:
            await self.client.verify(self.request)

        # Assert
        assert "401" in str(exc_info.value)
        assert "very-secret-signature" not in str(exc_info.value)

    async def test_network_error_is_normalized(self):
        # Arrange
        self.client._http_client.post.side_effect = httpx.ReadTimeout("slow")

        # Act & Assert
        with pytest.raises(VerificationFailed, match="ReadTimeout"):
            await self.client.verify(self.request)

    async def test_missing_code_is_rejected(self):
        # Arrange
        self.client._http_client.post.return_value = make_response(200, {})

        # Act & Assert
        with pytest.raises(VerificationFailed):
            await self.client.verify(self.request)

    def test_request_repr_hides_signature(self):
        assert "very-secret-signature" not in repr(self.request)
