"""
Tests for geolocation collaborators and their construction from config.
"""

import json
from unittest.mock import Mock, patch

import httpx
import pytest

from internal.location import (
    CoordinateFix,
    GeolocationStatus,
    IpGeolocationProvider,
    NullGeolocationProvider,
    StaticGeolocationProvider,
    StaticPermissionGate,
)
from main import createGeolocationProvider


def makeResponse(payload, statusCode: int = 200) -> Mock:
    response = Mock()
    response.status_code = statusCode
    response.text = payload if isinstance(payload, str) else json.dumps(payload)
    return response


# ============================================================================
# IP Geolocation Tests
# ============================================================================


class TestIpGeolocationProvider:
    """Test ip-api.com based provider."""

    @pytest.mark.asyncio
    async def testSuccess(self):
        """Test successful lookup gives coordinate fix."""
        payload = {"status": "success", "lat": 48.8566, "lon": 2.3522, "city": "Paris"}
        with patch("httpx.AsyncClient.get") as mockGet:
            mockGet.return_value = makeResponse(payload)
            result = await IpGeolocationProvider().requestCoordinateFix()

        assert result == CoordinateFix(48.8566, 2.3522)
        assert mockGet.call_args.args[0] == IpGeolocationProvider.API_URL

    @pytest.mark.asyncio
    async def testFailStatus(self):
        """Test ip-api failure status is unavailable."""
        payload = {"status": "fail", "message": "private range"}
        with patch("httpx.AsyncClient.get") as mockGet:
            mockGet.return_value = makeResponse(payload)
            result = await IpGeolocationProvider().requestCoordinateFix()

        assert result == GeolocationStatus.UNAVAILABLE

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "response",
        [
            makeResponse({"status": "success"}),
            makeResponse({"status": "success", "lat": "north", "lon": 2.0}),
            makeResponse("not json"),
            makeResponse(["success"]),
            makeResponse({"status": "success", "lat": 1, "lon": 2}, statusCode=429),
        ],
    )
    async def testBadResponse(self, response):
        """Test broken responses are unavailable."""
        with patch("httpx.AsyncClient.get") as mockGet:
            mockGet.return_value = response
            result = await IpGeolocationProvider().requestCoordinateFix()

        assert result == GeolocationStatus.UNAVAILABLE

    @pytest.mark.asyncio
    async def testNetworkError(self):
        """Test transport errors are unavailable."""
        with patch("httpx.AsyncClient.get") as mockGet:
            mockGet.side_effect = httpx.ConnectError("no route")
            result = await IpGeolocationProvider().requestCoordinateFix()

        assert result == GeolocationStatus.UNAVAILABLE


# ============================================================================
# Static Collaborators Tests
# ============================================================================


class TestStaticCollaborators:
    """Test configuration driven collaborators."""

    @pytest.mark.asyncio
    async def testStaticProvider(self):
        """Test static provider returns configured coordinates."""
        provider = StaticGeolocationProvider(52.52, 13.405)
        assert await provider.requestCoordinateFix() == CoordinateFix(52.52, 13.405)

    @pytest.mark.asyncio
    async def testNullProvider(self):
        """Test null provider never has a fix."""
        assert await NullGeolocationProvider().requestCoordinateFix() == GeolocationStatus.UNAVAILABLE

    def testPermissionGatePrompt(self):
        """Test prompting is counted and doesn't grant permission."""
        gate = StaticPermissionGate()
        gate.requestPermission()

        assert gate.isGranted() is False
        assert gate.promptCount == 1


class TestCreateGeolocationProvider:
    """Test provider selection from [geolocation] config."""

    def testDefaultIsNull(self):
        """Test missing type means no location source."""
        assert isinstance(createGeolocationProvider({}), NullGeolocationProvider)

    def testStatic(self):
        """Test static provider with coordinates."""
        provider = createGeolocationProvider({"type": "static", "latitude": 48.8566, "longitude": 2.3522})
        assert isinstance(provider, StaticGeolocationProvider)
        assert provider.fix == CoordinateFix(48.8566, 2.3522)

    def testStaticWithoutCoordinates(self):
        """Test static provider requires coordinates."""
        with pytest.raises(ValueError):
            createGeolocationProvider({"type": "static", "latitude": 1.0})

    def testIp(self):
        """Test ip provider gets request timeout."""
        provider = createGeolocationProvider({"type": "ip", "request-timeout": 3})
        assert isinstance(provider, IpGeolocationProvider)
        assert provider.requestTimeout == 3

    def testUnknownType(self):
        """Test unknown provider type is rejected."""
        with pytest.raises(ValueError):
            createGeolocationProvider({"type": "gps"})
