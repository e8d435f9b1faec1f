"""
Carrier API integrations for tracking information.
Supports FedEx and UPS.
"""

import base64
from abc import abstractmethod
from datetime import datetime, timedelta
from typing import Optional
import aiohttp
from loguru import logger

from parcelbot.models import TrackingData, TrackingStep
from parcelbot.providers.base import NotFoundError, Provider, ProviderError


def _normalize(shipment_number: str) -> str:
    return shipment_number.strip().replace(" ", "").upper()


def _join_location(*parts: Optional[str]) -> str:
    return ", ".join(p for p in parts if p)


class OAuthCarrierProvider(Provider):
    """
    Carrier reached through an OAuth client-credentials API.

    Subclasses supply the token request and the tracking call; the access
    token is cached until shortly before it expires.
    """

    AUTH_URL: str = ""

    def __init__(self, client_id: str, client_secret: str, timeout: int = 30):
        self.client_id = client_id
        self.client_secret = client_secret
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self._access_token: Optional[str] = None
        self._token_expires: Optional[datetime] = None

    @abstractmethod
    def _auth_request(self) -> tuple[dict, dict]:
        """Form data and headers for the token request."""
        pass

    async def _get_access_token(self, session: aiohttp.ClientSession) -> str:
        """Get or refresh OAuth access token."""
        if self._access_token and self._token_expires and datetime.now() < self._token_expires:
            return self._access_token

        data, headers = self._auth_request()

        async with session.post(self.AUTH_URL, data=data, headers=headers) as resp:
            if resp.status == 200:
                result = await resp.json()
                self._access_token = result["access_token"]
                # Refresh a minute early
                expires_in = int(result.get("expires_in", 3600))
                self._token_expires = datetime.now() + timedelta(seconds=expires_in - 60)
                logger.debug(f"{self.get_name()} access token refreshed")
                return self._access_token
            else:
                error = await resp.text()
                raise ProviderError(f"{self.get_name()} auth failed: {resp.status} {error[:200]}")

    async def track(self, shipment_number: str) -> TrackingData:
        number = _normalize(shipment_number)

        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                token = await self._get_access_token(session)
                data = await self._fetch(session, token, number)
        except aiohttp.ClientError as e:
            raise ProviderError(f"{self.get_name()} request failed: {e}") from e

        return self._parse_response(number, data)

    @abstractmethod
    async def _fetch(self, session: aiohttp.ClientSession, token: str, number: str) -> dict:
        pass

    @abstractmethod
    def _parse_response(self, number: str, data: dict) -> TrackingData:
        pass


class FedExProvider(OAuthCarrierProvider):
    """
    FedEx Track API integration.

    Requires FedEx Developer credentials:
    - Client ID
    - Client Secret
    """

    AUTH_URL = "https://apis.fedex.com/oauth/token"
    TRACK_URL = "https://apis.fedex.com/track/v1/trackingnumbers"

    NOT_FOUND_CODES = {
        "TRACKING.TRACKINGNUMBER.NOTFOUND",
        "TRACKING.TRACKINGNUMBER.INVALID",
    }

    def get_name(self) -> str:
        return "FedEx"

    def matches_number(self, shipment_number: str) -> bool:
        tracking = _normalize(shipment_number)

        # 12, 15, 20 or 22 digits
        if len(tracking) in [12, 15, 20, 22] and tracking.isdigit():
            return True

        # Door Tag: DT + 12 digits
        return tracking.startswith("DT") and len(tracking) == 14 and tracking[2:].isdigit()

    def _auth_request(self) -> tuple[dict, dict]:
        data = {
            "grant_type": "client_credentials",
            "client_id": self.client_id,
            "client_secret": self.client_secret,
        }
        return data, {"Content-Type": "application/x-www-form-urlencoded"}

    async def _fetch(self, session: aiohttp.ClientSession, token: str, number: str) -> dict:
        headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
            "X-locale": "en_US",
        }

        payload = {
            "includeDetailedScans": True,
            "trackingInfo": [
                {
                    "trackingNumberInfo": {
                        "trackingNumber": number
                    }
                }
            ]
        }

        async with session.post(self.TRACK_URL, json=payload, headers=headers) as resp:
            if resp.status == 200:
                return await resp.json()
            if resp.status == 404:
                raise NotFoundError()
            error = await resp.text()
            raise ProviderError(f"FedEx tracking failed: {resp.status} {error[:200]}")

    def _parse_response(self, number: str, data: dict) -> TrackingData:
        """Parse FedEx API response."""
        results = data.get("output", {}).get("completeTrackResults", [])
        if not results:
            raise NotFoundError()

        track_results = results[0].get("trackResults") or [{}]
        track_result = track_results[0]

        error = track_result.get("error")
        if error:
            if error.get("code") in self.NOT_FOUND_CODES:
                raise NotFoundError()
            raise ProviderError(error.get("message") or error.get("code", "FedEx error"))

        steps = []
        # FedEx lists scans newest first
        for scan in reversed(track_result.get("scanEvents", [])):
            try:
                timestamp = datetime.fromisoformat(scan.get("date", "").replace("Z", "+00:00"))
            except ValueError:
                logger.warning(f"Skipping FedEx scan with bad date: {scan.get('date')!r}")
                continue

            location = scan.get("scanLocation", {})
            steps.append(TrackingStep(
                timestamp=timestamp,
                message=scan.get("eventDescription", ""),
                location=_join_location(location.get("city"), location.get("countryCode")),
            ))

        address = track_result.get("recipientInformation", {}).get("address", {})

        return TrackingData(
            shipment_number=number,
            provider_name=self.get_name(),
            destination=_join_location(address.get("city"), address.get("countryCode")),
            steps=steps,
        )


class UPSProvider(OAuthCarrierProvider):
    """
    UPS Tracking API integration.

    Requires UPS Developer credentials:
    - Client ID
    - Client Secret
    """

    AUTH_URL = "https://onlinetools.ups.com/security/v1/oauth/token"
    TRACK_URL = "https://onlinetools.ups.com/api/track/v1/details"

    def get_name(self) -> str:
        return "UPS"

    def matches_number(self, shipment_number: str) -> bool:
        tracking = _normalize(shipment_number)

        # 1Z + 16 characters
        if tracking.startswith("1Z") and len(tracking) == 18:
            return True

        # 18 digit tracking numbers
        return len(tracking) == 18 and tracking.isdigit()

    def _auth_request(self) -> tuple[dict, dict]:
        credentials = base64.b64encode(
            f"{self.client_id}:{self.client_secret}".encode()
        ).decode()

        headers = {
            "Authorization": f"Basic {credentials}",
            "Content-Type": "application/x-www-form-urlencoded",
        }
        return {"grant_type": "client_credentials"}, headers

    async def _fetch(self, session: aiohttp.ClientSession, token: str, number: str) -> dict:
        headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
            "transId": f"track-{number}",
            "transactionSrc": "parcelbot",
        }

        async with session.get(f"{self.TRACK_URL}/{number}", headers=headers) as resp:
            if resp.status == 200:
                return await resp.json()
            if resp.status == 404:
                raise NotFoundError()
            error = await resp.text()
            raise ProviderError(f"UPS tracking failed: {resp.status} {error[:200]}")

    def _parse_response(self, number: str, data: dict) -> TrackingData:
        """Parse UPS API response."""
        shipments = data.get("trackResponse", {}).get("shipment", [])
        if not shipments:
            raise NotFoundError()

        shipment = shipments[0]
        if shipment.get("warnings") and not shipment.get("package"):
            raise NotFoundError(shipment["warnings"][0].get("message", "shipment not found"))

        packages = shipment.get("package") or [{}]
        package = packages[0]

        steps = []
        # UPS lists activity newest first
        for activity in reversed(package.get("activity", [])):
            try:
                timestamp = datetime.strptime(
                    f"{activity.get('date', '')}{activity.get('time', '')}", "%Y%m%d%H%M%S"
                )
            except ValueError:
                logger.warning(f"Skipping UPS activity with bad date: {activity.get('date')!r}")
                continue

            address = activity.get("location", {}).get("address", {})
            steps.append(TrackingStep(
                timestamp=timestamp,
                message=activity.get("status", {}).get("description", "").strip(),
                location=_join_location(address.get("city"), address.get("country")),
            ))

        destination = ""
        for package_address in package.get("packageAddress", []):
            if package_address.get("type") == "DESTINATION":
                address = package_address.get("address", {})
                destination = _join_location(address.get("city"), address.get("country"))

        return TrackingData(
            shipment_number=number,
            provider_name=self.get_name(),
            destination=destination,
            steps=steps,
        )
