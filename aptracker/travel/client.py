"""
HTTP clients for routing (OpenRouteService) and geocoding (Geoapify)
"""

import logging
import os
from typing import Dict, Optional, Tuple

import httpx

from .models import GeocodingResult, RouteResult


class RoutingClient:
    """
    Async client for the OpenRouteService directions API
    A missing API key is a valid state: callers fall back to estimates
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: float = 30,
        base_url: str = "https://api.openrouteservice.org",
    ):
        self.api_key = api_key or os.getenv("OPENROUTESERVICE_API_KEY")
        self.base_url = base_url
        self.timeout = timeout
        self.logger = logging.getLogger(__name__)

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    @property
    def headers(self) -> Dict[str, str]:
        """HTTP headers for API requests"""
        return {
            "Content-Type": "application/json",
            "Authorization": self.api_key or "",
        }

    async def driving_route(
        self,
        origin: Tuple[float, float],       # (lat, lng)
        destination: Tuple[float, float],  # (lat, lng)
    ) -> RouteResult:
        """
        Request a driving route between two points

        Args:
            origin: (lat, lng) of the start
            destination: (lat, lng) of the end

        Returns:
            RouteResult; success is False on any failure or when no route exists
        """
        if not self.configured:
            return RouteResult(success=False, error_message="routing API key not configured")

        origin_lat, origin_lng = origin
        dest_lat, dest_lng = destination
        # OpenRouteService takes [lng, lat] pairs
        body = {"coordinates": [[origin_lng, origin_lat], [dest_lng, dest_lat]]}

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    f"{self.base_url}/v2/directions/driving-car",
                    headers=self.headers,
                    json=body,
                )
                response.raise_for_status()

                data = response.json()
                if not isinstance(data, dict):
                    raise ValueError(f"expected a JSON object, got {type(data).__name__}")
                routes = data.get("routes") or []
                if not routes:
                    self.logger.warning(f"No route found from {origin} to {destination}")
                    return RouteResult(success=False, error_message="Route not found")

                summary = routes[0]["summary"]
                return RouteResult(
                    success=True,
                    duration_seconds=float(summary["duration"]),
                    distance_meters=float(summary["distance"]),
                )

        except httpx.HTTPError as e:
            self.logger.error(f"HTTP error requesting route: {e}")
            return RouteResult(success=False, error_message=str(e) or type(e).__name__)
        except (KeyError, TypeError, ValueError) as e:
            self.logger.error(f"Error parsing routing response: {e}")
            return RouteResult(success=False, error_message=f"invalid routing response: {e}")


class GeocodingClient:
    """
    Async client for the Geoapify geocoding API
    Queries are biased toward a fixed locality
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        locality: str = "Trento, Italy",
        country_code: str = "it",
        bias_lat: float = 46.0748,
        bias_lng: float = 11.1217,
        timeout: float = 30,
        base_url: str = "https://api.geoapify.com",
    ):
        self.api_key = api_key or os.getenv("GEOAPIFY_API_KEY")
        self.locality = locality
        self.country_code = country_code
        self.bias_lat = bias_lat
        self.bias_lng = bias_lng
        self.timeout = timeout
        self.base_url = base_url
        self.logger = logging.getLogger(__name__)

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def build_params(self, address: str) -> Dict[str, str]:
        """Query parameters for one geocoding request"""
        return {
            "text": f"{address}, {self.locality}",
            "filter": f"countrycode:{self.country_code}",
            "bias": f"proximity:{self.bias_lng},{self.bias_lat}",
            "limit": "1",
            "apiKey": self.api_key or "",
        }

    async def geocode(self, address: str) -> GeocodingResult:
        """
        Geocode an address to coordinates

        Args:
            address: Free-text address

        Returns:
            GeocodingResult; success is False when not configured, not found or failed
        """
        if not self.configured:
            return GeocodingResult(
                query=address, success=False, message="GEOAPIFY_API_KEY not configured"
            )

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(
                    f"{self.base_url}/v1/geocode/search",
                    params=self.build_params(address),
                )
                response.raise_for_status()

                data = response.json()
                if not isinstance(data, dict):
                    raise ValueError(f"expected a JSON object, got {type(data).__name__}")
                features = data.get("features") or []
                if not features:
                    self.logger.warning(f"No geocoding results for address: {address}")
                    return GeocodingResult(query=address, success=False, message="Address not found")

                properties = features[0]["properties"]
                return GeocodingResult(
                    query=address,
                    success=True,
                    latitude=float(properties["lat"]),
                    longitude=float(properties["lon"]),
                    display_name=properties.get("formatted"),
                )

        except httpx.HTTPError as e:
            self.logger.error(f"HTTP error geocoding address {address}: {e}")
            return GeocodingResult(query=address, success=False, message="Geocoding request failed")
        except (KeyError, TypeError, ValueError) as e:
            self.logger.error(f"Error parsing geocoding response for {address}: {e}")
            return GeocodingResult(query=address, success=False, message="Invalid geocoding response")
