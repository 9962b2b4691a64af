"""HueApiClient for the Hue Bridge CLIP v2 resource API.

This module contains the client that handles all communication with the
Philips Hue Bridge: discovery, API key creation, scene listing and recall.
It holds no state beyond the base URL and the credential.
"""

import asyncio
import functools
import logging
from concurrent.futures import ThreadPoolExecutor

import requests
import urllib3
from requests.adapters import HTTPAdapter
from urllib3.exceptions import InsecureRequestWarning
from urllib3.exceptions import TimeoutError as Urllib3TimeoutError
from urllib3.util.retry import Retry

from core.config import API_VERSION, DISCOVERY_URL, MAX_RETRIES, REQUEST_TIMEOUT
from core.errors import (
    AuthenticationError,
    BridgeApiError,
    ConnectivityError,
    DiscoveryError,
    HueError,
    LinkButtonError,
    NotFoundError,
    ProtocolError,
    RateLimitError,
    ServerError,
)
from models.types import DiscoveredBridge

logger = logging.getLogger(__name__)

# Disable SSL warnings for the bridge's self-signed certificate
urllib3.disable_warnings(InsecureRequestWarning)

RETRY_BACKOFF_FACTOR = 0.2
RETRY_STATUS_CODES = tuple(range(500, 600))

# All bridge I/O runs on this one worker, so a client's session is never
# used from two threads at once
_bridge_executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix='hue-bridge')


async def call_bridge(func, *args):
    """Run a blocking bridge call on the bridge worker and await its result."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(_bridge_executor, functools.partial(func, *args))


def build_retry() -> Retry:
    """Retry policy for bridge requests.

    Connection failures are retried for any request, read failures and 5xx
    responses only for idempotent methods. 4xx responses are never retried,
    including a 429 that carries Retry-After. After the budget is spent the
    last response is returned as-is so the status can be classified.
    """
    return Retry(
        total=MAX_RETRIES,
        connect=MAX_RETRIES,
        read=MAX_RETRIES,
        status=MAX_RETRIES,
        backoff_factor=RETRY_BACKOFF_FACTOR,
        status_forcelist=RETRY_STATUS_CODES,
        allowed_methods=Retry.DEFAULT_ALLOWED_METHODS,
        respect_retry_after_header=False,
        raise_on_status=False,
    )


class HueApiClient:
    """Authenticated client for one Hue Bridge using API v2."""

    def __init__(self, bridge_ip: str, api_key: str):
        """Initialise HueApiClient.

        Args:
            bridge_ip: Bridge IP address or hostname
            api_key: API key (the 'username' returned by create_api_key)
        """
        self.bridge_ip = bridge_ip
        self.base_url = f"https://{bridge_ip}/clip/{API_VERSION}"
        self.session = requests.Session()
        self.session.verify = False  # Accept the bridge's self-signed certificate
        self.session.headers.update({'hue-application-key': api_key})

        adapter = HTTPAdapter(max_retries=build_retry())
        self.session.mount('https://', adapter)
        self.session.mount('http://', adapter)

    @staticmethod
    def discover_bridges() -> list[DiscoveredBridge]:
        """Discover Hue bridges on the network using the Philips discovery service.

        Returns:
            List of bridge dicts with keys: id, internalipaddress and optionally port

        Raises:
            DiscoveryError: If the discovery service can't be reached or
                returns something other than a list
        """
        try:
            response = requests.get(DISCOVERY_URL, timeout=REQUEST_TIMEOUT)
            response.raise_for_status()
            bridges = response.json()
        except requests.exceptions.RequestException as e:
            raise DiscoveryError(f"Failed to discover Hue bridges: {e}") from e

        if not isinstance(bridges, list):
            raise DiscoveryError("Failed to discover Hue bridges: unexpected response from discovery service")

        return bridges

    @staticmethod
    def create_api_key(bridge_ip: str, app_name: str, device_name: str) -> str:
        """Create a new API key via link button authentication.

        The link button on the bridge must have been pressed within the last
        30 seconds.

        Args:
            bridge_ip: Bridge IP address
            app_name: Application part of the devicetype
            device_name: Device part of the devicetype

        Returns:
            The new API key (username)

        Raises:
            LinkButtonError: Bridge returned an error (e.g. link button not pressed)
            ProtocolError: Response matched neither the success nor the error shape
            ConnectivityError: Bridge could not be reached
        """
        url = f"https://{bridge_ip}/api"
        payload = {'devicetype': f"{app_name}#{device_name}"}

        try:
            response = requests.post(
                url,
                json=payload,
                timeout=REQUEST_TIMEOUT,
                verify=False,  # Self-signed certificate
            )
            data = response.json()
        except requests.exceptions.JSONDecodeError as e:
            raise ProtocolError(f"Unexpected response format from Hue bridge: {e}") from e
        except requests.exceptions.RequestException as e:
            raise ConnectivityError(f"Failed to create API key: {e}") from e

        if not isinstance(data, list) or not data or not isinstance(data[0], dict):
            raise ProtocolError('Unexpected response format from Hue bridge')

        result = data[0]

        success = result.get('success')
        if success:
            if isinstance(success, list):
                success = success[0]
            username = success.get('username') if isinstance(success, dict) else None
            if username:
                return username

        error = result.get('error')
        if isinstance(error, dict):
            raise LinkButtonError(error.get('description', 'Unknown error'), error.get('type'))

        raise ProtocolError('Unexpected response format from Hue bridge')

    def _request(self, method: str, endpoint: str, data: dict | None = None) -> list[dict]:
        """Make a request to the bridge and unwrap the v2 response envelope.

        Returns:
            The envelope's data array

        Raises:
            HueError: Classified transport, HTTP or envelope error
        """
        url = f"{self.base_url}{endpoint}"

        try:
            response = self.session.request(method, url, json=data, timeout=REQUEST_TIMEOUT)
            response.raise_for_status()
            result = response.json()
        except requests.exceptions.JSONDecodeError as e:
            raise ProtocolError(f"Invalid JSON from Hue bridge: {e}") from e
        except requests.exceptions.RequestException as e:
            raise self._classify_error(e) from e

        # v2 API returns {errors: [], data: [...]}
        if not isinstance(result, dict) or not isinstance(result.get('data'), list):
            raise ProtocolError('Unexpected response format from Hue bridge')

        errors = result.get('errors') or []
        if errors:
            descriptions = ', '.join(
                e.get('description', 'Unknown error') if isinstance(e, dict) else str(e) for e in errors
            )
            raise BridgeApiError(f"Hue API errors: {descriptions}")

        return result['data']

    @staticmethod
    def _classify_error(error: requests.exceptions.RequestException) -> HueError:
        """Translate a requests exception into the HueError taxonomy."""
        response = getattr(error, 'response', None)

        if response is not None:
            status = response.status_code
            if status in (401, 403):
                return AuthenticationError('Authentication failed - please check your API key')
            if status == 404:
                return NotFoundError('Resource not found on Hue bridge')
            if status == 429:
                return RateLimitError('Rate limit exceeded - too many requests to Hue bridge')
            if status >= 500:
                return ServerError('Hue bridge server error')

        # Exhausted read retries surface as ConnectionError(MaxRetryError(ReadTimeoutError))
        reason = getattr(error.args[0], 'reason', None) if error.args else None
        if isinstance(error, requests.exceptions.Timeout) or isinstance(reason, Urllib3TimeoutError):
            return ConnectivityError('Connection to Hue bridge timed out')
        if isinstance(error, requests.exceptions.ConnectionError) and not isinstance(
            error, requests.exceptions.SSLError
        ):
            return ConnectivityError('Cannot connect to Hue bridge - check bridge IP address')

        return BridgeApiError(f"Hue API error: {error}")

    def get_scenes(self) -> list[dict]:
        """Get all scenes (v2 API)."""
        return self._request('GET', '/resource/scene')

    def get_lights(self) -> list[dict]:
        """Get all lights with their current state (v2 API)."""
        return self._request('GET', '/resource/light')

    def get_scene(self, scene_id: str) -> dict:
        """Get a single scene by ID.

        Raises:
            NotFoundError: The bridge returned an empty data array
        """
        data = self._request('GET', f'/resource/scene/{scene_id}')
        if not data:
            raise NotFoundError(f"Scene {scene_id} not found")
        return data[0]

    def recall_scene(self, scene_id: str, transition_ms: int | None = None):
        """Activate a scene, optionally fading in over transition_ms milliseconds.

        The duration field is left out entirely when no positive duration is
        given; the bridge then uses its default transition.
        """
        recall = {'action': 'active'}
        if transition_ms is not None and transition_ms > 0:
            recall['duration'] = transition_ms

        self._request('PUT', f'/resource/scene/{scene_id}', {'recall': recall})

    def test_connection(self) -> bool:
        """Check the bridge is reachable. True on any 2xx response, False on any failure."""
        try:
            response = self.session.request('GET', f"{self.base_url}/resource", timeout=REQUEST_TIMEOUT)
            response.raise_for_status()
            return True
        except requests.exceptions.RequestException as e:
            logger.debug("Connection test to %s failed: %s", self.bridge_ip, e)
            return False

    def close(self):
        """Close the underlying HTTP session."""
        self.session.close()

