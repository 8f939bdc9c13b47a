"""
CalcClient - HTTP client for the ezcalc JSON API.

Wraps /api/calculate, /api/history and /health with a pooled requests
session that retries transient server errors.
"""
from typing import Dict, List, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ezcalc.common import get_logger

logger = get_logger(__name__)


class CalcClientException(Exception):
    """Exception raised for network, HTTP or protocol errors."""
    pass


class CalcClient:
    def __init__(self, server_url: str, timeout: int = 30):
        """
        Args:
            server_url: Base URL of the server (e.g., 'http://localhost:8000')
            timeout: Per-request timeout in seconds
        """
        self.server_url = server_url.rstrip('/')
        self.timeout = timeout
        self._http_session = self._create_http_session()

    def _create_http_session(self) -> requests.Session:
        """Create HTTP session with connection pooling and retry logic."""
        session = requests.Session()

        retry_strategy = Retry(
            total=3,
            backoff_factor=0.5,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["GET", "POST", "DELETE"],
        )
        adapter = HTTPAdapter(
            max_retries=retry_strategy,
            pool_connections=10,
            pool_maxsize=10,
        )
        session.mount("http://", adapter)
        session.mount("https://", adapter)

        return session

    def _make_request(
        self,
        method: str,
        endpoint: str,
        data: Optional[Dict] = None,
        params: Optional[Dict] = None,
        accept_status=(),
    ) -> Dict:
        """
        Make an HTTP request and return the parsed JSON body.

        Status codes in `accept_status` are returned rather than raised; the
        API uses 400 for rejected calculations and still sends a JSON body.

        Raises:
            CalcClientException: On network or API errors
        """
        url = f"{self.server_url}{endpoint}"
        headers = {"Accept": "application/json"}

        try:
            response = self._http_session.request(
                method,
                url,
                headers=headers,
                json=data,
                params=params,
                timeout=self.timeout,
            )
            if response.status_code not in accept_status:
                response.raise_for_status()
            return response.json()

        except requests.exceptions.Timeout as e:
            logger.error(f"Request timeout: {endpoint}")
            raise CalcClientException(f"Request timeout: {e}")
        except requests.exceptions.ConnectionError as e:
            logger.error(f"Connection error: {endpoint}")
            raise CalcClientException(f"Connection error: {e}")
        except requests.exceptions.HTTPError as e:
            logger.error(f"HTTP error {response.status_code}: {endpoint}")
            raise CalcClientException(f"HTTP error: {e}")
        except requests.exceptions.RetryError as e:
            logger.error(f"Retries exhausted: {endpoint}")
            raise CalcClientException(f"Retries exhausted: {e}")
        except ValueError as e:
            # requests' JSONDecodeError subclasses both json's and ValueError
            logger.error(f"Invalid JSON response: {endpoint}")
            raise CalcClientException(f"Invalid JSON response: {e}")

    def __enter__(self):
        return self

    def __exit__(self, *args, **kwargs):
        self.close()

    def close(self):
        self._http_session.close()

    def calculate(self, operand1: float, operand2: float, operator: str) -> Dict:
        """
        Returns the response payload. A rejected calculation comes back with
        success=False and the error in "message".
        """
        return self._make_request(
            "POST",
            "/api/calculate",
            data={"operand1": operand1, "operand2": operand2, "operator": operator},
            accept_status=(400,),
        )

    def recent_history(self, limit: Optional[int] = None) -> List[Dict]:
        params = {"limit": limit} if limit is not None else None
        return self._make_request("GET", "/api/history", params=params)["history"]

    def clear_history(self) -> int:
        return self._make_request("DELETE", "/api/history")["deleted"]

    def health(self) -> Dict:
        return self._make_request("GET", "/health")
