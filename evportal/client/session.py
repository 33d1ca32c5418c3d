"""
Authenticated API session for the portal client.

Holds the base URL, the JWT pair and the request timeout. Nothing here is
global: callers create a session, hand it to ``PortalClient`` and decide what
"logout" means through ``on_logout``.
"""
import logging
import os

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = 'http://localhost:8000'
DEFAULT_TIMEOUT = 15.0


class PortalSession:
    def __init__(self, base_url=None, token=None, refresh_token=None, timeout=None, on_logout=None):
        self.base_url = (base_url or os.environ.get('EVPORTAL_API_URL', DEFAULT_BASE_URL)).rstrip('/')
        self.token = token
        self.refresh_token = refresh_token
        if timeout is None:
            timeout = float(os.environ.get('EVPORTAL_API_TIMEOUT', DEFAULT_TIMEOUT))
        self.timeout = timeout
        self.on_logout = on_logout

    @property
    def is_authenticated(self):
        return bool(self.token)

    def url(self, path):
        return f"{self.base_url}/api/{path.lstrip('/')}"

    def headers(self):
        headers = {'Content-Type': 'application/json', 'Accept': 'application/json'}
        if self.token:
            headers['Authorization'] = f'Bearer {self.token}'
        return headers

    def set_tokens(self, access, refresh=None):
        self.token = access
        if refresh:
            self.refresh_token = refresh

    def clear(self):
        """Drop the credentials and notify the owner (e.g. redirect to login)"""
        had_token = self.token is not None
        self.token = None
        self.refresh_token = None
        if had_token:
            logger.info("Portal session cleared")
        if self.on_logout is not None:
            self.on_logout()
