"""
Credential providers for the YouTube Data API.

The API client only needs something that can produce the keyword arguments
for ``googleapiclient.discovery.build``. OAuth (installed-app flow with an
on-disk token cache) and plain API keys are supported; tests use a static
token.
"""

import logging
import threading
from pathlib import Path

from google.auth.exceptions import RefreshError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow

from .config import SCOPES
from .errors import AuthError

logger = logging.getLogger(__name__)


class OAuthCredentialProvider:
    """
    OAuth2 installed-app credentials, cached in a token file between runs.

    Credentials are loaded (or obtained through the browser flow) once and
    shared by every worker thread.
    """

    def __init__(self, client_secret_path, token_cache_path, scopes=None):
        self._secrets_file = Path(client_secret_path)
        self._token_file = Path(token_cache_path)
        self._scopes = list(scopes or SCOPES)
        self._creds = None
        self._lock = threading.Lock()

    def get_credentials(self):
        """
        Handles the OAuth2 flow and returns valid credentials.

        Raises:
            AuthError: If the client secret is missing or the cached token cannot be refreshed
        """
        with self._lock:
            if self._creds is not None and self._creds.valid:
                return self._creds

            creds = self._creds
            if creds is None and self._token_file.exists():
                creds = self._load_cached()

            if not creds or not creds.valid:
                if creds and creds.expired and creds.refresh_token:
                    try:
                        creds.refresh(Request())
                    except RefreshError as e:
                        raise AuthError(
                            f"Could not refresh the cached token in {self._token_file}: {e}. "
                            "Delete the token cache and run again to re-authenticate."
                        ) from e
                else:
                    creds = self._run_flow()

                # Save token
                self._token_file.write_text(creds.to_json(), encoding='utf-8')
                logger.info(f"Saved OAuth token to {self._token_file}")

            self._creds = creds
            return creds

    def _load_cached(self):
        try:
            return Credentials.from_authorized_user_file(str(self._token_file), self._scopes)
        except (ValueError, OSError) as e:
            logger.warning(f"Ignoring unreadable token cache {self._token_file}: {e}")
            return None

    def _run_flow(self):
        if not self._secrets_file.exists():
            raise AuthError(
                f"Missing {self._secrets_file}. Download the OAuth client JSON from the "
                "Credentials section of the Google Cloud console."
            )
        logger.info("Opening browser for Google sign-in...")
        flow = InstalledAppFlow.from_client_secrets_file(str(self._secrets_file), self._scopes)
        return flow.run_local_server(port=0)

    def build_kwargs(self):
        return {'credentials': self.get_credentials()}


class ApiKeyProvider:
    """A simple API key. Enough for public videos and channels."""

    def __init__(self, api_key):
        if not api_key:
            raise AuthError("An empty API key was supplied")
        self._api_key = api_key

    def build_kwargs(self):
        return {'developerKey': self._api_key}


class StaticTokenProvider:
    """A fixed bearer token with no refresh. Useful for tests and short-lived tokens."""

    def __init__(self, token):
        self._creds = Credentials(token=token)

    def get_credentials(self):
        return self._creds

    def build_kwargs(self):
        return {'credentials': self._creds}
