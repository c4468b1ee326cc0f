"""
Graph Sign-in Module

MSAL public-client sign-in for the Out of Office Assistant and a small
requests-based client that attaches the bearer token.

The token cache is persisted in ~/.outlook_automation/token_cache.json; a
cached account is tried silently before any prompt is shown.

@author: Generated for outlook_automation repository (Python Graph implementation)
"""

import logging
import msal
import requests
from typing import Optional, Dict, Any, List
from pathlib import Path

from .exceptions import GraphRequestError


logger = logging.getLogger("outlook_automation")

LOGIN_AUTHORITY = "https://login.microsoftonline.com"
CACHE_FILE_NAME = "token_cache.json"

DEFAULT_SCOPES = [
    "User.Read",
    "Calendars.ReadWrite",
    "MailboxSettings.ReadWrite",
    "Files.ReadWrite"
]

PROFILE_FIELDS = "displayName,givenName,surname,mail,userPrincipalName"


class GraphAuthenticator:
    """
    Delegated sign-in with a persisted MSAL token cache.

    Args:
        client_id: Application (client) ID of the Azure AD app registration
        tenant_id: Directory ID, or "common"
        scopes: Delegated permissions to request
        cache_dir: Where token_cache.json lives (default: ~/.outlook_automation)
    """

    def __init__(self, client_id: str, tenant_id: str = "common", scopes: list = None,
                 cache_dir: Optional[Path] = None):
        self.client_id = client_id
        self.tenant_id = tenant_id
        self.scopes = scopes or list(DEFAULT_SCOPES)
        self.authority = f"{LOGIN_AUTHORITY}/{tenant_id}"

        folder = cache_dir or Path.home() / ".outlook_automation"
        folder.mkdir(parents=True, exist_ok=True)
        self.cache_file = folder / CACHE_FILE_NAME
        self.token_cache = self._load_cache()
        self.app = self._build_app()

    def _build_app(self) -> msal.PublicClientApplication:
        return msal.PublicClientApplication(
            client_id=self.client_id,
            authority=self.authority,
            token_cache=self.token_cache
        )

    def _load_cache(self) -> msal.SerializableTokenCache:
        cache = msal.SerializableTokenCache()
        if self.cache_file.exists():
            cache.deserialize(self.cache_file.read_text())
        return cache

    def _persist_cache(self):
        if self.token_cache.has_state_changed:
            self.cache_file.write_text(self.token_cache.serialize())

    def _try_silent(self, scopes: List[str]) -> Optional[str]:
        for account in self.app.get_accounts():
            result = self.app.acquire_token_silent(scopes, account=account)
            if result and "access_token" in result:
                logger.info(f"Reusing cached sign-in of {account.get('username', 'unknown account')}")
                return result["access_token"]
        return None

    def acquire_token(self, scopes: Optional[List[str]] = None, use_device_flow: bool = True) -> str:
        """
        Bearer token for `scopes` (default: the authenticator's scopes).

        The cached account is used when possible; otherwise the user signs in
        with a device code, or in the browser when use_device_flow is False.

        Raises:
            GraphRequestError: Sign-in failed or was cancelled
        """
        scopes = scopes or self.scopes

        token = self._try_silent(scopes)
        if token:
            return token

        result = self._device_code_sign_in(scopes) if use_device_flow else self._browser_sign_in(scopes)
        if "access_token" not in result:
            reason = result.get("error_description") or result.get("error") or "no token returned"
            raise GraphRequestError(f"Authentication failed: {reason}")

        self._persist_cache()
        username = result.get("id_token_claims", {}).get("preferred_username", "unknown account")
        logger.info(f"Signed in as {username}")
        return result["access_token"]

    def get_access_token(self, use_device_flow: bool = True) -> Optional[str]:
        """Like acquire_token(), but logs the failure and returns None."""
        try:
            return self.acquire_token(use_device_flow=use_device_flow)
        except GraphRequestError as e:
            logger.error(str(e))
            return None

    def _device_code_sign_in(self, scopes: List[str]) -> Dict[str, Any]:
        flow = self.app.initiate_device_flow(scopes=scopes)
        if "user_code" not in flow:
            return flow

        # Shown on stdout: the user must act on it
        print(f"\n{flow['message']}\n")
        print("Waiting for sign-in to complete...")
        return self.app.acquire_token_by_device_flow(flow)

    def _browser_sign_in(self, scopes: List[str]) -> Dict[str, Any]:
        logger.info("Opening browser for sign-in")
        return self.app.acquire_token_interactive(scopes=scopes, prompt="select_account")

    def get_account_info(self) -> Optional[Dict[str, Any]]:
        """First cached MSAL account, or None when nobody has signed in."""
        accounts = self.app.get_accounts()
        return accounts[0] if accounts else None

    def clear_cache(self):
        """Forget the cached sign-in."""
        if self.cache_file.exists():
            self.cache_file.unlink()
        self.token_cache = msal.SerializableTokenCache()
        self.app = self._build_app()
        logger.info("Token cache cleared")


class GraphClient:
    """
    Authorised access to one Graph endpoint (e.g. https://graph.microsoft.com/v1.0).

    The token is fetched lazily on the first request and reused afterwards.
    """

    def __init__(self, authenticator: GraphAuthenticator, base_url: str = "https://graph.microsoft.com/v1.0"):
        self.authenticator = authenticator
        self.base_url = base_url
        self._access_token = None

    def get_headers(self, content_type: str = "application/json") -> Dict[str, str]:
        """Request headers carrying the bearer token."""
        if not self._access_token:
            self._access_token = self.authenticator.acquire_token()
        return {
            "Authorization": f"Bearer {self._access_token}",
            "Content-Type": content_type,
            "Accept": "application/json"
        }

    def refresh_token(self):
        """Drop the held token so the next request acquires a new one."""
        self._access_token = None

    def get_current_user(self) -> Dict[str, Any]:
        """Profile of the signed-in user (GET /me)."""
        response = requests.get(f"{self.base_url}/me", headers=self.get_headers(),
                                params={"$select": PROFILE_FIELDS})
        check_response(response, "Failed to read user profile")
        return response.json()


def check_response(response: requests.Response, action: str):
    """
    Turn an HTTP error status into GraphRequestError.

    Args:
        response: Graph response
        action: What was being attempted; becomes the message prefix
    """
    if response.status_code < 400:
        return
    body = response.text or ""
    message = f"{action}: {response.status_code} {body}".strip()
    logger.error(message)
    raise GraphRequestError(message, status_code=response.status_code, body=body)


def family_name_from_user(user: Optional[Dict[str, Any]]) -> str:
    """
    Name used in meeting subjects ("<name> BT", "<name> OFF", ...).

    The directory surname when set, else the first word of displayName,
    else "User".
    """
    user = user or {}
    surname = (user.get("surname") or "").strip()
    if surname:
        return surname
    words = (user.get("displayName") or "").split()
    return words[0] if words else "User"


def create_authenticator_from_config(config: Dict[str, Any]) -> GraphAuthenticator:
    """GraphAuthenticator built from a Config.to_dict() style mapping."""
    return GraphAuthenticator(
        client_id=config.get("client_id"),
        tenant_id=config.get("tenant_id", "common"),
        scopes=config.get("scopes", list(DEFAULT_SCOPES))
    )
