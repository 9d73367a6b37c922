# Copyright 2025 Roger Cibrian
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""ConfigMgr AdminService client.

The AdminService exposes the site's WMI classes over OData at
https://<server>/AdminService/wmi/. This client wraps the handful of calls
needed to publish an application:

- get_authoring_scope:            POST SMS_Identification.GetSiteID
- create_application:             POST SMS_Application {"SDMPackageXML": ...}
- get_folder / create_folder:     SMS_ObjectContainerNode
- move_object:                    POST SMS_ObjectContainerItem.MoveMembers
- get_application:                GET SMS_Application?$filter=LocalizedDisplayName eq '...'
- get_distribution_point_group:   GET SMS_DistributionPointGroup?$filter=Name eq '...'
- get_group_content:              GET SMS_DPGroupContentInfo?$filter=...
- start_distribution:             POST SMS_DistributionPointGroup('<GroupID>')/AdminService.AddPackages

Design Notes:

- **Authentication:** Windows authentication. NTLM with explicit
  credentials (CMPKG_USERNAME/CMPKG_PASSWORD); otherwise Negotiate with the
  logged-on identity, which needs a Windows host (SSPI).
- **Applications:** The application and its MSI deployment type are created
  together by posting the serialized AppMgmtDigest (see
  cmpkgtool.build.sdm); there is no separate deployment type call.
- **Retries:** Only GET is retried (429/5xx with backoff). Creating an
  application twice is worse than failing once, so POSTs are not.
- **Errors:** Transport failures and non-2xx responses raise NetworkError with
  the server's OData error message when one is present. Errors are chained.
- **Quoting:** OData string literals are single-quoted, embedded quotes
  doubled (see odata_quote).

Example:
    ```python
    from cmpkgtool.cm import AdminServiceClient

    with AdminServiceClient("cm01.corp.example.com", auth=("CORP\\\\svc", "...")) as client:
        app = client.get_application("Acme Widget 1.0")
    ```
"""

from __future__ import annotations

import sys
from typing import Any

import requests
from requests.adapters import HTTPAdapter
from requests.auth import AuthBase
from requests_ntlm import HttpNtlmAuth
from urllib3.util.retry import Retry

from cmpkgtool.build import ApplicationDigest, scope_id_from_site_id
from cmpkgtool.exceptions import ConfigError, NetworkError
from cmpkgtool.logging import get_global_logger

# SMS_ObjectContainerNode.ObjectType for application folders.
APPLICATION_OBJECT_TYPE = 6000
# ContainerNodeID of the Applications root node.
ROOT_CONTAINER_ID = 0

USER_AGENT = "cmpkg/0.1"


def odata_quote(value: str) -> str:
    """Quote a string literal for an OData $filter expression."""
    return "'" + value.replace("'", "''") + "'"


def _negotiate_auth() -> AuthBase:
    from requests_negotiate_sspi import HttpNegotiateAuth

    return HttpNegotiateAuth()


def windows_auth(credentials: tuple[str, str] | None = None) -> AuthBase:
    """Return the requests auth handler for the AdminService.

    Args:
        credentials: (username, password) for NTLM, e.g. ("CORP\\\\svc", "...").
            None uses the logged-on Windows identity via Negotiate.

    Raises:
        ConfigError: If no credentials are given on a non-Windows host.
    """
    if credentials is not None:
        username, password = credentials
        return HttpNtlmAuth(username, password)
    if not sys.platform.startswith("win"):
        raise ConfigError(
            "Integrated Windows authentication is only available on Windows. "
            "Set CMPKG_USERNAME and CMPKG_PASSWORD to use NTLM."
        )
    return _negotiate_auth()


def make_session(
    auth: AuthBase | None = None, verify_ssl: bool = True
) -> requests.Session:
    """
    Create a requests.Session for the AdminService.

    - Retries idempotent GETs on common transient status codes.
    - Applies exponential backoff.
    - Sends and accepts JSON.
    """
    s = requests.Session()
    retries = Retry(
        total=3,
        backoff_factor=0.5,
        status_forcelist=(429, 500, 502, 503, 504),
        allowed_methods=("GET",),
        raise_on_status=False,
    )
    s.headers.update(
        {
            "User-Agent": USER_AGENT,
            "Accept": "application/json",
            "Content-Type": "application/json",
        }
    )
    if auth is not None:
        s.auth = auth
    s.verify = verify_ssl
    s.mount("http://", HTTPAdapter(max_retries=retries))
    s.mount("https://", HTTPAdapter(max_retries=retries))
    return s


def _error_message(resp: requests.Response) -> str:
    """Extract the OData error message from a failed response."""
    try:
        payload = resp.json()
    except ValueError:
        return resp.text.strip() or resp.reason or "no response body"
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict):
            message = error.get("message")
            if isinstance(message, dict):
                message = message.get("value")
            if message:
                return str(message)
        if payload.get("Message"):
            return str(payload["Message"])
    return resp.text.strip() or resp.reason or "no response body"


def _first_entity(payload: dict[str, Any]) -> dict[str, Any]:
    """Return the entity from a POST response.

    Some AdminService actions return the entity directly, others wrap it in
    an OData "value" array.
    """
    value = payload.get("value")
    if isinstance(value, list):
        return value[0] if value else {}
    if isinstance(value, dict):
        return value
    return payload


class AdminServiceClient:
    """Thin client over the AdminService WMI route.

    Args:
        server: AdminService host name, or a full base URL ending in "/wmi/".
        auth: Optional (username, password) for NTLM. None uses the logged-on
            Windows identity (Negotiate).
        verify_ssl: Verify the server certificate. Default is True.
        timeout: Per-request timeout in seconds. Default is 60.
        session: Pre-built session (tests, custom auth). Overrides auth
            and verify_ssl.
    """

    def __init__(
        self,
        server: str,
        *,
        auth: tuple[str, str] | None = None,
        verify_ssl: bool = True,
        timeout: int = 60,
        session: requests.Session | None = None,
    ) -> None:
        if not server:
            raise ConfigError("AdminService server is not configured")
        if server.startswith(("http://", "https://")):
            self.base_url = server.rstrip("/") + "/"
        else:
            self.base_url = f"https://{server}/AdminService/wmi/"
        self.timeout = timeout
        if session is None:
            session = make_session(auth=windows_auth(auth), verify_ssl=verify_ssl)
        self.session = session

    @classmethod
    def from_settings(
        cls, settings: dict[str, Any], auth: tuple[str, str] | None = None
    ) -> AdminServiceClient:
        """Build a client from the "site" section of the settings."""
        site = settings.get("site", {}) or {}
        return cls(
            site.get("server") or "",
            auth=auth,
            verify_ssl=bool(site.get("verify_ssl", True)),
            timeout=int(site.get("timeout", 60)),
        )

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> AdminServiceClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ------------------------------------------------------------------ #
    # Transport
    # ------------------------------------------------------------------ #

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        logger = get_global_logger()
        url = self.base_url + path
        if params:
            logger.debug("API", f"{method} {path} {params}")
        else:
            logger.debug("API", f"{method} {path}")

        try:
            resp = self.session.request(
                method, url, params=params, json=json, timeout=self.timeout
            )
        except requests.RequestException as err:
            raise NetworkError(f"{method} {path} failed: {err}") from err

        logger.debug("API", f"Response: {resp.status_code} {resp.reason}")

        if not resp.ok:
            raise NetworkError(
                f"{method} {path} returned HTTP {resp.status_code}: "
                f"{_error_message(resp)}",
                status_code=resp.status_code,
            )

        if not resp.content:
            return {}
        try:
            payload = resp.json()
        except ValueError as err:
            raise NetworkError(f"{method} {path} returned invalid JSON") from err
        if not isinstance(payload, dict):
            return {"value": payload}
        return payload

    def _query(self, path: str, odata_filter: str) -> list[dict[str, Any]]:
        payload = self._request("GET", path, params={"$filter": odata_filter})
        value = payload.get("value", [])
        return value if isinstance(value, list) else [value]

    # ------------------------------------------------------------------ #
    # Applications
    # ------------------------------------------------------------------ #

    def get_authoring_scope(self) -> str:
        """Return the site's authoring scope ("ScopeId_<site GUID>")."""
        payload = self._request("POST", "SMS_Identification.GetSiteID", json={})
        site_id = _first_entity(payload).get("SiteID")
        if not site_id:
            raise NetworkError("SMS_Identification.GetSiteID returned no SiteID")
        return scope_id_from_site_id(str(site_id))

    def create_application(self, digest: ApplicationDigest) -> dict[str, Any]:
        """Create an application (with its deployment type) from a digest."""
        body = {"SDMPackageXML": digest.xml}
        return _first_entity(self._request("POST", "SMS_Application", json=body))

    def get_application(self, name: str) -> dict[str, Any] | None:
        """Return the latest revision of the named application, or None."""
        matches = self._query(
            "SMS_Application",
            f"LocalizedDisplayName eq {odata_quote(name)} and IsLatest eq true",
        )
        return matches[0] if matches else None

    # ------------------------------------------------------------------ #
    # Folders
    # ------------------------------------------------------------------ #

    def get_folder(
        self, name: str, parent_id: int = ROOT_CONTAINER_ID
    ) -> dict[str, Any] | None:
        """Return the application folder 'name' under 'parent_id', or None."""
        matches = self._query(
            "SMS_ObjectContainerNode",
            f"Name eq {odata_quote(name)} and ObjectType eq {APPLICATION_OBJECT_TYPE}"
            f" and ParentContainerNodeID eq {int(parent_id)}",
        )
        return matches[0] if matches else None

    def create_folder(
        self, name: str, parent_id: int = ROOT_CONTAINER_ID
    ) -> dict[str, Any]:
        body = {
            "Name": name,
            "ObjectType": APPLICATION_OBJECT_TYPE,
            "ParentContainerNodeID": int(parent_id),
        }
        return _first_entity(
            self._request("POST", "SMS_ObjectContainerNode", json=body)
        )

    def move_object(
        self,
        model_name: str,
        target_id: int,
        source_id: int = ROOT_CONTAINER_ID,
    ) -> None:
        """Move an application (by ModelName) between folders."""
        body = {
            "InstanceKeys": [model_name],
            "ContainerNodeID": int(source_id),
            "TargetContainerNodeID": int(target_id),
            "ObjectType": APPLICATION_OBJECT_TYPE,
        }
        self._request("POST", "SMS_ObjectContainerItem.MoveMembers", json=body)

    # ------------------------------------------------------------------ #
    # Distribution
    # ------------------------------------------------------------------ #

    def get_distribution_point_group(self, name: str) -> dict[str, Any] | None:
        matches = self._query(
            "SMS_DistributionPointGroup", f"Name eq {odata_quote(name)}"
        )
        return matches[0] if matches else None

    def get_group_content(
        self, group_id: str, package_id: str
    ) -> list[dict[str, Any]]:
        """Return content records for a package already assigned to a group."""
        return self._query(
            "SMS_DPGroupContentInfo",
            f"GroupID eq {odata_quote(group_id)}"
            f" and PackageID eq {odata_quote(package_id)}",
        )

    def start_distribution(self, group_id: str, package_id: str) -> None:
        path = (
            f"SMS_DistributionPointGroup({odata_quote(group_id)})"
            "/AdminService.AddPackages"
        )
        self._request("POST", path, json={"PackageIDs": [package_id]})
