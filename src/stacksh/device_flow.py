"""GitHub OAuth device flow: obtain push/pull credentials without a password."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Callable

import httpx

from stacksh.services import Credentials

logger = logging.getLogger(__name__)

DEVICE_CODE_URL = "https://github.com/login/device/code"
ACCESS_TOKEN_URL = "https://github.com/login/oauth/access_token"
USER_URL = "https://api.github.com/user"
GRANT_TYPE = "urn:ietf:params:oauth:grant-type:device_code"
DEFAULT_SCOPE = "repo,read:user"
SLOW_DOWN_STEP = 5.0


class GithubDeviceFlow:
    """:class:`~stacksh.services.DeviceFlow` against github.com.

    ``poll`` prints the verification URL and user code, then polls the token
    endpoint until the user approves, the code expires or GitHub reports an
    error. Failures are written to the terminal and yield ``None``.
    """

    def __init__(
        self,
        client_id: str,
        *,
        scope: str = DEFAULT_SCOPE,
        client: httpx.AsyncClient | None = None,
        sleep: Callable[[float], Any] = asyncio.sleep,
    ) -> None:
        self.client_id = client_id
        self.scope = scope
        self._client = client
        self._sleep = sleep

    async def poll(self, write: Callable[[str], None]) -> Credentials | None:
        if self._client is not None:
            return await self._poll(self._client, write)
        async with httpx.AsyncClient(timeout=httpx.Timeout(30.0)) as client:
            return await self._poll(client, write)

    async def _poll(self, client: httpx.AsyncClient, write: Callable[[str], None]) -> Credentials | None:
        headers = {"Accept": "application/json"}
        try:
            resp = await client.post(
                DEVICE_CODE_URL,
                json={"client_id": self.client_id, "scope": self.scope},
                headers=headers,
            )
            resp.raise_for_status()
            data = resp.json()
            expires_in = float(data.get("expires_in", 900))
            interval = float(data.get("interval") or 5)

            write(f"\r\nPlease visit {data['verification_uri']} and enter code: {data['user_code']}")
            write(f"\r\nWaiting for authentication... (expires in {int(expires_in)}s)")

            deadline = time.monotonic() + expires_in
            while time.monotonic() < deadline:
                await self._sleep(interval)
                resp = await client.post(
                    ACCESS_TOKEN_URL,
                    json={
                        "client_id": self.client_id,
                        "device_code": data["device_code"],
                        "grant_type": GRANT_TYPE,
                    },
                    headers=headers,
                )
                token_data = resp.json()

                token = token_data.get("access_token")
                if token:
                    write("\r\nSuccessfully authenticated!")
                    return await self._credentials(client, token, write)

                error = token_data.get("error")
                if error == "authorization_pending":
                    continue
                if error == "slow_down":
                    interval += SLOW_DOWN_STEP
                    continue
                if error == "expired_token":
                    write("\r\nToken expired. Please try again.")
                    return None
                if error:
                    raise RuntimeError(token_data.get("error_description") or error)
            return None
        except (httpx.HTTPError, RuntimeError, KeyError, ValueError) as e:
            logger.debug("device flow failed", exc_info=True)
            write(f"\r\nGitHub Auth Error: {e}")
            return None

    async def _credentials(
        self, client: httpx.AsyncClient, token: str, write: Callable[[str], None]
    ) -> Credentials:
        resp = await client.get(
            USER_URL,
            headers={"Authorization": f"token {token}", "Accept": "application/json"},
        )
        login = resp.json().get("login") if resp.is_success else None
        if login:
            write(f"\r\nLogged in as {login}")
            return Credentials(username=login, password=token)
        return Credentials(username="oauth2", password=token)
