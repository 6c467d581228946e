"""
HTTP client for the AlumNet API.

Every response uses the {status, data, message} envelope. Errors surface as
APIError carrying the server's message, or a generic one when the body has
none. A 401 means the stored token is no longer valid, so the local session
is cleared before the error is raised.

Role-restricted calls are guarded locally with @require_role: a caller
without the role is redirected before any request is sent.
"""

import functools
from typing import Any, Dict, List, Optional

import httpx

from cli.auth_store import AuthStore, StoredSession
from cli.config import CLIConfig

DEFAULT_ERROR_MESSAGE = "Something went wrong. Please try again."


class APIError(Exception):
    """Failed API call"""

    def __init__(self, status_code: int, message: str = DEFAULT_ERROR_MESSAGE):
        self.status_code = status_code
        self.message = message or DEFAULT_ERROR_MESSAGE
        super().__init__(self.message)


class VerificationRequired(APIError):
    """Login refused until the emailed OTP is verified"""


class RouteRedirect(Exception):
    """The current session may not use this command; go to `location` instead"""

    def __init__(self, location: str):
        self.location = location
        super().__init__(f"Redirect to {location}")


def require_role(*roles: str):
    """
    Guard a client method by the stored session's role.

    No session redirects to /login, a different role redirects to /. Both
    happen before the wrapped call can touch the network.
    """
    def decorator(func):
        @functools.wraps(func)
        async def wrapper(self: "AlumNetClient", *args, **kwargs):
            session = self.store.read()
            if session is None:
                raise RouteRedirect("/login")
            if session.role not in roles:
                raise RouteRedirect("/")
            return await func(self, *args, **kwargs)
        return wrapper
    return decorator


class AlumNetClient:
    """Thin async wrapper over the REST API"""

    def __init__(self, config: Optional[CLIConfig] = None, store: Optional[AuthStore] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config or CLIConfig()
        self.store = store or AuthStore(self.config.credentials_file)
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.config.api_base_url,
            timeout=self.config.timeout,
            transport=self.transport,
        )

    def _auth_headers(self) -> Dict[str, str]:
        session = self.store.read()
        if session is None:
            return {}
        return {"Authorization": f"Bearer {session.token}"}

    async def request(self, method: str, path: str, *, json: Any = None,
                      params: Optional[Dict[str, Any]] = None,
                      headers: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        """Send a request and return the decoded envelope"""
        all_headers = {**self._auth_headers(), **(headers or {})}
        try:
            async with self._client() as client:
                response = await client.request(method, path, json=json, params=params, headers=all_headers)
        except httpx.ConnectError:
            raise APIError(0, "Cannot connect to server. Is the backend running?")
        except httpx.TimeoutException:
            raise APIError(0, "The server took too long to respond.")

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {"data": body}

        if response.status_code >= 400:
            message = body.get("message") or DEFAULT_ERROR_MESSAGE
            if response.status_code == 401:
                self.store.clear()
            if response.status_code == 403 and body.get("code") == "ACCOUNT_NOT_VERIFIED":
                raise VerificationRequired(response.status_code, message)
            raise APIError(response.status_code, message)

        return body

    # ==================== Auth ====================

    async def login(self, email: str, password: str) -> StoredSession:
        body = await self.request("POST", "/auth/login", json={"email": email, "password": password})
        data = body.get("data") or {}
        user = data.get("user") or {}
        return self.store.write(StoredSession(
            token=data.get("token", ""),
            user_id=user.get("id", ""),
            email=user.get("email", email),
            role=user.get("role", ""),
            username=user.get("username", ""),
        ))

    async def logout(self) -> None:
        """Record the logout server-side when possible; the local session is always cleared"""
        if self.store.read() is None:
            return
        try:
            await self.request("POST", "/auth/logout")
        except APIError:
            pass
        finally:
            self.store.clear()

    async def verify_otp(self, email: str, otp: str) -> Dict[str, Any]:
        return await self.request("POST", "/auth/verify-otp", json={"email": email, "otp": otp})

    async def resend_otp(self, email: str) -> Dict[str, Any]:
        return await self.request("POST", "/auth/resend-otp", json={"email": email})

    async def me(self) -> Dict[str, Any]:
        body = await self.request("GET", "/auth/me")
        return body.get("data") or {}

    # ==================== Connections ====================

    async def connections(self) -> List[Dict[str, Any]]:
        body = await self.request("GET", "/notifications/connections")
        return body.get("data") or []

    async def connect(self, user_id: str) -> Dict[str, Any]:
        return await self.request("POST", f"/notifications/connect/{user_id}")

    async def disconnect(self, user_id: str) -> Dict[str, Any]:
        return await self.request("DELETE", f"/notifications/connections/{user_id}")

    async def notifications(self) -> List[Dict[str, Any]]:
        body = await self.request("GET", "/notifications")
        return body.get("data") or []

    # ==================== Admin ====================

    @require_role("admin")
    async def list_enrollments(self) -> List[Dict[str, Any]]:
        body = await self.request("GET", "/enrollments")
        return body.get("data") or []

    @require_role("admin")
    async def add_enrollment(self, enrollment_id: str, role: str) -> Dict[str, Any]:
        return await self.request("POST", "/enrollments", json={"enrollmentId": enrollment_id, "role": role})

    @require_role("admin")
    async def delete_enrollment(self, enrollment_id: str) -> Dict[str, Any]:
        return await self.request("DELETE", f"/enrollments/{enrollment_id}")

    @require_role("admin")
    async def activity(self, action: Optional[str] = None, search: Optional[str] = None,
                       page: int = 1) -> Dict[str, Any]:
        params = {"page": page}
        if action:
            params["action"] = action
        if search:
            params["search"] = search
        body = await self.request("GET", "/admin/login-logs", params=params)
        return body.get("data") or {}

    @require_role("admin")
    async def broadcast(self, user_ids: List[str], subject: str, message: str) -> Dict[str, Any]:
        return await self.request(
            "POST",
            "/admin/broadcast",
            json={"userIds": user_ids, "subject": subject, "message": message},
        )

    @require_role("admin")
    async def purge_logs(self) -> Dict[str, Any]:
        """Delete all activity logs: fetch a confirmation token, then send it back"""
        confirmation = await self.request("POST", "/admin/logs/confirmation")
        token = (confirmation.get("data") or {}).get("confirmationToken", "")
        return await self.request("DELETE", "/admin/logs", headers={"X-Confirmation-Token": token})
