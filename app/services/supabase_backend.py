from __future__ import annotations

import json
import logging
from typing import Any
from urllib.error import HTTPError, URLError
from urllib.parse import quote, urlencode
from urllib.request import Request, urlopen

from app.auth import AuthUser
from app.config import settings
from app.services.backend_client import AuthStateEmitter
from app.services.errors import BackendError

logger = logging.getLogger(__name__)


def _filter_value(value: Any) -> str:
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if hasattr(value, 'value'):
        value = value.value
    return f'eq.{value}'


def _to_user(payload: dict) -> AuthUser:
    return AuthUser(
        id=payload['id'],
        email=payload.get('email') or '',
        user_metadata=dict(payload.get('user_metadata') or {}),
    )


def _error_from_body(status: int, body: str) -> BackendError:
    try:
        parsed = json.loads(body) if body else {}
    except ValueError:
        parsed = {}
    if not isinstance(parsed, dict):
        parsed = {}
    message = (
        parsed.get('msg')
        or parsed.get('error_description')
        or parsed.get('message')
        or parsed.get('error')
        or body
        or f'HTTP {status}'
    )
    code = parsed.get('error_code') or parsed.get('code')
    return BackendError(str(message), code=str(code) if code is not None else None, status=status)


class SupabaseBackendClient(AuthStateEmitter):
    """Hosted backend: GoTrue auth endpoints and PostgREST tables over HTTP."""

    def __init__(self, url: str | None = None, api_key: str | None = None, *, timeout: int | None = None) -> None:
        super().__init__()
        # Missing configuration surfaces on the first call, not here.
        self.base_url = (settings.supabase_url if url is None else url).rstrip('/')
        self.api_key = settings.supabase_anon_key if api_key is None else api_key
        self.timeout = settings.supabase_timeout_seconds if timeout is None else timeout
        self._access_token: str | None = None

    def _headers(self, extra: dict[str, str] | None = None) -> dict[str, str]:
        headers = {
            'apikey': self.api_key,
            'Authorization': f'Bearer {self._access_token or self.api_key}',
            'Content-Type': 'application/json',
        }
        if extra:
            headers.update(extra)
        return headers

    def _request(
        self,
        method: str,
        path: str,
        *,
        payload: dict | None = None,
        params: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        if not self.base_url or not self.api_key:
            raise BackendError('Backend URL and API key are not configured', code='config_missing')

        url = f'{self.base_url}{path}'
        if params:
            url = f'{url}?{urlencode(params)}'
        data = json.dumps(payload).encode('utf-8') if payload is not None else None
        req = Request(url=url, data=data, headers=self._headers(headers), method=method)
        try:
            with urlopen(req, timeout=self.timeout) as response:
                raw = response.read().decode('utf-8')
        except HTTPError as exc:
            body = exc.read().decode('utf-8', errors='ignore') if exc.fp else ''
            raise _error_from_body(exc.code, body) from exc
        except URLError as exc:
            raise BackendError(f'Backend network error on {path}: {exc.reason}', code='network_error') from exc
        return json.loads(raw) if raw else None

    def sign_up(self, email: str, password: str, user_metadata: dict[str, Any]) -> AuthUser:
        parsed = self._request(
            'POST',
            '/auth/v1/signup',
            payload={'email': email, 'password': password, 'data': user_metadata},
        )
        # With email confirmation enabled the service returns the bare user and no session.
        user_payload = parsed.get('user') or parsed
        user = _to_user(user_payload)
        if parsed.get('access_token'):
            self._access_token = parsed['access_token']
            self._set_session(user)
        return user

    def sign_in_with_password(self, email: str, password: str) -> AuthUser:
        parsed = self._request(
            'POST',
            '/auth/v1/token',
            payload={'email': email, 'password': password},
            params={'grant_type': 'password'},
        )
        user = _to_user(parsed['user'])
        self._access_token = parsed.get('access_token')
        self._set_session(user)
        return user

    def sign_out(self) -> None:
        if self._access_token:
            try:
                self._request('POST', '/auth/v1/logout')
            except BackendError as exc:
                # The local session is dropped regardless of the remote revoke.
                logger.warning('Remote sign-out failed: %s', exc)
        self._access_token = None
        self._set_session(None)

    def insert(self, table: str, record: dict[str, Any]) -> dict[str, Any]:
        rows = self._request(
            'POST',
            f'/rest/v1/{quote(table)}',
            payload=record,
            headers={'Prefer': 'return=representation'},
        )
        if not rows:
            raise BackendError(f'Insert into {table} returned no rows', code='PGRST116')
        return rows[0]

    def query(
        self,
        table: str,
        filters: dict[str, Any],
        *,
        columns: list[str] | None = None,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        params = {'select': ','.join(columns) if columns else '*'}
        for name, value in filters.items():
            params[name] = _filter_value(value)
        if limit is not None:
            params['limit'] = str(limit)
        return self._request('GET', f'/rest/v1/{quote(table)}', params=params) or []

    def delete(self, table: str, filters: dict[str, Any]) -> int:
        if not filters:
            raise BackendError('DELETE requires a WHERE clause', code='21000')
        params = {name: _filter_value(value) for name, value in filters.items()}
        rows = self._request(
            'DELETE',
            f'/rest/v1/{quote(table)}',
            params=params,
            headers={'Prefer': 'return=representation'},
        )
        return len(rows or [])
