from __future__ import annotations

from app.config import settings
from app.services.backend_client import BackendClient
from app.services.local_backend import LocalBackendClient
from app.services.supabase_backend import SupabaseBackendClient


def create_backend_client() -> BackendClient:
    """Return a fresh client handle; each one tracks its own signed-in user."""
    provider = settings.backend_provider.strip().lower()
    if provider == 'supabase':
        return SupabaseBackendClient()
    return LocalBackendClient()
