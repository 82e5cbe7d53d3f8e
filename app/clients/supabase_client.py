import logging

from supabase import create_client, Client

from app.core.config import Settings

logger = logging.getLogger("supabase_client")


class SupabaseClient:
    """Holds the process-wide supabase-py client, built with the service role key."""

    _shared: Client | None = None

    def __init__(self, settings: Settings) -> None:
        if not settings.supabase_url or not settings.supabase_service_role_key:
            raise RuntimeError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY are required")
        self._url = settings.supabase_url
        self._key = settings.supabase_service_role_key

    @property
    def client(self) -> Client:
        if SupabaseClient._shared is None:
            SupabaseClient._shared = create_client(self._url, self._key)
            logger.info("supabase client created url=%s", self._url)
        return SupabaseClient._shared
