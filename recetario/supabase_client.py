"""
Supabase client configuration for recetario service.

Provides a configured Supabase client for table queries, RPC calls and
storage uploads. All persistence, row-level filtering and file hosting
live in the Supabase project; this service only talks to it.

Environment variables:
- SUPABASE_URL: https://[project-ref].supabase.co
- SUPABASE_SERVICE_KEY: service role key (preferred)
- SUPABASE_ANON_KEY: public key, used when no service key is set
"""

import re
from typing import Optional

import structlog
from supabase import Client, create_client

from .config import settings

logger = structlog.get_logger(__name__)

PROJECT_URL_PATTERN = re.compile(r"https://([a-z0-9]+)\.supabase\.co")


def extract_project_reference(project_url: str) -> Optional[str]:
    """
    Extract project reference from a Supabase project URL.

    Args:
        project_url: Supabase project URL (e.g., https://qooglpugptjfgitndkdz.supabase.co)

    Returns:
        Project reference string or None if extraction fails

    Example:
        >>> extract_project_reference("https://qooglpugptjfgitndkdz.supabase.co")
        "qooglpugptjfgitndkdz"
    """
    match = PROJECT_URL_PATTERN.match(project_url or "")
    if match:
        return match.group(1)

    logger.warning("Could not extract project reference", project_url=project_url)
    return None


class SupabaseConfig:
    """Supabase URL and key loaded from settings."""

    def __init__(self) -> None:
        self.url: str = settings.SUPABASE_URL
        self.key: str = settings.supabase_key

        if not self.url or not self.key:
            logger.warning(
                "Supabase credentials not fully configured",
                url_set=bool(self.url),
                key_set=bool(self.key),
            )

    @property
    def is_configured(self) -> bool:
        """Check if Supabase is properly configured."""
        return bool(self.url and self.key)

    @property
    def project_ref(self) -> Optional[str]:
        return extract_project_reference(self.url) if self.url else None


# Global configuration instance
config = SupabaseConfig()

# Global Supabase client instance
_supabase_client: Optional[Client] = None


def get_supabase_client() -> Client:
    """
    Get or create Supabase client instance.

    Returns:
        Configured Supabase client

    Raises:
        ValueError: If Supabase is not properly configured
    """
    global _supabase_client

    if not config.is_configured:
        raise ValueError(
            "Supabase not configured. Set SUPABASE_URL and SUPABASE_SERVICE_KEY or SUPABASE_ANON_KEY"
        )

    if _supabase_client is None:
        logger.info("Initializing Supabase client", project_ref=config.project_ref)
        _supabase_client = create_client(config.url, config.key)
        logger.info("Supabase client initialized successfully")

    return _supabase_client
