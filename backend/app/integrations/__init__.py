"""External service integrations for the MOVT backend."""

from .identity_provider import IdentityProvider, NullIdentityProvider, SupabaseAuthAdminClient
from .realtime_mirror import NullRealtimeMirror, RealtimeMirror, SupabaseRealtimeMirror
from .supabase_client import SupabaseError, SupabaseHttpClient

__all__ = [
    "IdentityProvider",
    "NullIdentityProvider",
    "NullRealtimeMirror",
    "RealtimeMirror",
    "SupabaseAuthAdminClient",
    "SupabaseError",
    "SupabaseHttpClient",
    "SupabaseRealtimeMirror",
]
