from cinetrack.services.catalog.client import BROWSE_LIMIT, CatalogClient
from cinetrack.services.catalog.fallback import FALLBACK_GENRES, FALLBACK_MOVIES

__all__ = ["CatalogClient", "BROWSE_LIMIT", "FALLBACK_GENRES", "FALLBACK_MOVIES"]
