"""
shopsync — client-side consistency for a storefront.

    from shopsync import poll as P        # Processing-status pollers
    from shopsync import optimistic as O  # Optimistic cart / wishlist
    from shopsync import cache as C       # Query cache + invalidation
    from shopsync import store as St      # Observable state
"""

from shopsync import domain
from shopsync import cache
from shopsync import store
from shopsync import notify
from shopsync import poll
from shopsync import optimistic
from shopsync import api
from shopsync.config import Settings, ConfigurationError, load_settings
from shopsync.app import Storefront
from shopsync._types import (
    Lazy,
    ResourceId,
    QueryKey,
)

__version__ = "0.1.0"

__all__ = (
    "domain",
    "cache",
    "store",
    "notify",
    "poll",
    "optimistic",
    "api",
    "Settings",
    "ConfigurationError",
    "load_settings",
    "Storefront",
    "Lazy",
    "ResourceId",
    "QueryKey",
)
