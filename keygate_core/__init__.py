"""
Keygate Core
============
API key gateway: authorization, rate limiting, routing and access logging
in front of JSON handlers.
"""

__version__ = "0.1.0"

# Exceptions
from keygate_core.exceptions import KeygateError, StorageError, ConfigError

# Outcomes
from keygate_core.outcomes import Outcome, FailureReason

# Configuration
from keygate_core.config import (
    Settings,
    AccessConfig,
    KeyDefinition,
    load_access_config,
    parse_access_config,
)

# API Keys
from keygate_core.api_keys import mask_api_key, key_fingerprint

# Access Control
from keygate_core.access import Authorizer, AuthResult, extract_api_key, route_matches, is_permitted

# Rate Limiting
from keygate_core.rate_limit import BaseRateLimiter, InMemoryRateLimiter, FileRateLimiter

# Routing
from keygate_core.routing import (
    HandlerResult,
    Failure,
    DispatchResult,
    LegacyRouteTable,
    PatternRouteTable,
    build_route_table,
    dispatch,
)

# Storage
from keygate_core.storage import JsonItemStore

# Audit
from keygate_core.audit import AccessLogger

# Logging
from keygate_core.logging_config import setup_logging

# Application
from keygate_core.app import create_app

__all__ = [
    "__version__",
    # Exceptions
    "KeygateError",
    "StorageError",
    "ConfigError",
    # Outcomes
    "Outcome",
    "FailureReason",
    # Configuration
    "Settings",
    "AccessConfig",
    "KeyDefinition",
    "load_access_config",
    "parse_access_config",
    # API Keys
    "mask_api_key",
    "key_fingerprint",
    # Access Control
    "Authorizer",
    "AuthResult",
    "extract_api_key",
    "route_matches",
    "is_permitted",
    # Rate Limiting
    "BaseRateLimiter",
    "InMemoryRateLimiter",
    "FileRateLimiter",
    # Routing
    "HandlerResult",
    "Failure",
    "DispatchResult",
    "LegacyRouteTable",
    "PatternRouteTable",
    "build_route_table",
    "dispatch",
    # Storage
    "JsonItemStore",
    # Audit
    "AccessLogger",
    # Logging
    "setup_logging",
    # Application
    "create_app",
]
