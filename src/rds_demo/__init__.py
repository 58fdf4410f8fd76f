"""
rds-demo - Demonstration web service backed by a pooled PostgreSQL connection.

Example:
    >>> from rds_demo import Gateway, GatewayConfig
    >>> config = GatewayConfig(host="db", database_name="demo", user="app", password="secret")
    >>> async with Gateway(config) as gateway:
    ...     item = await gateway.run_demo_migration("hello")
    ...     count, items = await gateway.list_demo_items()
"""

from rds_demo.gateway import (
    ConnectionFailed,
    Gateway,
    GatewayClosed,
    GatewayConfig,
    GatewayError,
    QueryFailed,
)
from rds_demo.models import DemoItem

__all__ = [
    # Gateway
    "Gateway",
    "GatewayConfig",
    # Errors
    "GatewayError",
    "ConnectionFailed",
    "GatewayClosed",
    "QueryFailed",
    # Models
    "DemoItem",
]

__version__ = "0.1.0"
