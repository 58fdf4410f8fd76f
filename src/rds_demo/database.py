"""Gateway dependency for route handlers."""

from typing import Annotated

from fastapi import Depends, Request

from rds_demo.gateway import Gateway


def get_gateway(request: Request) -> Gateway:
    """Get the gateway from app state."""
    return request.app.state.gateway


GatewayDep = Annotated[Gateway, Depends(get_gateway)]
