"""FireFly REST client and WebSocket event stream."""

from fraktal.firefly.client import FireFlyClient
from fraktal.firefly.stream import FireFlyEventStream, build_start_frame

__all__ = ["FireFlyClient", "FireFlyEventStream", "build_start_frame"]
