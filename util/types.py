# util/types.py
from typing import Awaitable, Callable, Literal

# Flow: Narrow types for SSE events.
EventType = Literal["snapshot", "error"]

ProgressSink = Callable[[float], None]
DisconnectProbe = Callable[[], Awaitable[bool]]
