"""Dashboard client: proxy calls, staleness cache, admin session and live chat."""

from salesdesk.client.api import DashboardClient
from salesdesk.client.cache import QueryCache
from salesdesk.client.live_chat import LiveChatSession
from salesdesk.client.session import FileTokenStore, MemoryTokenStore, Session
from salesdesk.client.sse import SSEDeltaDecoder

__all__ = [
    "DashboardClient",
    "FileTokenStore",
    "LiveChatSession",
    "MemoryTokenStore",
    "QueryCache",
    "SSEDeltaDecoder",
    "Session",
]
