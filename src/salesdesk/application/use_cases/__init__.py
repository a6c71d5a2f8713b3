"""Use-case layer: proxy logic decoupled from the HTTP transport."""

from salesdesk.application.use_cases.agent_proxy import AgentProxy
from salesdesk.application.use_cases.database_proxy import DatabaseProxy
from salesdesk.application.use_cases.image_proxy import ImageProxy
from salesdesk.application.use_cases.messaging_proxy import MessagingProxy
from salesdesk.application.use_cases.result import ProxyResult
from salesdesk.application.use_cases.workflow_proxy import WorkflowProxy

__all__ = [
    "AgentProxy",
    "DatabaseProxy",
    "ImageProxy",
    "MessagingProxy",
    "ProxyResult",
    "WorkflowProxy",
]
