"""
Service providers for route dependencies.

One Gateway and one instance of each service per process. Routes take
services through these functions so tests can swap them with
app.dependency_overrides.
"""

from __future__ import annotations

from playbooq.gateway import Gateway
from playbooq.services.assignment_service import AssignmentService
from playbooq.services.chat_service import ChatService
from playbooq.services.collaborator_service import CollaboratorService
from playbooq.services.internal_page_service import InternalPageService
from playbooq.services.marketplace_service import MarketplaceService
from playbooq.services.playbook_service import PlaybookService

gateway = Gateway()

playbook_service = PlaybookService(gateway)
marketplace_service = MarketplaceService(gateway)
collaborator_service = CollaboratorService(gateway)
chat_service = ChatService(gateway)
assignment_service = AssignmentService(gateway)
internal_page_service = InternalPageService(gateway)


def get_gateway() -> Gateway:
    return gateway


def get_playbook_service() -> PlaybookService:
    return playbook_service


def get_marketplace_service() -> MarketplaceService:
    return marketplace_service


def get_collaborator_service() -> CollaboratorService:
    return collaborator_service


def get_chat_service() -> ChatService:
    return chat_service


def get_assignment_service() -> AssignmentService:
    return assignment_service


def get_internal_page_service() -> InternalPageService:
    return internal_page_service
