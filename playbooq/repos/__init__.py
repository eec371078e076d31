"""
Repository layer for Playbooq.

All table access lives here and goes through the Gateway. No database access
outside this module.
"""

from playbooq.repos.assignment_repo import AssignmentRepo
from playbooq.repos.chat_repo import ChatRepo
from playbooq.repos.collaborator_repo import CollaboratorRepo
from playbooq.repos.internal_page_repo import InternalPageRepo
from playbooq.repos.marketplace_repo import MarketplaceRepo
from playbooq.repos.playbook_repo import PlaybookRepo
from playbooq.repos.user_profile_repo import UserProfileRepo

__all__ = [
    "PlaybookRepo",
    "CollaboratorRepo",
    "ChatRepo",
    "MarketplaceRepo",
    "UserProfileRepo",
    "AssignmentRepo",
    "InternalPageRepo",
]
