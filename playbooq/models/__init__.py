"""
Pydantic models for Playbooq.

All data shapes defined here. No imports from db, repos, or routes.
"""

from playbooq.models.assignment import (
    AddCommentRequest,
    Assignment,
    AssignmentAssignee,
    AssignmentComment,
    AssignmentNotification,
    AssignmentStats,
    CreateAssignmentRequest,
    ReplaceAssigneesRequest,
    UpdateAssignmentRequest,
)
from playbooq.models.chat import ChatMessage, EditChatMessageRequest, MessageState, SendChatMessageRequest
from playbooq.models.collaborator import (
    Collaborator,
    InvitationDetails,
    InviteCollaboratorRequest,
    SendInvitationRequest,
    UpdateCollaboratorRequest,
)
from playbooq.models.internal_page import (
    CreateInternalPageRequest,
    InternalPage,
    InternalPagePermission,
    UpdateInternalPageRequest,
)
from playbooq.models.marketplace import (
    MarketplaceFilters,
    MarketplacePage,
    MarketplacePlaybook,
    MarketplaceStats,
    Rating,
    SubmitRatingRequest,
)
from playbooq.models.playbook import (
    CreatePlaybookRequest,
    LocalPlaybook,
    Playbook,
    PlaybookListItem,
    UpdatePlaybookRequest,
)
from playbooq.models.user import SessionUser, UserProfile

__all__ = [
    # User models
    "SessionUser",
    "UserProfile",
    # Playbook models
    "Playbook",
    "PlaybookListItem",
    "CreatePlaybookRequest",
    "UpdatePlaybookRequest",
    "LocalPlaybook",
    # Collaboration models
    "Collaborator",
    "InviteCollaboratorRequest",
    "SendInvitationRequest",
    "UpdateCollaboratorRequest",
    "InvitationDetails",
    # Chat models
    "ChatMessage",
    "MessageState",
    "SendChatMessageRequest",
    "EditChatMessageRequest",
    # Marketplace models
    "MarketplacePlaybook",
    "MarketplaceFilters",
    "MarketplacePage",
    "MarketplaceStats",
    "Rating",
    "SubmitRatingRequest",
    # Assignment models
    "Assignment",
    "AssignmentAssignee",
    "AssignmentComment",
    "AssignmentNotification",
    "AssignmentStats",
    "CreateAssignmentRequest",
    "UpdateAssignmentRequest",
    "AddCommentRequest",
    "ReplaceAssigneesRequest",
    # Internal page models
    "InternalPage",
    "InternalPagePermission",
    "CreateInternalPageRequest",
    "UpdateInternalPageRequest",
]
