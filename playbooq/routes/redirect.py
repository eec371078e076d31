"""Short link redirects: /r/<short id or uuid> to the playbook or profile page."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from fastapi.responses import RedirectResponse

from playbooq.deps import get_gateway
from playbooq.errors import NotFoundError, ValidationError
from playbooq.gateway import Gateway
from playbooq.repos.playbook_repo import PlaybookRepo
from playbooq.repos.user_profile_repo import UserProfileRepo
from playbooq.utils.short_id import is_valid_short_id, is_valid_uuid

router = APIRouter(tags=["redirect"])


@router.get("/r/{short_id}", status_code=307)
async def redirect_short_id(short_id: str, gateway: Gateway = Depends(get_gateway)) -> RedirectResponse:
    """
    Resolve a short link.

    Playbooks win over profiles when both match. Short ids are looked up by
    their stored short_id column; full UUIDs by id.
    """
    playbooks = PlaybookRepo(gateway)
    profiles = UserProfileRepo(gateway)

    if is_valid_short_id(short_id):
        playbook = await playbooks.get_by_short_id(short_id)
        profile = None if playbook else await profiles.get_by_short_id(short_id)
    elif is_valid_uuid(short_id):
        playbook = await playbooks.get(short_id.lower())
        profile = None if playbook else await profiles.get(short_id)
    else:
        raise ValidationError("Invalid ID format")

    if playbook:
        return RedirectResponse(f"/marketplace/{playbook.id}", status_code=status.HTTP_307_TEMPORARY_REDIRECT)
    if profile:
        return RedirectResponse(f"/profile/{profile.id}", status_code=status.HTTP_307_TEMPORARY_REDIRECT)
    raise NotFoundError("Not found")
