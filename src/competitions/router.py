"""API endpoints for competitions."""

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query

from src.competitions.schemas import (
    CompetitionCreate,
    CompetitionSchema,
    CompetitionScores,
    CompetitionStatus,
    CompetitionUpdate,
    InviteRequest,
    InviteStatus,
    ParticipantSchema,
)
from src.competitions.service import CompetitionService
from src.dependencies import get_competition_service, get_current_user_id

router = APIRouter(
    prefix="/competitions",
    tags=["competitions"],
    dependencies=[Depends(get_current_user_id)],
)


@router.post("", response_model=CompetitionSchema)
async def create_competition(
    data: CompetitionCreate,
    user_id: str = Depends(get_current_user_id),
    service: CompetitionService = Depends(get_competition_service),
):
    """Create a competition owned by the caller.

    The owner joins the competition as an accepted participant.
    """
    return await service.create_competition(user_id, data)


@router.get("", response_model=list[CompetitionSchema])
async def list_competitions(
    status: CompetitionStatus | None = Query(
        None, description="Only competitions in this status"
    ),
    page: int = Query(1, ge=1, description="Page number (1-indexed)"),
    page_size: int = Query(25, ge=1, le=100, description="Competitions per page"),
    user_id: str = Depends(get_current_user_id),
    service: CompetitionService = Depends(get_competition_service),
):
    """Get competitions the caller has joined."""
    return await service.list_competitions(user_id, status, page, page_size)


@router.get("/invites", response_model=list[CompetitionSchema])
async def list_invites(
    user_id: str = Depends(get_current_user_id),
    service: CompetitionService = Depends(get_competition_service),
):
    """Get competitions the caller has a pending invite to."""
    return await service.list_invites(user_id)


@router.get("/{competition_id}", response_model=CompetitionSchema)
async def get_competition(
    competition_id: str,
    service: CompetitionService = Depends(get_competition_service),
):
    return await service.get_competition(competition_id)


@router.patch("/{competition_id}", response_model=CompetitionSchema)
async def update_competition(
    competition_id: str,
    changes: CompetitionUpdate,
    user_id: str = Depends(get_current_user_id),
    service: CompetitionService = Depends(get_competition_service),
):
    """Update a competition before it starts. Owner only."""
    return await service.update_competition(competition_id, user_id, changes)


@router.delete("/{competition_id}")
async def delete_competition(
    competition_id: str,
    user_id: str = Depends(get_current_user_id),
    service: CompetitionService = Depends(get_competition_service),
):
    """Delete a competition. Owner only."""
    await service.delete_competition(competition_id, user_id)
    return {"message": f"Deleted competition {competition_id}"}


@router.post("/{competition_id}/start", response_model=CompetitionSchema)
async def start_competition(
    competition_id: str,
    user_id: str = Depends(get_current_user_id),
    service: CompetitionService = Depends(get_competition_service),
):
    """Start a competition now. Owner only."""
    return await service.start_competition(competition_id, user_id)


@router.post("/{competition_id}/invite", response_model=ParticipantSchema)
async def invite_user(
    competition_id: str,
    data: InviteRequest,
    user_id: str = Depends(get_current_user_id),
    service: CompetitionService = Depends(get_competition_service),
):
    """Invite another user. The caller must be an accepted participant."""
    return await service.invite_user(competition_id, user_id, data.invite_user)


@router.post("/{competition_id}/accept", response_model=CompetitionSchema)
async def accept_invite(
    competition_id: str,
    user_id: str = Depends(get_current_user_id),
    service: CompetitionService = Depends(get_competition_service),
):
    return await service.respond_to_invite(
        competition_id, user_id, InviteStatus.ACCEPTED
    )


@router.post("/{competition_id}/decline", response_model=CompetitionSchema)
async def decline_invite(
    competition_id: str,
    user_id: str = Depends(get_current_user_id),
    service: CompetitionService = Depends(get_competition_service),
):
    return await service.respond_to_invite(
        competition_id, user_id, InviteStatus.DECLINED
    )


@router.get("/{competition_id}/scores", response_model=CompetitionScores)
async def get_scores(
    competition_id: str,
    at: str | None = Query(
        None,
        description="Reference time in ISO 8601 format. Defaults to now.",
    ),
    service: CompetitionService = Depends(get_competition_service),
):
    """Get the leaderboard of a competition.

    Scores are recomputed from raw activity on every request.

    Raises
    ------
    HTTPException
        400 if ``at`` is not a valid ISO 8601 datetime
    """
    now = None
    if at is not None:
        try:
            now = datetime.fromisoformat(at)
        except ValueError:
            raise HTTPException(
                status_code=400,
                detail=f"Invalid datetime: {at}. Expected ISO 8601",
            )

    return await service.get_scores(competition_id, now)
