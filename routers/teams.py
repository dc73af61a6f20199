from typing import Dict, Optional

from fastapi import APIRouter, HTTPException, Request

from exceptions import CodeConflict, UnknownTeam
from logging_config import get_logger
from schemas.teams import CreateTeamRequest, CreateTeamResponse, Team, TeamDetailsResponse

logger = get_logger(__name__)

teams_router = APIRouter(tags=["teams"])


@teams_router.post("/create-team", response_model=CreateTeamResponse)
async def create_team(request: Request, body: Optional[CreateTeamRequest] = None):
    # Body: { "customCode": "optional" }
    # Response 200: { "teamCode": "K7MPX2" }, 409 if customCode is taken
    client_host = request.client.host if request.client else "unknown"
    custom_code = body.customCode if body else None
    logger.info(f"Team creation request from {client_host}, customCode: {custom_code}")

    relay = request.app.state.relay
    try:
        code = relay.registry.create(custom_code)
    except CodeConflict as e:
        logger.warning(f"Team creation failed: {e.code} already exists")
        raise HTTPException(status_code=409, detail=e.message)

    return CreateTeamResponse(teamCode=code)


@teams_router.get("/teams", response_model=Dict[str, Team])
async def list_teams(request: Request):
    return request.app.state.relay.registry.list_all()


@teams_router.get("/teams/{team_code}", response_model=TeamDetailsResponse)
async def get_team_details(team_code: str, request: Request):
    """
    Team metadata plus live room figures.

    Returns:
    - teamCode: normalized team code
    - createdAt: creation timestamp
    - memberCount: connections currently joined to the room
    - messageCount: messages in the room log
    """
    try:
        snapshot = request.app.state.relay.room_snapshot(team_code)
    except UnknownTeam as e:
        logger.warning(f"Team details failed: {team_code} not found")
        raise HTTPException(status_code=404, detail=e.message)
    return TeamDetailsResponse(**snapshot)
