"""Profile router for the signed-in account."""

from fastapi import APIRouter

from ..core.dependencies import ProfileServiceDependency, SessionDependency
from ..core.session import SessionContext
from ..schemas.profile import ProfileRow, UpdateProfileRequest
from ..services.profile_service import ProfileService

router = APIRouter(prefix="/v1/profile", tags=["profile"])


@router.post("/me", response_model=ProfileRow)
async def my_profile(
    session: SessionContext = SessionDependency,
    service: ProfileService = ProfileServiceDependency,
) -> ProfileRow:
    """Return the caller's profile, creating it on first sign-in."""
    return await service.ensure_profile(session)


@router.post("/update", response_model=ProfileRow)
async def update_my_profile(
    request: UpdateProfileRequest,
    session: SessionContext = SessionDependency,
    service: ProfileService = ProfileServiceDependency,
) -> ProfileRow:
    """Edit the caller's names and contact phone."""
    return await service.update_profile(session, request)
