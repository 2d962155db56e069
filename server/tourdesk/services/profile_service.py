"""Profile service for the signed-in account."""

import logging

from ..core.exceptions import NotFoundError, ValidationError
from ..core.session import SessionContext
from ..gateway import Gateway, Table
from ..schemas.profile import ProfileRow, UpdateProfileRequest

logger = logging.getLogger(__name__)


class ProfileService:
    """Service for profile-related operations."""

    def __init__(self, gateway: Gateway):
        self.gateway = gateway

    async def ensure_profile(self, session: SessionContext) -> ProfileRow:
        """
        Return the caller's profile, creating it on first sign-in.

        A new profile takes its names from the account metadata carried by
        the session.

        Args:
            session: Caller's session context

        Returns:
            The stored profile row
        """
        try:
            return await self.gateway.get(Table.PROFILES, session.user_id)
        except NotFoundError:
            pass

        profile = await self.gateway.insert(Table.PROFILES, {
            "id": session.user_id,
            "role": session.role,
            "contact_email": session.email,
            "full_name": session.full_name,
            "first_name": session.first_name,
            "last_name": session.last_name,
        })

        logger.info(
            "Profile created on first sign-in",
            extra={"user_id": str(session.user_id), "role": profile.role}
        )
        return profile

    async def update_profile(self, session: SessionContext, request: UpdateProfileRequest) -> ProfileRow:
        """
        Change the caller's names or contact phone.

        Text is stored trimmed; a blank value clears the field. Role and
        email are never changed here.

        Raises:
            ValidationError: If the request names no field
        """
        patch = {
            key: (value.strip() or None) if isinstance(value, str) else value
            for key, value in request.model_dump(exclude_unset=True).items()
        }
        if not patch:
            raise ValidationError(detail="No profile fields supplied")

        await self.ensure_profile(session)
        profile = await self.gateway.update(Table.PROFILES, session.user_id, patch)

        logger.info(
            "Profile updated",
            extra={"user_id": str(session.user_id), "fields": sorted(patch)}
        )
        return profile
