"""Client profile endpoints."""

from fastapi import APIRouter, Depends

from app.core.dependencies import get_profile_service
from app.core.security import CurrentUser, require_client
from app.schemas.userSchema import ProfileUpdate, UserOut
from app.services.ProfileService import ProfileService, profile_completion
from app.utils.responses import success_response

router = APIRouter(
    prefix="/client/profile",
    tags=["profile"]
)


def serialize(user) -> dict:
    data = UserOut.model_validate(user).model_dump(mode="json")
    data["profile_completion"] = profile_completion(user)
    return data


@router.get("")
async def get_profile(
    current_user: CurrentUser = Depends(require_client),
    profiles: ProfileService = Depends(get_profile_service),
):
    user = await profiles.get_client(current_user.id)
    return success_response("Profile retrieved", serialize(user))


@router.patch("")
async def update_profile(
    payload: ProfileUpdate,
    current_user: CurrentUser = Depends(require_client),
    profiles: ProfileService = Depends(get_profile_service),
):
    user = await profiles.update(current_user.id, payload.model_dump(exclude_unset=True))
    return success_response("Profile updated", serialize(user))


@router.post("/complete")
async def complete_profile(
    payload: ProfileUpdate,
    current_user: CurrentUser = Depends(require_client),
    profiles: ProfileService = Depends(get_profile_service),
):
    """Fill in the remaining fields and mark the profile complete."""
    user = await profiles.complete(current_user.id, payload.model_dump(exclude_unset=True))
    return success_response("Profile completed", serialize(user))
