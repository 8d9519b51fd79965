from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from auth import get_current_user
from database import get_db, User
from schemas import ProfileUpdate, ProfileResponse, ProfileData
from services import ProfileService, ProfileSummary
from storage import SqlBudgetStore

router = APIRouter()


def get_profile_service(db: Session = Depends(get_db)) -> ProfileService:
    return ProfileService(SqlBudgetStore(db))


def profile_response(summary: ProfileSummary, message: str = None) -> ProfileResponse:
    return ProfileResponse(
        message=message,
        data=ProfileData.model_validate(summary, from_attributes=True),
    )


@router.post("/profile", response_model=ProfileResponse)
async def create_or_update_profile(
    profile: ProfileUpdate,
    service: ProfileService = Depends(get_profile_service),
    current_user: User = Depends(get_current_user),
):
    summary = service.save_profile(
        current_user.id, profile.model_dump(exclude_unset=True)
    )
    return profile_response(
        summary, "Profile updated successfully with auto-budget calculation"
    )


@router.get("/profile", response_model=ProfileResponse)
async def get_profile(
    service: ProfileService = Depends(get_profile_service),
    current_user: User = Depends(get_current_user),
):
    return profile_response(service.get_summary(current_user.id))
