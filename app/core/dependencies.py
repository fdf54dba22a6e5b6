"""FastAPI providers for the collaborators stored on `app.state`."""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings
from app.core.database import aget_db
from app.core.security import get_settings
from app.services.ConsultationWorkflow import ConsultationWorkflow
from app.services.OnboardingService import OnboardingService
from app.services.ProfileService import ProfileService
from app.services.RegistrationService import RegistrationService
from app.services.SideEffects import SideEffectDispatcher

def get_dispatcher(request: Request) -> SideEffectDispatcher:
    return request.app.state.dispatcher

def get_consultation_workflow(
    db: AsyncSession = Depends(aget_db),
    dispatcher: SideEffectDispatcher = Depends(get_dispatcher),
    settings: Settings = Depends(get_settings),
) -> ConsultationWorkflow:
    return ConsultationWorkflow(db, dispatcher, settings)

def get_registration_service(
    db: AsyncSession = Depends(aget_db),
    dispatcher: SideEffectDispatcher = Depends(get_dispatcher),
    settings: Settings = Depends(get_settings),
) -> RegistrationService:
    return RegistrationService(db, dispatcher, settings)

def get_onboarding_service(
    db: AsyncSession = Depends(aget_db),
    dispatcher: SideEffectDispatcher = Depends(get_dispatcher),
    settings: Settings = Depends(get_settings),
) -> OnboardingService:
    return OnboardingService(db, dispatcher, settings)

def get_profile_service(
    db: AsyncSession = Depends(aget_db),
    dispatcher: SideEffectDispatcher = Depends(get_dispatcher),
    settings: Settings = Depends(get_settings),
) -> ProfileService:
    return ProfileService(db, dispatcher, settings)
