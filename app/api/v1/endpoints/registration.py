"""Client registration: validate a registration token and redeem it for an account."""

from fastapi import APIRouter, Depends, Query

from app.core.dependencies import get_registration_service
from app.schemas.registrationSchema import RegisterRequest
from app.schemas.userSchema import UserOut
from app.services.RegistrationService import RegistrationService
from app.utils.responses import success_response, with_report

router = APIRouter(
    prefix="/client-registration",
    tags=["client registration"]
)


@router.get("/validate-token")
async def validate_registration_token(
    token: str = Query(..., min_length=1),
    registration: RegistrationService = Depends(get_registration_service),
):
    """Check a token before showing the registration form."""
    details = await registration.validate(token)
    return success_response("Token is valid", details, valid=True)


@router.post("/register", status_code=201)
async def register_client(
    payload: RegisterRequest,
    registration: RegistrationService = Depends(get_registration_service),
):
    """Redeem a registration token: set the password and activate the account."""
    user, access_token, report = await registration.redeem(
        payload.token,
        payload.password,
        payload.confirm_password,
        full_name=payload.full_name,
        phone=payload.phone,
    )
    return with_report(
        success_response(
            "Registration complete",
            {
                "user": UserOut.model_validate(user).model_dump(mode="json"),
                "token": access_token,
                "token_type": "bearer",
                "redirect_to": "/onboarding",
            },
        ),
        report,
    )
