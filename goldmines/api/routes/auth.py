from fastapi import APIRouter

from goldmines.api.deps import GatewayDep
from goldmines.api.schemas import SignupIn, SignupOut, UserProfileOut
from goldmines.core.exceptions import ValidationError

router = APIRouter()

MIN_PASSWORD_LENGTH = 6


@router.post("/auth/signup", response_model=SignupOut)
async def signup(body: SignupIn, gateway: GatewayDep):
    if not body.email or not body.password:
        raise ValidationError("Email and password are required")
    if len(body.password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")

    profile = await gateway.create_user_profile(body.email, body.password, body.full_name)
    return SignupOut(message="Account created successfully", user=UserProfileOut.model_validate(profile))
