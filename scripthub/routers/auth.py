"""Auth router: creating the account behind a Firebase sign-in"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from scripthub.db import get_db
from scripthub.schemas.user import RegisterRequest, UserResponse
from scripthub.services.accounts import account_service
from scripthub.services.firebase import TokenData, get_token_data

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(
    payload: RegisterRequest,
    token_data: TokenData = Depends(get_token_data),
    db: AsyncSession = Depends(get_db),
):
    """
    Create the account for the signed-in Firebase user.

    The email comes from the token. Banned emails (including ones whose
    account was since deleted) and spammy domains are refused with 422;
    a sign-in that already has an account gets 409.
    """
    user = await account_service.register(
        db,
        firebase_uid=token_data.uid,
        email=token_data.email,
        name=payload.name,
        email_verified=token_data.email_verified,
        locale=payload.locale,
    )
    return UserResponse.model_validate(user)
