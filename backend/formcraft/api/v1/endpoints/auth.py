from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from formcraft.core.auth import get_current_user
from formcraft.core.database import get_db
from formcraft.models.user import User
from formcraft.schemas.auth import (
    AuthResponse,
    LoginRequest,
    SignupRequest,
    UserProfileResponse,
)
from formcraft.services.auth import (
    create_access_token,
    create_user,
    get_user_by_email,
    verify_password,
)

router = APIRouter()


@router.post("/signup", response_model=AuthResponse, status_code=201)
def signup(body: SignupRequest, db: Session = Depends(get_db)):
    if get_user_by_email(db, body.email):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already registered",
        )
    user = create_user(db, email=body.email, password=body.password)
    return AuthResponse(
        user=UserProfileResponse.model_validate(user),
        access_token=create_access_token(user.id),
    )


@router.post("/login", response_model=AuthResponse)
def login(body: LoginRequest, db: Session = Depends(get_db)):
    user = get_user_by_email(db, body.email)
    if user is None or not verify_password(body.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )
    return AuthResponse(
        user=UserProfileResponse.model_validate(user),
        access_token=create_access_token(user.id),
    )


@router.get("/me", response_model=UserProfileResponse)
def me(current_user: User = Depends(get_current_user)):
    return current_user
