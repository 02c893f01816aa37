import logging
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from travel_app.db import get_db, transaction
from travel_app.models.user import HotelOwner, Role, User
from travel_app.schemas.user import (
    AccessToken,
    RefreshRequest,
    SignupResponse,
    TokenPair,
    UserCreate,
    UserLogin,
    UserResponse,
)
from travel_app.utils.auth import (
    ACCESS,
    REFRESH,
    create_token,
    decode_token,
    get_current_user,
    get_password_hash,
    token_claims,
    verify_password,
)
from travel_app.utils.errors import InvalidInput, NotFound, Unauthorized

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/users",
    tags=["users"],
)


@router.post("/signup", response_model=SignupResponse, status_code=status.HTTP_201_CREATED)
def signup(user: UserCreate, db: Session = Depends(get_db)):
    """
    Register a new user.

    Users registering with the ADMIN role become hotel owners.
    """
    if db.query(User).filter(User.email == user.email).first():
        logger.error(f"Signup with existing email: {user.email}")
        raise InvalidInput("Email already in use")

    with transaction(db):
        db_user = User(
            first_name=user.first_name,
            last_name=user.last_name,
            email=user.email,
            password=get_password_hash(user.password),
            phone=user.phone,
            role=user.role,
        )
        db.add(db_user)
        db.flush()
        if user.role == Role.ADMIN:
            db.add(HotelOwner(user_id=db_user.id))

    db.refresh(db_user)
    logger.info(f"Registered user {db_user.id} with role {db_user.role.value}")
    return {"message": "User registered successfully", "user": db_user}


@router.post("/login", response_model=TokenPair)
def login(credentials: UserLogin, db: Session = Depends(get_db)):
    """Exchange email and password for an access and a refresh token."""
    user = db.query(User).filter(User.email == credentials.email).first()
    if not user or not verify_password(credentials.password, user.password):
        logger.warning(f"Failed login for {credentials.email}")
        raise Unauthorized("Invalid email or password")

    claims = token_claims(user)
    return {
        "access_token": create_token(claims, ACCESS),
        "refresh_token": create_token(claims, REFRESH),
    }


@router.post("/refresh", response_model=AccessToken)
def refresh(body: RefreshRequest):
    """Issue a fresh access token from a refresh token."""
    payload = decode_token(body.refresh_token, REFRESH)
    if not payload:
        raise Unauthorized("Invalid or expired refresh token")
    claims = {key: payload[key] for key in ("id", "email", "role", "firstName") if key in payload}
    return {"access_token": create_token(claims, ACCESS)}


@router.get("/profile", response_model=UserResponse)
def profile(db: Session = Depends(get_db), current_user: dict = Depends(get_current_user)):
    user = db.query(User).filter(User.id == current_user["id"]).first()
    if not user:
        raise NotFound("User was not found!")
    return user
