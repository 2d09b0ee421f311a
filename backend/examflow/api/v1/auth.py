"""
ExamFlow - Authentication API Routes
Endpoints for registration, login and the current account
"""
from fastapi import APIRouter, HTTPException, status

from examflow.api.deps import CurrentUser, DbSession, http_error
from examflow.schemas.user import TokenResponse, UserCreate, UserLogin, UserResponse
from examflow.services.auth import AuthService, InvalidCredentialsError
from examflow.services.errors import ExamWorkflowError

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post(
    "/register",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
    description="Create a setter or taker account.",
)
async def register(
    user_data: UserCreate,
    db: DbSession,
) -> UserResponse:
    """Register a new user account."""
    try:
        user = await AuthService(db).register_user(user_data)
    except ExamWorkflowError as e:
        raise http_error(e)
    return UserResponse.model_validate(user)


@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Authenticate user",
    description="Login with email, password and role to receive an access token.",
)
async def login(
    credentials: UserLogin,
    db: DbSession,
) -> TokenResponse:
    """Authenticate user and return a token."""
    auth_service = AuthService(db)

    try:
        user = await auth_service.authenticate(
            email=credentials.email,
            password=credentials.password,
            role=credentials.role,
        )
    except InvalidCredentialsError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )
    except ExamWorkflowError as e:
        raise http_error(e)

    return auth_service.create_token(user)


@router.get(
    "/me",
    response_model=UserResponse,
    summary="Get current user",
)
async def get_me(current_user: CurrentUser) -> UserResponse:
    return UserResponse.model_validate(current_user)
