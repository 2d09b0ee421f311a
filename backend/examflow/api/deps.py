"""
ExamFlow - API Dependencies
FastAPI dependencies for authentication, authorization and collaborators
"""
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from examflow.ai.scoring_oracle import scoring_oracle
from examflow.core.database import get_db
from examflow.core.security import decode_access_token
from examflow.models.user import User, UserRole
from examflow.services.auth import AuthService
from examflow.services.errors import ExamWorkflowError
from examflow.services.scoring import ScoringOracle

# Security scheme
security = HTTPBearer()


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    """
    Get current authenticated user from JWT token.

    Raises:
        HTTPException: If token is invalid or user not found
    """
    claims = decode_access_token(credentials.credentials)

    if claims is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = await AuthService(db).get_user_by_id(claims["sub"])

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return user


def require_role(*roles: UserRole):
    """
    Dependency factory for role-based access control.

    Usage:
        @router.get("/setter-only")
        async def setter_only(user: User = Depends(require_role(UserRole.SETTER))):
            ...
    """
    async def role_checker(
        current_user: Annotated[User, Depends(get_current_user)],
    ) -> User:
        if current_user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Insufficient permissions. Required: {[r.value for r in roles]}",
            )
        return current_user

    return role_checker


def get_scoring_oracle() -> ScoringOracle:
    """Scoring oracle used by automatic evaluation; overridden in tests."""
    return scoring_oracle


def http_error(exc: ExamWorkflowError) -> HTTPException:
    """Translate a workflow error into a structured HTTP error."""
    return HTTPException(status_code=exc.status_code, detail=exc.to_detail())


# Type aliases for common dependencies
CurrentUser = Annotated[User, Depends(get_current_user)]
CurrentSetter = Annotated[User, Depends(require_role(UserRole.SETTER))]
CurrentTaker = Annotated[User, Depends(require_role(UserRole.TAKER))]
DbSession = Annotated[AsyncSession, Depends(get_db)]
Oracle = Annotated[ScoringOracle, Depends(get_scoring_oracle)]
