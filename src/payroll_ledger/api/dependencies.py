"""FastAPI dependencies for dependency injection."""

from collections.abc import AsyncGenerator
from datetime import datetime
from typing import Annotated

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from payroll_ledger.config import Settings, get_settings
from payroll_ledger.database import init_db
from payroll_ledger.services.employees import Caller, Role


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Get database session dependency."""
    _, session_factory = init_db()
    async with session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


AppSettings = Annotated[Settings, Depends(get_settings)]


def get_now(settings: AppSettings) -> datetime:
    """Current time in the payroll timezone."""
    return datetime.now(settings.tzinfo)


async def get_caller(
    settings: AppSettings,
    x_user_id: Annotated[str | None, Header()] = None,
    x_user_role: Annotated[str | None, Header()] = None,
) -> Caller:
    """Extract the authenticated caller from upstream headers."""
    if not x_user_id or not x_user_role:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )
    try:
        role = Role(x_user_role.strip().upper())
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        ) from None
    return Caller(
        user_id=x_user_id,
        role=role,
        elevated=role.value in settings.elevated_roles,
    )


async def require_elevated(
    caller: Annotated[Caller, Depends(get_caller)],
) -> Caller:
    """Reject callers without an elevated role."""
    if not caller.elevated:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Forbidden",
        )
    return caller


# Type aliases for cleaner dependency injection
DbSession = Annotated[AsyncSession, Depends(get_db_session)]
Now = Annotated[datetime, Depends(get_now)]
CurrentCaller = Annotated[Caller, Depends(get_caller)]
ElevatedCaller = Annotated[Caller, Depends(require_elevated)]
