"""Current user endpoint."""

from fastapi import APIRouter, Depends

from app.core.auth import RequestUserContext, get_current_user_context

router = APIRouter(prefix="/me", tags=["me"])


@router.get("")
def get_me(context: RequestUserContext = Depends(get_current_user_context)) -> dict[str, object]:
    """Return current authenticated staff profile and role."""

    return {
        "id": str(context.staff_id),
        "email": context.email,
        "name": context.name,
        "role": context.role.value,
    }
