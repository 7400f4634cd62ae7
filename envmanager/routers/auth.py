from fastapi import APIRouter, Body, Depends, status

from envmanager.models.auth import AuthInstructions, AuthRequest, Token, UserResponse
from envmanager.models.session import Session
from envmanager.services.auth import auth_service, PAT_INSTRUCTIONS, PAT_URL
from envmanager.services.sessions import SessionStore, get_session_store

router = APIRouter()


@router.get("/url", response_model=AuthInstructions)
async def get_auth_url():
    """Tell the client how to obtain a Personal Access Token."""
    return AuthInstructions(instructions=PAT_INSTRUCTIONS, url=PAT_URL)


@router.post("/pat", response_model=Token)
def authenticate_with_pat(
    auth: AuthRequest = Body(...),
    store: SessionStore = Depends(get_session_store),
):
    """
    Validate a Personal Access Token and open a session.

    Args:
        auth: Token submitted by the user

    Returns:
        Session token and the GitHub user it belongs to
    """
    access_token, session = auth_service.authenticate_with_pat(auth.token, store)
    return {"access_token": access_token, "token_type": "bearer", "user": session.to_user()}


# Kept for clients of the original UI, which validated tokens under this path
router.add_api_route("/validate", authenticate_with_pat, methods=["POST"], response_model=Token)


@router.get("/status", response_model=UserResponse)
async def get_auth_status(session: Session = Depends(auth_service.get_current_session)):
    """
    Get the user behind the current session.

    Returns:
        User data
    """
    return session.to_user()


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    session: Session = Depends(auth_service.get_current_session),
    store: SessionStore = Depends(get_session_store),
):
    """End the current session and forget its token."""
    auth_service.logout(session, store)
    return None
