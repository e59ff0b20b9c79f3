"""FastAPI application entry point."""

import logging
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Query, status
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ValidationError

from .auth import get_auth_context
from .config import settings
from .controller import build_controller
from ..domain.entities import AuthContext, SessionRequest, SessionStatus
from ..domain.errors import (
    AccessDenied,
    AlreadyReviewed,
    ConcurrentUpdate,
    InvalidState,
    InvalidTransition,
    NotFoundError,
)

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# Create FastAPI app instance
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    debug=settings.debug,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Initialize controller with providers selected by configuration
controller = build_controller(settings)


class StatusUpdate(BaseModel):
    """Body of a status change request."""
    status: str
    session_notes: Optional[str] = None


class ReviewSubmission(BaseModel):
    """Body of a review submission. The rating range is enforced by the domain."""
    rating: int
    comment: str = ""


class NotesUpdate(BaseModel):
    """Body of a tutor's session notes update."""
    session_notes: str


def _http_error(e: Exception) -> HTTPException:
    """Translate a domain error into the matching HTTP error."""
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, AccessDenied):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    if isinstance(e, (AlreadyReviewed, ConcurrentUpdate)):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    if isinstance(e, (InvalidTransition, InvalidState)):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if isinstance(e, ValidationError):
        return HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=e.errors(include_url=False, include_context=False),
        )
    logger.error(f"Unhandled error: {e}", exc_info=True)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal server error")


_HANDLED = (
    NotFoundError,
    AccessDenied,
    AlreadyReviewed,
    ConcurrentUpdate,
    InvalidTransition,
    InvalidState,
    ValidationError,
)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return controller.get_health_status()


# ===== Sessions =====

@app.post("/sessions", status_code=status.HTTP_201_CREATED)
async def create_session(request: SessionRequest, auth: AuthContext = Depends(get_auth_context)):
    """Book a session with a tutor. The caller becomes the student."""
    try:
        session = await controller.create_session(auth.user_id, request)
        return {"message": "Session request created successfully", "session": session}
    except _HANDLED as e:
        raise _http_error(e)
    except Exception as e:
        logger.error(f"Error creating session for {auth.user_id}: {e}")
        raise _http_error(e)


@app.get("/sessions")
async def list_sessions(
    session_status: Optional[SessionStatus] = Query(None, alias="status"),
    view: Optional[str] = Query(None, pattern="^(upcoming|past)$"),
    auth: AuthContext = Depends(get_auth_context),
):
    """List the caller's sessions, optionally filtered by status or view.

    Args:
        status: Restrict to one session status.
        view: "upcoming" or "past".
    """
    try:
        sessions = await controller.list_sessions(auth.user_id, status=session_status, view=view)
        return {"sessions": sessions}
    except Exception as e:
        logger.error(f"Error listing sessions for {auth.user_id}: {e}")
        raise _http_error(e)


@app.get("/sessions/{session_id}")
async def get_session(session_id: str, auth: AuthContext = Depends(get_auth_context)):
    try:
        return {"session": await controller.get_session(session_id, auth.user_id)}
    except _HANDLED as e:
        raise _http_error(e)
    except Exception as e:
        logger.error(f"Error getting session {session_id}: {e}")
        raise _http_error(e)


@app.put("/sessions/{session_id}/status")
async def update_session_status(
    session_id: str,
    update: StatusUpdate,
    auth: AuthContext = Depends(get_auth_context),
):
    """Move a session along the booking state machine."""
    extra = {"session_notes": update.session_notes} if update.session_notes else None
    try:
        session = await controller.update_status(session_id, auth.user_id, update.status, extra)
        return {"message": f"Session {session.status.value.lower()} successfully", "session": session}
    except _HANDLED as e:
        raise _http_error(e)
    except Exception as e:
        logger.error(f"Error updating session {session_id}: {e}")
        raise _http_error(e)


@app.post("/sessions/{session_id}/review")
async def review_session(
    session_id: str,
    submission: ReviewSubmission,
    auth: AuthContext = Depends(get_auth_context),
):
    """Attach the student's review to a completed session."""
    try:
        session = await controller.review_session(
            session_id, auth.user_id, submission.rating, submission.comment
        )
        return {"message": "Review submitted successfully", "session": session}
    except _HANDLED as e:
        raise _http_error(e)
    except Exception as e:
        logger.error(f"Error reviewing session {session_id}: {e}")
        raise _http_error(e)


@app.put("/sessions/{session_id}/notes")
async def update_session_notes(
    session_id: str,
    update: NotesUpdate,
    auth: AuthContext = Depends(get_auth_context),
):
    """Record the tutor's notes on a completed session."""
    try:
        session = await controller.update_session_notes(session_id, auth.user_id, update.session_notes)
        return {"message": "Session notes updated successfully", "session": session}
    except _HANDLED as e:
        raise _http_error(e)
    except Exception as e:
        logger.error(f"Error updating notes on session {session_id}: {e}")
        raise _http_error(e)


@app.delete("/sessions/{session_id}")
async def cancel_session(session_id: str, auth: AuthContext = Depends(get_auth_context)):
    """Cancel a pending or confirmed session."""
    try:
        session = await controller.cancel_session(session_id, auth.user_id)
        return {"message": "Session cancelled successfully", "session": session}
    except _HANDLED as e:
        raise _http_error(e)
    except Exception as e:
        logger.error(f"Error cancelling session {session_id}: {e}")
        raise _http_error(e)


# ===== Recommendations =====

@app.get("/recommendations/tutors")
async def recommend_tutors(auth: AuthContext = Depends(get_auth_context)):
    """Personalised tutor recommendations for the caller."""
    try:
        result = await controller.recommend_tutors(auth.user_id)
        return {"success": True, "data": result}
    except _HANDLED as e:
        raise _http_error(e)
    except Exception as e:
        logger.error(f"Error recommending tutors for {auth.user_id}: {e}")
        raise _http_error(e)


@app.get("/recommendations/subjects")
async def suggest_subjects(auth: AuthContext = Depends(get_auth_context)):
    try:
        result = await controller.suggest_subjects(auth.user_id)
        return {"success": True, "data": result}
    except _HANDLED as e:
        raise _http_error(e)
    except Exception as e:
        logger.error(f"Error suggesting subjects for {auth.user_id}: {e}")
        raise _http_error(e)


@app.get("/recommendations/insights")
async def get_insights(auth: AuthContext = Depends(get_auth_context)):
    try:
        result = await controller.get_insights(auth.user_id)
        return {"success": True, "data": result}
    except _HANDLED as e:
        raise _http_error(e)
    except Exception as e:
        logger.error(f"Error building insights for {auth.user_id}: {e}")
        raise _http_error(e)


# ===== Notifications =====

@app.get("/notifications")
async def list_notifications(
    unread_only: bool = Query(False, description="Only return unread notifications"),
    auth: AuthContext = Depends(get_auth_context),
):
    try:
        notifications = await controller.list_notifications(auth.user_id, unread_only=unread_only)
        return {"notifications": notifications}
    except Exception as e:
        logger.error(f"Error listing notifications for {auth.user_id}: {e}")
        raise _http_error(e)


@app.patch("/notifications/{notification_id}/read")
async def mark_notification_read(notification_id: str, auth: AuthContext = Depends(get_auth_context)):
    try:
        notification = await controller.mark_notification_read(notification_id, auth.user_id)
        return {"notification": notification}
    except _HANDLED as e:
        raise _http_error(e)
    except Exception as e:
        logger.error(f"Error marking notification {notification_id} as read: {e}")
        raise _http_error(e)
