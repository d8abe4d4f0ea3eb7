from fastapi import APIRouter, Request

from .utils import ApiSuccess

router = APIRouter()


@router.get("/health", response_model=ApiSuccess)
async def health():
    return ApiSuccess(results="OK")


@router.get("/state", response_model=ApiSuccess)
async def state(request: Request):
    """Participant, admin and chat counters of the running classroom session."""
    classroom = request.app.state.classroom
    return ApiSuccess(results=classroom.state_summary().to_wire())
