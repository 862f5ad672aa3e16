from fastapi import APIRouter, Depends

from dashboard_bff.bootstrap import BffContainer
from dashboard_bff.presentation.api.dependencies import get_container

router = APIRouter(tags=["health"])

@router.get("/health")
def health(container: BffContainer = Depends(get_container)) -> dict[str, str]:  # type: ignore[misc]
    return {"status": "ok", "session_store": container.settings.session_store}
