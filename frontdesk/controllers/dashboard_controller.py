"""Controller layer for operator login, occupancy summary and factory reset."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials
from pydantic import BaseModel, Field

from frontdesk.controllers.dependencies import (
    bearer_scheme,
    get_auth_service,
    get_dashboard_service,
    require_admin,
)
from frontdesk.repository.data_repository import RepositoryError
from frontdesk.services.auth_service import (
    AdminTokenNotConfiguredError,
    AuthService,
    InvalidAdminTokenError,
)
from frontdesk.services.dashboard_service import DashboardService
from frontdesk.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(tags=["dashboard"])


class LoginRequest(BaseModel):
    admin_token: str = Field(min_length=1)


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class SummaryResponse(BaseModel):
    total_rooms: int = Field(ge=0)
    occupied_rooms: int = Field(ge=0)
    occupancy_percentage: float = Field(ge=0.0, le=100.0)
    status_counts: dict[str, int]
    checkout_overdue: int = Field(ge=0)
    checkout_soon: int = Field(ge=0)
    missing_id_scan: int = Field(ge=0)


class ResetResponse(BaseModel):
    status: str
    rooms_seeded: int = Field(ge=0)


@router.post("/login", response_model=LoginResponse, status_code=status.HTTP_200_OK)
async def login(
    payload: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> LoginResponse:
    try:
        bearer = auth_service.login(payload.admin_token)
        return LoginResponse(access_token=bearer)
    except (AdminTokenNotConfiguredError, InvalidAdminTokenError) as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected login failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to login",
        ) from exc


@router.post(
    "/logout",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_admin)],
)
async def logout(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    auth_service: AuthService = Depends(get_auth_service),
) -> None:
    if credentials is not None:
        auth_service.logout(credentials.credentials)


@router.get("/summary", response_model=SummaryResponse, status_code=status.HTTP_200_OK)
async def summary(
    now: Optional[datetime] = None,
    dashboard_service: DashboardService = Depends(get_dashboard_service),
) -> SummaryResponse:
    try:
        result = dashboard_service.occupancy_summary(now=now)
        return SummaryResponse(
            total_rooms=result.total_rooms,
            occupied_rooms=result.occupied_rooms,
            occupancy_percentage=round(result.occupancy_percentage, 2),
            status_counts=result.status_counts,
            checkout_overdue=result.checkout_overdue,
            checkout_soon=result.checkout_soon,
            missing_id_scan=result.missing_id_scan,
        )
    except RepositoryError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected summary failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to compute occupancy summary",
        ) from exc


@router.post(
    "/admin/reset",
    response_model=ResetResponse,
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_admin)],
)
async def reset_rooms(
    dashboard_service: DashboardService = Depends(get_dashboard_service),
) -> ResetResponse:
    try:
        seeded = dashboard_service.reset_rooms()
        return ResetResponse(status="reset", rooms_seeded=seeded)
    except RepositoryError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected reset failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to reset rooms",
        ) from exc
