"""Reports router: moderator resolution of pending reports"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from scripthub.db import get_db
from scripthub.errors import NotFoundError
from scripthub.models import Report, User
from scripthub.schemas.moderation import ReportResponse
from scripthub.services.accounts import account_service
from scripthub.services.firebase import get_current_user
from scripthub.services.moderation import moderation_service

router = APIRouter(prefix="/reports", tags=["Reports"])


async def _get_report(db: AsyncSession, report_id: int) -> Report:
    report = await db.get(Report, report_id)
    if report is None:
        raise NotFoundError("Report")
    return report


@router.post("/{report_id}/dismiss", response_model=ReportResponse)
async def dismiss_report(
    report_id: int,
    moderator: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Dismiss a pending report. 409 if it was already resolved."""
    await account_service.require_moderator(moderator, db)
    report = await moderation_service.dismiss(await _get_report(db, report_id), moderator, db)
    return ReportResponse.model_validate(report)


@router.post("/{report_id}/uphold", response_model=ReportResponse)
async def uphold_report(
    report_id: int,
    moderator: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Uphold a pending report. 409 if it was already resolved."""
    await account_service.require_moderator(moderator, db)
    report = await moderation_service.uphold(await _get_report(db, report_id), moderator, db)
    return ReportResponse.model_validate(report)
