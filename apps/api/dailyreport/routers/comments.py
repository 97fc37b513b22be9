from fastapi import APIRouter, Depends, Path
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dailyreport.core.database import get_db
from dailyreport.core.errors import ApiError
from dailyreport.core.responses import success
from dailyreport.models.comment import Comment
from dailyreport.models.sales_person import SalesPerson
from dailyreport.routers.auth import get_current_principal
from dailyreport.schemas.comments import CommentCreate, CommentOut
from dailyreport.services.permissions import (
    Principal,
    check_comment_on_report,
    check_delete_comment,
    check_view_report,
    raise_for_denial,
)
from dailyreport.services.reports import get_report_subject

router = APIRouter()


def to_comment_out(c: Comment, author_name: str) -> CommentOut:
    return CommentOut(
        comment_id=c.id,
        report_id=c.report_id,
        sales_person_id=c.sales_person_id,
        sales_person_name=author_name,
        comment_text=c.comment_text,
        created_at=c.created_at,
        updated_at=c.updated_at,
    )


async def load_comments(db: AsyncSession, report_id: int) -> list[CommentOut]:
    rows = (
        await db.execute(
            select(Comment, SalesPerson.name)
            .join(SalesPerson, SalesPerson.id == Comment.sales_person_id)
            .where(Comment.report_id == report_id)
            .order_by(Comment.created_at.asc(), Comment.id.asc())
        )
    ).all()
    return [to_comment_out(r.Comment, r.name) for r in rows]


@router.get("/reports/{report_id}/comments")
async def list_report_comments(
    report_id: int = Path(gt=0),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    subject = await get_report_subject(db, report_id)
    raise_for_denial(check_view_report(principal, subject), principal, f"view comments of report {report_id}")
    return success({"items": await load_comments(db, report_id)})


@router.post("/reports/{report_id}/comments", status_code=201)
async def create_comment(
    payload: CommentCreate,
    report_id: int = Path(gt=0),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """Managers comment on their own or their direct subordinates' reports."""
    subject = await get_report_subject(db, report_id)
    raise_for_denial(check_comment_on_report(principal, subject), principal, f"comment on report {report_id}")

    comment = Comment(
        report_id=report_id,
        sales_person_id=principal.id,
        comment_text=payload.comment_text,
    )
    db.add(comment)
    await db.commit()
    await db.refresh(comment)
    return success(to_comment_out(comment, principal.name), message="Comment posted")


@router.delete("/comments/{comment_id}")
async def delete_comment(
    comment_id: int = Path(gt=0),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """Only the author may delete a comment, manager or not."""
    comment = await db.get(Comment, comment_id)
    if not comment:
        raise ApiError.not_found("Comment not found")

    raise_for_denial(check_delete_comment(principal, comment), principal, f"delete comment {comment_id}")

    await db.delete(comment)
    await db.commit()
    return success({"comment_id": comment_id}, message="Comment deleted")
