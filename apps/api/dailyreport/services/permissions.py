"""
Who may do what to a daily report, and which status moves are legal.

Every check here is a pure function of the principal and an already
loaded target. Nothing touches the database, so a denial never leaves a
partial write behind. Checks return ``None`` when the operation is
allowed, or a ``Denial`` naming the rule that was broken; the routers
turn denials into HTTP errors with ``raise_for_denial``.

Report targets only need ``sales_person_id``, ``status`` and
``owner_manager_id`` (the owner's direct manager). ``ReportSubject``
bundles those, but any object with the same attributes works.
"""
import enum
import logging
from dataclasses import dataclass
from typing import Optional, Protocol, Union

from dailyreport.core.errors import ApiError, ErrorCode
from dailyreport.models.daily_report import ReportStatus

logger = logging.getLogger(__name__)


class DenialReason(str, enum.Enum):
    NOT_OWNER = "NOT_OWNER"
    NOT_MANAGER = "NOT_MANAGER"
    NOT_MANAGER_OF_OWNER = "NOT_MANAGER_OF_OWNER"
    NOT_AUTHOR = "NOT_AUTHOR"
    INVALID_SOURCE_STATUS = "INVALID_SOURCE_STATUS"
    REPORT_LOCKED = "REPORT_LOCKED"


# Status machine. Same-status entries are owner re-saves.
ALLOWED_TRANSITIONS: dict[ReportStatus, frozenset[ReportStatus]] = {
    ReportStatus.draft: frozenset({ReportStatus.draft, ReportStatus.submitted}),
    ReportStatus.submitted: frozenset({ReportStatus.submitted, ReportStatus.confirmed}),
    ReportStatus.confirmed: frozenset(),
}


@dataclass(frozen=True)
class Principal:
    id: int
    is_manager: bool
    name: str = ""
    email: str = ""


@dataclass(frozen=True)
class ReportSubject:
    id: int
    sales_person_id: int
    status: ReportStatus
    owner_manager_id: Optional[int]


class ReportLike(Protocol):
    sales_person_id: int
    status: ReportStatus
    owner_manager_id: Optional[int]


class CommentLike(Protocol):
    sales_person_id: int


@dataclass(frozen=True)
class Denial:
    reason: DenialReason
    message: str


@dataclass(frozen=True)
class TransitionResult:
    status: Optional[ReportStatus] = None
    denial: Optional[Denial] = None

    @property
    def ok(self) -> bool:
        return self.denial is None


def is_owner(principal: Principal, report: ReportLike) -> bool:
    return principal.id == report.sales_person_id


def is_direct_manager(principal: Principal, report: ReportLike) -> bool:
    # One hop only: a manager's manager gets no access.
    return principal.is_manager and report.owner_manager_id == principal.id


def can_view_report(principal: Principal, report: ReportLike) -> bool:
    return is_owner(principal, report) or is_direct_manager(principal, report)


def can_edit_report(principal: Principal, report: ReportLike) -> bool:
    return check_edit_report(principal, report) is None


def can_delete_comment(principal: Principal, comment: CommentLike) -> bool:
    return principal.id == comment.sales_person_id


def can_confirm_report(principal: Principal, report: ReportLike) -> bool:
    return is_direct_manager(principal, report) and ReportStatus(report.status) == ReportStatus.submitted


def check_view_report(principal: Principal, report: ReportLike) -> Optional[Denial]:
    if can_view_report(principal, report):
        return None
    if principal.is_manager:
        return Denial(DenialReason.NOT_MANAGER_OF_OWNER, "You can only view reports of your direct subordinates")
    return Denial(DenialReason.NOT_OWNER, "You can only view your own reports")


def check_edit_report(principal: Principal, report: ReportLike) -> Optional[Denial]:
    # A confirmed report is locked for everyone, owner or not.
    if ReportStatus(report.status) == ReportStatus.confirmed:
        return Denial(DenialReason.REPORT_LOCKED, "Confirmed reports cannot be edited")
    if not is_owner(principal, report):
        return Denial(DenialReason.NOT_OWNER, "Only the report owner can edit this report")
    return None


def check_delete_report(principal: Principal, report: ReportLike) -> Optional[Denial]:
    status = ReportStatus(report.status)
    if status == ReportStatus.confirmed:
        return Denial(DenialReason.REPORT_LOCKED, "Confirmed reports cannot be deleted")
    if not is_owner(principal, report):
        return Denial(DenialReason.NOT_OWNER, "Only the report owner can delete this report")
    if status != ReportStatus.draft:
        return Denial(DenialReason.INVALID_SOURCE_STATUS, "Only draft reports can be deleted")
    return None


def check_comment_on_report(principal: Principal, report: ReportLike) -> Optional[Denial]:
    if not principal.is_manager or not can_view_report(principal, report):
        return Denial(DenialReason.NOT_MANAGER_OF_OWNER, "Only the owner's manager can comment on this report")
    return None


def check_delete_comment(principal: Principal, comment: CommentLike) -> Optional[Denial]:
    if can_delete_comment(principal, comment):
        return None
    return Denial(DenialReason.NOT_AUTHOR, "You can only delete comments you posted")


def check_manage_master_data(principal: Principal) -> Optional[Denial]:
    if principal.is_manager:
        return None
    return Denial(DenialReason.NOT_MANAGER, "Only managers can manage sales persons")


def transition(
    report: ReportLike,
    requested: Union[ReportStatus, str],
    principal: Principal,
) -> TransitionResult:
    """Decide whether ``principal`` may move ``report`` to ``requested``.

    Confirming is the manager's move: it needs the owner's direct
    manager and a report that is exactly ``submitted``. Everything else
    (re-saving as draft, submitting) is the owner's move on a report
    that is not yet confirmed. Status never moves backwards.
    """
    requested = ReportStatus(requested)
    current = ReportStatus(report.status)

    if requested == ReportStatus.confirmed:
        if not is_direct_manager(principal, report):
            return TransitionResult(
                denial=Denial(
                    DenialReason.NOT_MANAGER_OF_OWNER,
                    "Only the report owner's direct manager can confirm this report",
                )
            )
        if current != ReportStatus.submitted:
            return TransitionResult(
                denial=Denial(
                    DenialReason.INVALID_SOURCE_STATUS,
                    f"Only submitted reports can be confirmed (current status: {current.value})",
                )
            )
        return TransitionResult(status=requested)

    if current == ReportStatus.confirmed:
        return TransitionResult(denial=Denial(DenialReason.REPORT_LOCKED, "Confirmed reports cannot be changed"))

    if not is_owner(principal, report):
        return TransitionResult(
            denial=Denial(DenialReason.NOT_OWNER, "Only the report owner can save or submit this report")
        )

    if requested not in ALLOWED_TRANSITIONS[current]:
        return TransitionResult(
            denial=Denial(
                DenialReason.INVALID_SOURCE_STATUS,
                f"Cannot change status from {current.value} to {requested.value}",
            )
        )

    return TransitionResult(status=requested)


_DENIAL_CODES = {
    DenialReason.NOT_OWNER: ErrorCode.FORBIDDEN_ACCESS,
    DenialReason.NOT_MANAGER: ErrorCode.FORBIDDEN_ACCESS,
    DenialReason.NOT_MANAGER_OF_OWNER: ErrorCode.FORBIDDEN_ACCESS,
    DenialReason.NOT_AUTHOR: ErrorCode.FORBIDDEN_DELETE,
    DenialReason.REPORT_LOCKED: ErrorCode.FORBIDDEN_EDIT,
    DenialReason.INVALID_SOURCE_STATUS: ErrorCode.STATE_CONFLICT,
}


def raise_for_denial(
    denial: Optional[Denial],
    principal: Principal,
    target: str,
    code: Optional[ErrorCode] = None,
) -> None:
    """Raise the HTTP-facing error for a denial; no-op when allowed.

    ``code`` overrides the 403 flavour (e.g. FORBIDDEN_DELETE for a
    locked report being deleted). State conflicts always stay 409.
    """
    if denial is None:
        return

    logger.info(
        "Denied %s for sales person %s: %s",
        target,
        principal.id,
        denial.reason.value,
    )
    error_code = _DENIAL_CODES[denial.reason]
    if code is not None and error_code != ErrorCode.STATE_CONFLICT:
        error_code = code
    raise ApiError(error_code, denial.message, reason=denial.reason.value)
