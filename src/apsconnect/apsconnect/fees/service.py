from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

from ..common.datetime_utils import parse_iso_date
from ..common.validators import optional_str, require_int, require_positive_amount
from ..core.enums import FeeAction, FeeStatus, Role
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..core.policy import Actor, require_role, require_scope
from ..notifications.model import UserTarget
from ..notifications.service import NotificationService
from ..users.repository import UserRepository
from .model import Fee, FeeSummary
from .repository import FeeRepository

logger = logging.getLogger(__name__)

# action -> (statuses it may start from, resulting status)
TRANSITIONS = {
    FeeAction.VERIFY: ({FeeStatus.PAID}, FeeStatus.VERIFIED),
    FeeAction.REJECT: ({FeeStatus.PENDING, FeeStatus.PAID}, FeeStatus.REJECTED),
}

PAID_STATUSES = {FeeStatus.PAID, FeeStatus.VERIFIED}


def parse_fee_action(value: Any) -> FeeAction:
    try:
        return FeeAction(str(value or "").lower())
    except ValueError:
        raise ValidationError("action must be verify or reject")


def parse_fee_status(value: Any) -> Optional[FeeStatus]:
    if value in (None, ""):
        return None
    try:
        return FeeStatus(str(value).lower())
    except ValueError:
        raise ValidationError("unknown fee status")


class FeeService:
    def __init__(self, fees: FeeRepository, users: UserRepository, notifications: NotificationService):
        self._fees = fees
        self._users = users
        self._notifications = notifications

    def get_fee(self, fee_id: Any) -> Fee:
        fee = self._fees.get_fee(require_int(fee_id, "fee_id"))
        if not fee:
            raise NotFoundError("fee not found")
        return fee

    def create_fee(self, *, actor: Actor, student_id: Any, amount: Any, due_date: Any = None) -> Fee:
        """Raise a fee demand against a student (starts pending)."""
        require_role(actor, Role.ADMIN)
        if student_id in (None, ""):
            raise ValidationError("student_id required")

        student = self._users.get_by_id(require_int(student_id, "student_id"))
        if not student or student.role != Role.STUDENT:
            raise NotFoundError("student not found")

        fee_id = self._fees.insert_fee(
            student_id=student.user_id,
            amount=require_positive_amount(amount),
            due_date=parse_iso_date(due_date, "due_date") if due_date else None,
            status=FeeStatus.PENDING,
            payment_screenshot=None,
        )
        fee = self.get_fee(fee_id)
        self._notifications.notify(
            UserTarget(student.user_id),
            "Fee due",
            f"A fee of {fee.amount:.2f} has been raised" + (f", due {fee.due_date.isoformat()}." if fee.due_date else "."),
            sender_id=actor.user_id,
        )
        return fee

    def pay(
        self,
        *,
        actor: Actor,
        amount: Any = None,
        screenshot_url: Any = None,
        due_date: Any = None,
        fee_id: Any = None,
    ) -> Fee:
        screenshot = optional_str(screenshot_url)

        if fee_id not in (None, ""):
            fee = self.get_fee(fee_id)
            if fee.student_id != actor.user_id and not actor.is_admin:
                raise AuthorizationError("forbidden: not your fee")
            settled = self._fees.transition(
                fee_id=fee.fee_id,
                from_statuses={FeeStatus.PENDING},
                to_status=FeeStatus.PAID,
                verified=False,
                payment_screenshot=screenshot,
            )
            if not settled:
                raise ConflictError(f"fee is {fee.status.value}, only pending fees can be paid")
            return self.get_fee(fee.fee_id)

        new_id = self._fees.insert_fee(
            student_id=actor.user_id,
            amount=require_positive_amount(amount),
            due_date=parse_iso_date(due_date, "due_date") if due_date else None,
            status=FeeStatus.PAID,
            payment_screenshot=screenshot,
        )
        return self.get_fee(new_id)

    def decide(self, *, actor: Actor, fee_id: Any, action: Any, remark: Any = None) -> Fee:
        require_role(actor, Role.FACULTY, Role.ADMIN)
        if fee_id in (None, ""):
            raise ValidationError("fee_id required")
        fee_action = parse_fee_action(action)
        fee = self.get_fee(fee_id)

        if actor.role == Role.FACULTY:
            student = self._users.get_by_id(fee.student_id)
            if not student:
                raise NotFoundError("student not found")
            require_scope(actor, student.branch, student.semester)

        from_statuses, to_status = TRANSITIONS[fee_action]
        if fee.status not in from_statuses or not self._fees.transition(
            fee_id=fee.fee_id,
            from_statuses=from_statuses,
            to_status=to_status,
            verified=fee_action == FeeAction.VERIFY,
            remark=optional_str(remark),
        ):
            raise ConflictError(f"cannot {fee_action.value} a fee that is {fee.status.value}")

        logger.info("fee id=%s %s by user id=%s", fee.fee_id, to_status.value, actor.user_id)
        updated = self.get_fee(fee.fee_id)

        message = f"Your payment of {updated.amount:.2f} was {to_status.value}."
        if updated.remark:
            message += f" Remark: {updated.remark}"
        self._notifications.notify(
            UserTarget(updated.student_id),
            f"Fee {to_status.value}",
            message,
            sender_id=actor.user_id,
        )
        return updated

    def list_fees(self, *, actor: Actor, student_id: Any = None, status: Any = None) -> Sequence[Fee]:
        return self._fees.list_fees(status=parse_fee_status(status), **self._visible_filter(actor, student_id))

    def summary(self, *, actor: Actor, student_id: Any = None) -> FeeSummary:
        fees = self._fees.list_fees(limit=10_000, **self._visible_filter(actor, student_id))

        counts = {s.value: 0 for s in FeeStatus}
        paid = pending = rejected = 0.0
        for f in fees:
            counts[f.status.value] += 1
            if f.status in PAID_STATUSES:
                paid += f.amount
            elif f.status == FeeStatus.PENDING:
                pending += f.amount
            elif f.status == FeeStatus.REJECTED:
                rejected += f.amount

        return FeeSummary(
            paid_total=round(paid, 2),
            pending_total=round(pending, 2),
            rejected_total=round(rejected, 2),
            counts=counts,
        )

    def _visible_filter(self, actor: Actor, student_id: Any) -> dict:
        """Repository filters for the fees ``actor`` may read.

        Students and alumni only see their own. Faculty see students of
        their branch+semester; admin sees everything.
        """
        if actor.role in {Role.STUDENT, Role.ALUMNI}:
            return {"student_id": actor.user_id}

        if student_id not in (None, ""):
            target_id = require_int(student_id, "student_id")
            if actor.role == Role.FACULTY:
                student = self._users.get_by_id(target_id)
                if not student:
                    raise NotFoundError("student not found")
                require_scope(actor, student.branch, student.semester)
            return {"student_id": target_id}

        if actor.role == Role.FACULTY:
            return {"branch": actor.branch, "semester": actor.semester}
        return {}
