# Overview: Service-layer operations for hotel applications; encapsulates the review state machine.

"""
Hotel Application Review Service

================================================================================
PURPOSE: Govern merchant "new hotel" applications from submission to decision
================================================================================

STATE MACHINE:
    pending -> approved
    pending -> rejected

    pending:  Submitted by a merchant, waiting for an admin
    approved: TERMINAL. A Hotel row was created from this application
    rejected: TERMINAL. No Hotel row exists for this application

RULES:
1. Only pending applications can be decided
2. Decisions are never reversible
3. processed_at is NULL exactly while pending
4. Approval copies the application's own stored fields into the new Hotel
   (never fields from the admin's request)
5. A decision and its Hotel insert commit together or not at all

CONCURRENCY:
    decide() locks the pending row (SELECT ... FOR UPDATE) and then moves it
    with an UPDATE guarded by status = 'pending'. Of two racing decisions,
    exactly one sees rowcount == 1; the other gets NotFoundOrAlreadyProcessed
    and its transaction (including any Hotel insert) is rolled back.

================================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from sqlalchemy import update
from sqlalchemy.orm import Session

from ..models import Hotel, HotelApplication
from ..validation import (
    DateRange,
    PermissionDenied,
    ValidationError,
    is_storable_id,
    optional_star_rating,
    optional_text,
    parse_date_range,
    require_text,
)
from .concurrency import atomic, lock_for_update
from .pagination import Page, PageRequest, paginate
from hotelbook.time_utils import utcnow


STATUS_PENDING = "pending"
STATUS_APPROVED = "approved"
STATUS_REJECTED = "rejected"

_ACTION_TARGETS = {
    "approve": STATUS_APPROVED,
    "reject": STATUS_REJECTED,
}


class NotFoundOrAlreadyProcessed(LookupError):
    """
    No pending application matched the decision.

    Either the id does not exist or another decision already moved it to a
    terminal state. Retrying is meaningless.
    """

    code = "NotFoundOrAlreadyProcessed"

    def __init__(self, application_id: int):
        super().__init__(f"Application {application_id} not found or already processed")
        self.application_id = application_id


@dataclass(frozen=True)
class ApplicationDraft:
    """Validated submission payload. The submitter never comes from here."""
    name_zh: str
    name_en: str
    address: str
    operating_period: DateRange
    star_rating: int | None = None
    description: str | None = None

    @classmethod
    def from_payload(cls, payload: dict | None) -> "ApplicationDraft":
        if payload is None:
            payload = {}
        if not isinstance(payload, dict):
            raise ValidationError("Invalid JSON payload")
        return cls(
            name_zh=require_text(payload, "name_zh", max_length=255),
            name_en=require_text(payload, "name_en", max_length=255),
            address=require_text(payload, "address"),
            operating_period=parse_date_range(payload.get("operating_period")),
            star_rating=optional_star_rating(payload),
            description=optional_text(payload, "description"),
        )


@dataclass(frozen=True)
class DecisionOutcome:
    """Which branch of decide() executed, for caller-facing messaging."""
    application_id: int
    outcome: Literal["approved", "rejected"]
    hotel_id: int | None = None

    def to_dict(self) -> dict:
        return {
            "application_id": self.application_id,
            "outcome": self.outcome,
            "hotel_id": self.hotel_id,
        }


class ApplicationReviewService:
    """Submission, review queue and decisions for hotel applications."""

    def __init__(self, session: Session):
        self.session = session

    def submit(self, user_id: int, draft: ApplicationDraft) -> int:
        """
        Insert a pending application for ``user_id``.

        ``user_id`` must come from the authenticated session. Returns the
        new application's id.
        """
        with atomic(self.session):
            application = HotelApplication(
                user_id=user_id,
                name_zh=draft.name_zh,
                name_en=draft.name_en,
                address=draft.address,
                star_rating=draft.star_rating,
                description=draft.description,
                status=STATUS_PENDING,
                created_at=utcnow(),
            )
            application.operating_period = draft.operating_period
            self.session.add(application)
            self.session.flush()
            application_id = application.id
        return application_id

    def decide(
        self,
        application_id: int,
        action: str,
        remark: str | None = None,
        *,
        is_admin: bool,
    ) -> DecisionOutcome:
        """
        Approve or reject a pending application in one transaction.

        Raises:
            PermissionDenied: caller is not an admin
            ValidationError: action is not "approve" or "reject"
            NotFoundOrAlreadyProcessed: no pending row with this id
        """
        if not is_admin:
            raise PermissionDenied("Admin privileges required")

        target = _ACTION_TARGETS.get(action) if isinstance(action, str) else None
        if target is None:
            raise ValidationError("action must be 'approve' or 'reject'", field="action")
        if not is_storable_id(application_id):
            raise NotFoundOrAlreadyProcessed(application_id)

        remark = remark.strip() if isinstance(remark, str) else None

        with atomic(self.session):
            application = (
                lock_for_update(
                    self.session.query(HotelApplication).filter_by(
                        id=application_id,
                        status=STATUS_PENDING,
                    )
                )
                .populate_existing()
                .first()
            )
            if application is None:
                raise NotFoundOrAlreadyProcessed(application_id)

            hotel_id = None
            if target == STATUS_APPROVED:
                hotel = self._hotel_from(application)
                self.session.add(hotel)
                self.session.flush()
                hotel_id = hotel.id

            result = self.session.execute(
                update(HotelApplication)
                .where(
                    HotelApplication.id == application_id,
                    HotelApplication.status == STATUS_PENDING,
                )
                .values(
                    status=target,
                    admin_remark=remark or None,
                    processed_at=utcnow(),
                    hotel_id=hotel_id,
                )
            )
            if result.rowcount != 1:
                # Lost the race on a store without row locks
                raise NotFoundOrAlreadyProcessed(application_id)

        return DecisionOutcome(application_id=application_id, outcome=target, hotel_id=hotel_id)

    def list_pending(self, request: PageRequest) -> Page:
        """Admin review queue, newest first."""
        query = (
            self.session.query(HotelApplication)
            .filter(HotelApplication.status == STATUS_PENDING)
            .order_by(HotelApplication.created_at.desc(), HotelApplication.id.desc())
        )
        return paginate(query, request)

    def list_for_user(self, user_id: int, request: PageRequest) -> Page:
        """A merchant's own applications in every state, newest first."""
        query = (
            self.session.query(HotelApplication)
            .filter(HotelApplication.user_id == user_id)
            .order_by(HotelApplication.created_at.desc(), HotelApplication.id.desc())
        )
        return paginate(query, request)

    def get(self, application_id: int) -> HotelApplication | None:
        return self.session.get(HotelApplication, application_id)

    @staticmethod
    def _hotel_from(application: HotelApplication) -> Hotel:
        hotel = Hotel(
            user_id=application.user_id,
            name_zh=application.name_zh,
            name_en=application.name_en,
            address=application.address,
            star_rating=application.star_rating,
            description=application.description,
            active=True,
        )
        hotel.operating_period = application.operating_period
        return hotel
