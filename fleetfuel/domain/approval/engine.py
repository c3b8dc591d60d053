"""Approval engine: fuel-request lifecycle.

Owns request creation, the sequential validation chain, served-quantity
recording and justification attachments. Every mutating operation runs its
writes (request row, validation record, action log) in one transaction; the
caller's identity is always an explicit argument.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Iterable

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from fleetfuel.core.errors import (
    FleetFuelError,
    NotFoundError,
    PartialSuccessWarning,
    PermissionDeniedError,
    StaleTransitionError,
    UnauthorizedTransitionError,
    ValidationError,
)
from fleetfuel.db.connection import transaction
from fleetfuel.domain.attachments import (
    AttachmentRepository,
    BlobStore,
    UploadedFile,
    sanitize_filename,
    validate_upload,
)
from fleetfuel.domain.attachments.validation import DEFAULT_ALLOWED_TYPES, DEFAULT_MAX_BYTES
from fleetfuel.domain.audit import ActionLogRepository
from fleetfuel.domain.common import PageResult, Pagination, Sorting, new_id, page_meta
from fleetfuel.domain.fleet.repository import VehicleRepository
from fleetfuel.domain.identity import Identity, Role, require_active, require_role
from fleetfuel.domain.requests import (
    Attachment,
    FuelRequest,
    FuelRequestRepository,
    Outcome,
    RequestDetail,
    RequestFilters,
    RequestStatus,
    ValidationRecord,
)
from fleetfuel.observability.tracing import Span, log_event, new_trace_id

from .transitions import (
    SERVED_QUANTITY_STATUSES,
    TransitionVerdict,
    actionable_status,
    authorize_transition,
)

MAX_PAGE_SIZE = 100


@dataclass(frozen=True)
class SubmissionResult:
    request: FuelRequest
    attachments: list[Attachment] = field(default_factory=list)
    failed_attachments: list[str] = field(default_factory=list)
    warning: PartialSuccessWarning | None = None

    @property
    def is_partial(self) -> bool:
        return self.warning is not None


@dataclass(frozen=True)
class DecisionResult:
    request: FuelRequest
    validation: ValidationRecord


def _required_text(value: Any, name: str) -> str:
    text = value.strip() if isinstance(value, str) else ""
    if not text:
        raise ValidationError(f"{name} is required")
    return text


def _quantity(value: Any, name: str) -> Decimal:
    if isinstance(value, bool):
        raise ValidationError(f"{name} must be a number")
    try:
        quantity = Decimal(str(value))
    except InvalidOperation as exc:
        raise ValidationError(f"{name} must be a number") from exc
    if not quantity.is_finite() or quantity <= 0:
        raise ValidationError(f"{name} must be greater than zero")
    return quantity.quantize(Decimal("0.01"))


def _odometer(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError("Odometer must be an integer")
    if value < 0:
        raise ValidationError("Odometer must not be negative")
    return value


def _outcome(value: Outcome | str) -> Outcome:
    try:
        return Outcome(value)
    except ValueError as exc:
        raise ValidationError(f"Unknown outcome: '{value}'") from exc


def _paging(paging: Pagination | None) -> Pagination:
    paging = paging or Pagination()
    if not 1 <= paging.limit <= MAX_PAGE_SIZE or paging.offset < 0:
        raise ValidationError(f"limit must be 1..{MAX_PAGE_SIZE} and offset must not be negative")
    return paging


def can_view(actor: Identity, request: FuelRequest) -> bool:
    """Drivers see their own requests; every other role sees all of them."""
    return actor.role != Role.DRIVER or request.requester_id == actor.id


class ApprovalEngine:
    """Coordinates fuel-request creation, validation and attachments."""

    def __init__(
        self,
        db: Session,
        *,
        blob_store: BlobStore,
        allowed_attachment_types: Iterable[str] = DEFAULT_ALLOWED_TYPES,
        max_attachment_bytes: int = DEFAULT_MAX_BYTES,
        now: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._db = db
        self._requests = FuelRequestRepository(db)
        self._vehicles = VehicleRepository(db)
        self._attachments = AttachmentRepository(db)
        self._logs = ActionLogRepository(db)
        self._blobs = blob_store
        self._allowed_types = tuple(allowed_attachment_types)
        self._max_bytes = max_attachment_bytes
        self._now = now

    # -------------------------
    # Submission
    # -------------------------

    def submit_request(
        self,
        requester: Identity,
        *,
        vehicle_id: str,
        odometer: int,
        site: str,
        mission: str,
        quantity_requested: Any,
        justification: str,
        attachments: Iterable[UploadedFile] = (),
    ) -> SubmissionResult:
        """Create a pending fuel request, then store its attachments.

        Attachments are written after the request commits. A failed
        attachment never undoes the request; it is reported through
        `SubmissionResult.warning` instead.

        Raises:
            PermissionDeniedError: requester is inactive.
            ValidationError: requester is not a driver, bad values, inactive vehicle.
            NotFoundError: vehicle does not exist.
            StoreError: the request could not be persisted.
        """
        trace_id = new_trace_id()
        require_active(requester)
        if requester.role != Role.DRIVER:
            raise ValidationError(f"Only drivers can submit fuel requests (role is '{requester.role.value}')")

        odometer = _odometer(odometer)
        quantity = _quantity(quantity_requested, "Requested quantity")
        site = _required_text(site, "Site")
        mission = _required_text(mission, "Mission")
        justification = _required_text(justification, "Justification")

        with transaction(self._db):
            vehicle = self._vehicles.get(vehicle_id)
            if vehicle is None:
                raise NotFoundError("Vehicle", vehicle_id)
            if not vehicle.active:
                raise ValidationError(f"Vehicle '{vehicle.plate}' is not active")

            now = self._now()
            request = self._requests.create(
                FuelRequest(
                    id=new_id(),
                    requester_id=requester.id,
                    vehicle_id=vehicle.id,
                    odometer=odometer,
                    site=site,
                    mission=mission,
                    quantity_requested=quantity,
                    justification=justification,
                    status=RequestStatus.PENDING,
                    created_at=now,
                    updated_at=now,
                )
            )
            self._logs.append(
                actor_id=requester.id,
                action="fuel_request.created",
                details=f"Request: {request.id}, Vehicle: {vehicle.plate}, Quantity: {quantity}L",
                created_at=now,
            )

        log_event(
            "request.submitted",
            trace_id=trace_id,
            request_id=request.id,
            requester_id=requester.id,
            vehicle_id=vehicle.id,
            quantity=str(quantity),
        )

        stored: list[Attachment] = []
        failed: list[str] = []
        for file in attachments:
            try:
                stored.append(self._store_attachment(request.id, file))
            except FleetFuelError as exc:
                failed.append(f"{file.filename}: {exc}")
                log_event(
                    "attachment.failed",
                    trace_id=trace_id,
                    request_id=request.id,
                    filename=file.filename,
                    error=str(exc),
                )

        warning = PartialSuccessWarning(request.id, failed) if failed else None
        return SubmissionResult(
            request=request,
            attachments=stored,
            failed_attachments=failed,
            warning=warning,
        )

    def attach_justification(self, request_id: str, actor: Identity, file: UploadedFile) -> Attachment:
        """Add one justification file to a request the actor owns."""
        require_active(actor)
        request = self._visible_request(request_id, actor)
        if request.requester_id != actor.id:
            raise PermissionDeniedError("Only the requester can attach justifications")

        attachment = self._store_attachment(request.id, file, actor_id=actor.id)
        log_event("attachment.stored", trace_id=new_trace_id(), request_id=request.id, attachment_id=attachment.id)
        return attachment

    def read_attachment(self, request_id: str, attachment_id: str, actor: Identity) -> tuple[Attachment, bytes]:
        require_active(actor)
        self._visible_request(request_id, actor)
        for attachment in self._attachments.get_for_request(request_id):
            if attachment.id == attachment_id:
                return attachment, self._blobs.get(attachment.url)
        raise NotFoundError("Attachment", attachment_id)

    def _store_attachment(self, request_id: str, file: UploadedFile, actor_id: str | None = None) -> Attachment:
        validate_upload(file, allowed_types=self._allowed_types, max_bytes=self._max_bytes)
        url = self._blobs.put(request_id, file)
        try:
            with transaction(self._db):
                now = self._now()
                attachment = self._attachments.create(
                    Attachment(
                        id=new_id(),
                        request_id=request_id,
                        url=url,
                        filename=sanitize_filename(file.filename),
                        content_type=file.content_type,
                        size=file.size,
                        created_at=now,
                    )
                )
                if actor_id is not None:
                    self._logs.append(
                        actor_id=actor_id,
                        action="fuel_request.attachment_added",
                        details=f"Request: {request_id}, File: {attachment.filename}",
                        created_at=now,
                    )
        except Exception:
            self._discard_blob(request_id, url)
            raise
        return attachment

    def _discard_blob(self, request_id: str, url: str) -> None:
        # Best effort: the row write already failed and its error wins.
        try:
            self._blobs.delete(url)
        except FleetFuelError as exc:
            log_event(
                "attachment.orphaned",
                trace_id=new_trace_id(),
                level=logging.WARNING,
                request_id=request_id,
                url=url,
                error=str(exc),
            )

    # -------------------------
    # Validation chain
    # -------------------------

    def decide(
        self,
        request_id: str,
        actor: Identity,
        outcome: Outcome | str,
        comment: str | None = None,
    ) -> DecisionResult:
        """Record the actor's decision on the request's current stage.

        Status update, validation record and action log are committed
        together or not at all.

        Raises:
            NotFoundError: no such request.
            PermissionDeniedError: actor is inactive.
            UnauthorizedTransitionError: no stage for (status, role).
            StaleTransitionError: the actor's stage was already decided, or a
                concurrent decision won the race.
        """
        trace_id = new_trace_id()
        outcome = _outcome(outcome)
        comment = comment.strip() if comment and comment.strip() else None
        span = Span(name="request.decide", trace_id=trace_id)

        try:
            with transaction(self._db):
                request = self._requests.get(request_id)
                if request is None:
                    raise NotFoundError("FuelRequest", request_id)
                require_active(actor)

                decision = authorize_transition(
                    request.status,
                    actor.role,
                    outcome,
                    self._requests.decided_levels(request_id),
                )
                if decision.verdict == TransitionVerdict.STALE:
                    raise StaleTransitionError(decision.reason)
                if decision.verdict == TransitionVerdict.DENY:
                    raise UnauthorizedTransitionError(request.status.value, actor.role.value)

                now = self._now()
                moved = self._requests.transition_status(
                    request_id,
                    expected=request.status,
                    new_status=decision.next_status,
                    updated_at=now,
                )
                if not moved:
                    raise StaleTransitionError(
                        f"Request '{request_id}' changed status while level {decision.level} was being decided"
                    )

                record = self._requests.add_validation(
                    ValidationRecord(
                        id=new_id(),
                        request_id=request_id,
                        validator_id=actor.id,
                        level=decision.level,
                        outcome=outcome,
                        comment=comment,
                        created_at=now,
                    )
                )
                self._logs.append(
                    actor_id=actor.id,
                    action=f"fuel_request.validation_{outcome.value}.level_{decision.level}",
                    details=f"Request: {request_id}" + (f", Comment: {comment}" if comment else ""),
                    created_at=now,
                )
                updated = self._requests.get(request_id)
        except IntegrityError as exc:
            # UNIQUE(request_id, level): another caller recorded this stage first.
            log_event("request.decision.stale", trace_id=trace_id, request_id=request_id, actor_id=actor.id)
            raise StaleTransitionError(f"Request '{request_id}' was decided concurrently") from exc
        except StaleTransitionError:
            log_event("request.decision.stale", trace_id=trace_id, request_id=request_id, actor_id=actor.id)
            raise
        finally:
            span.end()

        log_event(
            "request.decided",
            trace_id=trace_id,
            span=span,
            request_id=request_id,
            actor_id=actor.id,
            level=record.level,
            outcome=outcome.value,
            status=updated.status.value,
        )
        return DecisionResult(request=updated, validation=record)

    def record_served_quantity(self, request_id: str, actor: Identity, quantity_served: Any) -> FuelRequest:
        """Record the liters actually pumped. Fuelers only, after level 2 approval."""
        require_role(actor, {Role.FUELER}, action="record served quantities")
        quantity = _quantity(quantity_served, "Served quantity")

        with transaction(self._db):
            request = self._requests.get(request_id)
            if request is None:
                raise NotFoundError("FuelRequest", request_id)
            if request.status not in SERVED_QUANTITY_STATUSES:
                raise ValidationError(
                    f"Served quantity can only be recorded after pump approval (status is '{request.status.value}')"
                )
            now = self._now()
            self._requests.set_quantity_served(request_id, quantity, now)
            self._logs.append(
                actor_id=actor.id,
                action="fuel_request.served",
                details=f"Request: {request_id}, Served: {quantity}L",
                created_at=now,
            )
            updated = self._requests.get(request_id)

        log_event("request.served", trace_id=new_trace_id(), request_id=request_id, quantity=str(quantity))
        return updated

    # -------------------------
    # Reads
    # -------------------------

    def list_visible_requests(
        self,
        actor: Identity,
        filters: RequestFilters | None = None,
        paging: Pagination | None = None,
        sorting: Sorting | None = None,
    ) -> PageResult[FuelRequest]:
        require_active(actor)
        filters = filters or RequestFilters()
        if actor.role == Role.DRIVER:
            filters = replace(filters, requester_id=actor.id)
        return self._requests.get_all(filters, _paging(paging), sorting or Sorting())

    def list_actionable_requests(self, actor: Identity, paging: Pagination | None = None) -> PageResult[FuelRequest]:
        """Requests currently waiting on the actor's validation stage."""
        require_active(actor)
        paging = _paging(paging)
        status = actionable_status(actor.role)
        if status is None:
            return PageResult(data=[], meta=page_meta(0, paging))
        return self._requests.get_all(
            RequestFilters(status=status),
            paging,
            Sorting(sort_by="created_at", sort_order="asc"),
        )

    def get_request_detail(self, request_id: str, actor: Identity) -> RequestDetail:
        require_active(actor)
        request = self._visible_request(request_id, actor)
        return RequestDetail(
            request=request,
            validations=self._requests.get_validations(request_id),
            attachments=self._attachments.get_for_request(request_id),
        )

    def _visible_request(self, request_id: str, actor: Identity) -> FuelRequest:
        request = self._requests.get(request_id)
        # Hidden requests look exactly like missing ones.
        if request is None or not can_view(actor, request):
            raise NotFoundError("FuelRequest", request_id)
        return request
