import base64
import binascii

from fastapi import APIRouter, Depends, File, Response, UploadFile, status

from fleetfuel.api.dependencies import get_approval_engine, get_current_identity
from fleetfuel.api.schemas import (
    AttachmentOut,
    DecisionIn,
    DecisionOut,
    ErrorOut,
    FuelRequestDetailOut,
    FuelRequestIn,
    FuelRequestOut,
    PaginatedResponse,
    RequestQuery,
    ServedQuantityIn,
    SubmissionOut,
    paginated,
)
from fleetfuel.core.errors import ValidationError
from fleetfuel.domain.approval import ApprovalEngine
from fleetfuel.domain.attachments import UploadedFile
from fleetfuel.domain.common import Pagination, Sorting
from fleetfuel.domain.identity import Identity
from fleetfuel.domain.requests import RequestFilters

router = APIRouter(prefix="/fuel-requests", tags=["Fuel Requests"])


def _decode_attachment(filename: str, content_type: str, content_base64: str) -> UploadedFile:
    try:
        content = base64.b64decode(content_base64.encode("ascii"), validate=True)
    except (binascii.Error, UnicodeEncodeError) as exc:
        raise ValidationError(f"{filename}: attachment is not valid base64") from exc
    return UploadedFile(filename=filename, content_type=content_type, content=content)


@router.get(
    "",
    summary="List fuel requests",
    description="Returns the fuel requests visible to the caller, filtered and paginated.",
    response_model=PaginatedResponse[FuelRequestOut],
)
def list_requests(
    q: RequestQuery = Depends(),
    actor: Identity = Depends(get_current_identity),
    engine: ApprovalEngine = Depends(get_approval_engine),
):
    page = engine.list_visible_requests(
        actor,
        filters=RequestFilters(
            status=q.status,
            search=q.search,
            requester_id=q.requester_id,
            vehicle_id=q.vehicle_id,
        ),
        paging=Pagination(limit=q.limit, offset=q.offset),
        sorting=Sorting(sort_by=q.sort_by.value, sort_order=q.sort_order.value),
    )
    return paginated(page, FuelRequestOut)


@router.get(
    "/actionable",
    summary="Requests awaiting my decision",
    response_model=PaginatedResponse[FuelRequestOut],
)
def list_actionable(
    limit: int = 50,
    offset: int = 0,
    actor: Identity = Depends(get_current_identity),
    engine: ApprovalEngine = Depends(get_approval_engine),
):
    page = engine.list_actionable_requests(actor, paging=Pagination(limit=limit, offset=offset))
    return paginated(page, FuelRequestOut)


@router.post("", status_code=status.HTTP_201_CREATED, response_model=SubmissionOut)
def submit_request(
    payload: FuelRequestIn,
    actor: Identity = Depends(get_current_identity),
    engine: ApprovalEngine = Depends(get_approval_engine),
):
    """Submit a fuel request. Attachments travel base64-encoded in the JSON body."""
    files = [_decode_attachment(a.filename, a.content_type, a.content_base64) for a in payload.attachments]
    result = engine.submit_request(
        actor,
        vehicle_id=payload.vehicle_id,
        odometer=payload.odometer,
        site=payload.site,
        mission=payload.mission,
        quantity_requested=payload.quantity_requested,
        justification=payload.justification,
        attachments=files,
    )
    return SubmissionOut(
        status="PARTIAL" if result.is_partial else "CREATED",
        request=FuelRequestOut.model_validate(result.request, from_attributes=True),
        attachments=[AttachmentOut.model_validate(a, from_attributes=True) for a in result.attachments],
        failed_attachments=result.failed_attachments,
        warning=str(result.warning) if result.warning else None,
    )


@router.get("/{request_id}", response_model=FuelRequestDetailOut)
def get_request(
    request_id: str,
    actor: Identity = Depends(get_current_identity),
    engine: ApprovalEngine = Depends(get_approval_engine),
):
    """Get a request with its validation history and attachments."""
    detail = engine.get_request_detail(request_id, actor)
    return FuelRequestDetailOut.model_validate(detail, from_attributes=True)


@router.post(
    "/{request_id}/decisions",
    status_code=status.HTTP_201_CREATED,
    response_model=DecisionOut,
    responses={403: {"model": ErrorOut}, 404: {"model": ErrorOut}, 409: {"model": ErrorOut}},
)
def decide(
    request_id: str,
    payload: DecisionIn,
    actor: Identity = Depends(get_current_identity),
    engine: ApprovalEngine = Depends(get_approval_engine),
):
    result = engine.decide(request_id, actor, payload.outcome, payload.comment)
    return DecisionOut.model_validate(result, from_attributes=True)


@router.post("/{request_id}/served", response_model=FuelRequestOut)
def record_served(
    request_id: str,
    payload: ServedQuantityIn,
    actor: Identity = Depends(get_current_identity),
    engine: ApprovalEngine = Depends(get_approval_engine),
):
    request = engine.record_served_quantity(request_id, actor, payload.quantity_served)
    return FuelRequestOut.model_validate(request, from_attributes=True)


@router.post("/{request_id}/attachments", status_code=status.HTTP_201_CREATED, response_model=AttachmentOut)
def upload_attachment(
    request_id: str,
    file: UploadFile = File(...),
    actor: Identity = Depends(get_current_identity),
    engine: ApprovalEngine = Depends(get_approval_engine),
):
    content = file.file.read()
    uploaded = UploadedFile(
        filename=file.filename or "file",
        content_type=file.content_type or "application/octet-stream",
        content=content,
    )
    attachment = engine.attach_justification(request_id, actor, uploaded)
    return AttachmentOut.model_validate(attachment, from_attributes=True)


@router.get("/{request_id}/attachments/{attachment_id}")
def download_attachment(
    request_id: str,
    attachment_id: str,
    actor: Identity = Depends(get_current_identity),
    engine: ApprovalEngine = Depends(get_approval_engine),
):
    attachment, content = engine.read_attachment(request_id, attachment_id, actor)
    return Response(
        content=content,
        media_type=attachment.content_type,
        headers={"content-disposition": f'attachment; filename="{attachment.filename}"'},
    )
