from fastapi import APIRouter, Query

from scriptlens.models import OutlineResponse, ReferencesRequest, ReferencesResponse
from scriptlens.services.worker import get_worker

router = APIRouter(prefix="/api/analysis", tags=["analysis"])


@router.get("/outline", response_model=OutlineResponse)
async def get_outline(file_id: str = Query(..., description="Document id or path to a script")):
    """
    Flattened outline of the script's classes, functions, methods, accessors
    and behaviour-carrying object literals, in source order.

    Unknown files produce an empty outline rather than an error.
    """
    tokens = get_worker().build_outline(file_id)
    return OutlineResponse(file_id=file_id, tokens=tokens)


@router.post("/references", response_model=ReferencesResponse)
async def get_references(request: ReferencesRequest):
    """
    Members accessed off each requested root object, e.g. `Things.sensor`
    or `Things["lamp"]`. Every requested root appears in the response.
    """
    references = get_worker().extract_references(request.file_id, request.root_names)
    return ReferencesResponse(
        file_id=request.file_id,
        references={root: sorted(members) for root, members in references.items()},
    )
