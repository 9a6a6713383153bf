from typing import List

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import PlainTextResponse

from scriptlens.models import DocumentInfo, DocumentUpdate
from scriptlens.services.script_host import ScriptDocument, StaleDocumentError
from scriptlens.services.worker import get_worker

router = APIRouter(prefix="/api/documents", tags=["documents"])


def _document_info(document: ScriptDocument) -> DocumentInfo:
    host = get_worker().host
    return DocumentInfo(
        file_id=document.file_id,
        version=document.version,
        line_count=document.line_count,
        has_syntax_errors=host.has_syntax_errors(document.file_id),
    )


@router.put("", response_model=DocumentInfo)
async def sync_document(update: DocumentUpdate):
    """
    Create or replace the text of a document.

    Omitting `version` bumps the stored version; an explicit version older
    than the stored one is rejected.
    """
    host = get_worker().host
    try:
        document = host.open_document(update.file_id, update.text, update.version)
    except StaleDocumentError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return _document_info(document)


@router.get("", response_model=List[DocumentInfo])
async def list_documents():
    host = get_worker().host
    documents = [host.get_document(file_id) for file_id in host.script_file_names()]
    return [_document_info(d) for d in documents if d is not None]


@router.get("/content", response_class=PlainTextResponse)
async def get_document_content(file_id: str = Query(..., description="Id of a synced document")):
    """
    Get the raw text of a synced document.
    """
    document = get_worker().host.get_document(file_id)
    if document is None:
        raise HTTPException(status_code=404, detail="Document not found")
    return document.text


@router.delete("")
async def close_document(file_id: str = Query(..., description="Id of a synced document")):
    if not get_worker().host.close_document(file_id):
        raise HTTPException(status_code=404, detail="Document not found")
    return {"closed": file_id}
