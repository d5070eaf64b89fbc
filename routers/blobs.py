# routers/blobs.py

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from core.logging_config import logger
from core.permission_helpers import requires_permission
from core.permissions import RESOURCE_BILLING
from core.s3_client import BlobStore, get_blob_store


router = APIRouter(
    prefix="/blobs",
    tags=["Blobs"],
)


def blob_store_dependency() -> BlobStore:
    try:
        return get_blob_store()
    except RuntimeError as e:
        logger.error(f"Blob store unavailable: {e}")
        raise HTTPException(500, "Blob store not configured")


# -----------------------------------------------------
# GET /blobs/{key}
# Public: images are embedded in billing notices.
# -----------------------------------------------------
@router.get("/{key:path}", summary="Fetch a stored blob")
def get_blob(key: str, store: BlobStore = Depends(blob_store_dependency)):
    blob = store.get(key)
    if blob is None:
        raise HTTPException(404, "Not found")

    return Response(content=blob["body"], media_type=blob["content_type"])


# -----------------------------------------------------
# PUT /blobs/{key}
# Raw body upload; the request Content-Type is stored with the object.
# -----------------------------------------------------
@router.put(
    "/{key:path}",
    summary="Store a blob",
    dependencies=[Depends(requires_permission(RESOURCE_BILLING, "update"))],
)
async def put_blob(
    key: str,
    request: Request,
    store: BlobStore = Depends(blob_store_dependency),
):
    data = await request.body()
    if not data:
        raise HTTPException(400, "Empty body")

    store.put(key, data, request.headers.get("content-type"))
    return {"ok": True, "key": key}
