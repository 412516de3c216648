from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import FileResponse

from tubely.api import deps
from tubely.core.errors import NotFound
from tubely.core.storage import LocalObjectStore, ObjectStore


router = APIRouter(prefix="/objects", tags=["objects"])


@router.get("/{bucket}/{key:path}", summary="Serve a presigned local object")
async def get_object(
    bucket: str,
    key: str,
    expires: int = Query(...),
    signature: str = Query(...),
    store: ObjectStore = Depends(deps.get_object_store),
) -> FileResponse:
    if not isinstance(store, LocalObjectStore):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="object_not_found")
    if not store.verify(bucket, key, expires=expires, signature=signature):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="invalid_signature")
    try:
        path = store.resolve(bucket, key)
    except NotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="object_not_found")
    if not path.is_file():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="object_not_found")
    return FileResponse(path)


__all__ = ["router"]
