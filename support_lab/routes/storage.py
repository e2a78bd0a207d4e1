"""
Object storage passthrough endpoints

Every endpoint answers 503 when S3 is not configured.
"""
from typing import Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from support_lab.dependencies import get_object_storage
from support_lab.errors import InvalidInput, Unavailable
from support_lab.services.storage import ObjectStorage

router = APIRouter(prefix="/api/storage", tags=["storage"])


def require_storage(storage: ObjectStorage = Depends(get_object_storage)) -> ObjectStorage:
    """Reject before any payload handling when S3 is not configured"""
    if not storage.configured:
        raise Unavailable("S3 storage is not configured. Please check environment variables.")
    return storage


class UploadRequest(BaseModel):
    filename: Optional[str] = None
    content: Optional[str] = None


@router.get("/test-connection")
async def test_connection(storage: ObjectStorage = Depends(require_storage)):
    """HEAD the configured bucket"""
    bucket = await storage.check_connection()
    return {
        "status": "success",
        "message": "Successfully connected to S3 bucket",
        "bucket": bucket,
    }


@router.get("/files")
async def list_files(storage: ObjectStorage = Depends(require_storage)):
    """List up to 100 files in the bucket"""
    files = await storage.list(max_keys=100)
    return {"count": len(files), "files": files}


@router.post("/files", status_code=status.HTTP_201_CREATED)
async def upload_file(payload: UploadRequest, storage: ObjectStorage = Depends(require_storage)):
    """Upload a text file"""
    if not payload.filename or not payload.content:
        raise InvalidInput("filename and content are required")

    stored = await storage.put(payload.filename, payload.content)
    return {
        "status": "success",
        "message": "File uploaded successfully",
        "file": stored,
    }


@router.get("/files/{key:path}")
async def get_file(key: str, storage: ObjectStorage = Depends(require_storage)):
    """Get file content (text only)"""
    return await storage.get(key)


@router.delete("/files/{key:path}")
async def delete_file(key: str, storage: ObjectStorage = Depends(require_storage)):
    """Delete a file"""
    deleted = await storage.delete(key)
    return {
        "status": "success",
        "message": "File deleted successfully",
        "key": deleted,
    }
