from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ragadmin.database import get_db
from ragadmin.schemas.google_drive import DriveFile, DriveProcessRequest, ProcessKickoff
from ragadmin.services.audit import AuditService
from ragadmin.services.config_store import ConfigStore
from ragadmin.services.hosted_functions import GoogleDriveClient

router = APIRouter(prefix="/google-drive")


@router.get("/files", response_model=List[DriveFile])
def list_drive_files(db: Session = Depends(get_db)):
    config = ConfigStore(db).google_drive_credentials()
    return GoogleDriveClient().list_files(config)


@router.post("/process", response_model=ProcessKickoff)
def process_drive_files(payload: DriveProcessRequest, db: Session = Depends(get_db)):
    """Hand the selected Drive files to the hosted import function."""
    config = ConfigStore(db).google_drive_credentials()
    result = GoogleDriveClient().process_documents(config, payload.document_ids)
    AuditService.log(
        db,
        action="process_drive_documents",
        entity_type="google_drive",
        entity_id=None,
        details={"document_ids": payload.document_ids, "success": result.success},
    )
    db.commit()
    return result
