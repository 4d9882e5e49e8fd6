import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ragadmin.core.exceptions import NotFoundError
from ragadmin.database import get_db
from ragadmin.schemas.configuration import ConfigurationResponse, ConfigurationUpdate
from ragadmin.services.audit import AuditService
from ragadmin.services.config_store import ConfigStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/configurations")


@router.get("", response_model=List[ConfigurationResponse])
def list_configurations(db: Session = Depends(get_db)):
    return ConfigStore(db).list_all()


@router.get("/{key}", response_model=ConfigurationResponse)
def get_configuration(key: str, db: Session = Depends(get_db)):
    record = ConfigStore(db).get_record(key)
    if record is None:
        raise NotFoundError("Configuration", key)
    return record


@router.put("/{key}", response_model=ConfigurationResponse)
def save_configuration(key: str, payload: ConfigurationUpdate, db: Session = Depends(get_db)):
    """
    Create or replace a configuration value.
    Known keys are validated; API keys inside the value go to the secret store.
    """
    try:
        record = ConfigStore(db).upsert(key, payload.value)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    AuditService.log(db, action="save_configuration", entity_type="configuration", entity_id=key)
    db.commit()
    return record


@router.delete("/{key}", status_code=status.HTTP_204_NO_CONTENT)
def delete_configuration(key: str, db: Session = Depends(get_db)):
    if not ConfigStore(db).delete(key):
        raise NotFoundError("Configuration", key)
    AuditService.log(db, action="delete_configuration", entity_type="configuration", entity_id=key)
    db.commit()
