from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ragadmin.core.exceptions import NotFoundError
from ragadmin.core.security import mask_secret
from ragadmin.database import get_db
from ragadmin.schemas.configuration import SecretInfo, SecretUpdate
from ragadmin.services.audit import AuditService
from ragadmin.services.secret_store import SecretStore

router = APIRouter(prefix="/secrets")


@router.get("", response_model=List[SecretInfo])
def list_secrets(db: Session = Depends(get_db)):
    """Stored providers with a masked hint. Plaintext keys are never returned."""
    return SecretStore(db).list_providers()


@router.get("/{provider}", response_model=SecretInfo)
def get_secret(provider: str, db: Session = Depends(get_db)):
    for info in SecretStore(db).list_providers():
        if info["provider"] == provider:
            return info
    raise NotFoundError("Secret", provider)


@router.put("/{provider}", response_model=SecretInfo)
def save_secret(provider: str, payload: SecretUpdate, db: Session = Depends(get_db)):
    store = SecretStore(db)
    try:
        secret = store.set_key(provider, payload.api_key)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    AuditService.log(db, action="save_secret", entity_type="provider_secret", entity_id=provider)
    db.commit()
    return SecretInfo(provider=secret.provider, hint=mask_secret(payload.api_key), updated_at=secret.updated_at)


@router.delete("/{provider}", status_code=status.HTTP_204_NO_CONTENT)
def delete_secret(provider: str, db: Session = Depends(get_db)):
    if not SecretStore(db).delete_key(provider):
        raise NotFoundError("Secret", provider)
    AuditService.log(db, action="delete_secret", entity_type="provider_secret", entity_id=provider)
    db.commit()
