from fastapi import APIRouter, Depends

from ragadmin.dependencies import require_admin_token
from ragadmin.routers import (
    configurations, secrets, documents, chunking, extraction, embeddings, google_drive
)

# Routers are aggregated here; main.py only imports this hub.
api_router = APIRouter(dependencies=[Depends(require_admin_token)])

api_router.include_router(configurations.router, tags=["Configuration"])
api_router.include_router(secrets.router, tags=["Provider Secrets"])
api_router.include_router(documents.router, tags=["Documents"])
api_router.include_router(chunking.router, tags=["Chunking"])
api_router.include_router(extraction.router, tags=["Extraction"])
api_router.include_router(embeddings.router, tags=["Embeddings"])
api_router.include_router(google_drive.router, tags=["Google Drive"])
