from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class DriveFile(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    name: str
    mime_type: Optional[str] = Field(default=None, alias="mimeType")
    web_view_link: Optional[str] = Field(default=None, alias="webViewLink")
    modified_time: Optional[str] = Field(default=None, alias="modifiedTime")
    size: Optional[str] = None


class DriveFileList(BaseModel):
    files: List[DriveFile] = Field(default_factory=list)


class DriveProcessRequest(BaseModel):
    document_ids: List[str] = Field(min_length=1)


class ProcessKickoff(BaseModel):
    success: bool
    message: str
