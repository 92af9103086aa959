from pydantic import BaseModel, field_validator
from typing import Optional, List, Union
from datetime import datetime


class RepoCreate(BaseModel):
    name: str
    description: Optional[str] = None
    tags: Union[List[str], str, None] = None  # list or comma-separated string
    is_public: bool = False

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Repository name is required")
        return value

    @field_validator("tags")
    @classmethod
    def normalize_tags(cls, value) -> List[str]:
        if value is None:
            return []
        if isinstance(value, str):
            value = value.split(",")
        return [tag.strip() for tag in value if tag and tag.strip()]


class RepoResponse(BaseModel):
    id: str
    user_id: str
    name: str
    description: Optional[str] = None
    tags: List[str] = []
    is_public: bool = False
    star_count: int = 0
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class EnrichedRepoResponse(RepoResponse):
    username: str
    display_name: str
    avatar_url: Optional[str] = None


class FileUpload(BaseModel):
    repo_id: Optional[str] = None
    name: str
    content: str = ""

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("File name is required")
        return value


class FileResponse(BaseModel):
    id: str
    repo_id: str
    name: str
    content: str = ""
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UploadResponse(BaseModel):
    success: bool = True
    file: FileResponse


class StarResponse(BaseModel):
    repo_id: str
    starred: bool
    star_count: int
