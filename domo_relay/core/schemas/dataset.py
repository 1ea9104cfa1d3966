"""Dataset relay schemas."""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class DatasetRecords(BaseModel):
    """Schema for a dataset read back as JSON records"""

    dataset_id: str = Field(..., description="Domo dataset id")
    columns: List[str] = Field(..., description="Visible column names, in schema order")
    records: List[Dict[str, str]] = Field(default_factory=list)

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DatasetUpdateRequest(BaseModel):
    """Schema for replacing a dataset's content"""

    # Optional so that an absent list is reported as "No records provided"
    records: Optional[List[Dict[str, Any]]] = Field(
        None, description="Rows keyed by column name; missing columns upload as empty cells"
    )


class DatasetUpdateResponse(BaseModel):
    success: bool = True


class AccessTokenResponse(BaseModel):
    access_token: str


class EmbedTokenResponse(BaseModel):
    """Schema for an embed token and the card URL built from it"""

    success: bool = True
    access_token: str
    embed_url: str
