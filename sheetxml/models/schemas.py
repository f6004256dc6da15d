from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Any, List, Optional


class HeaderField(BaseModel):
    """A caller-supplied metadata pair rendered into the XML header."""
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., alias="tagName", description="Header field name")
    value: Optional[Any] = Field(default=None, alias="tagValue", description="Header field value")

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError('Header field names must not be empty')
        return v


class ConversionRequest(BaseModel):
    """Request model for conversion."""
    model_config = ConfigDict(populate_by_name=True)

    header_fields: Optional[List[HeaderField]] = None
    sheet_name: Optional[str] = None
    encrypt_output: bool = False

    @field_validator('header_fields', mode='before')
    @classmethod
    def skip_unnamed_header_fields(cls, v):
        # Raw entries without a tagName are dropped, not rejected
        if not isinstance(v, list):
            return v
        return [
            field for field in v
            if not isinstance(field, dict)
            or str(field.get('tagName', field.get('name')) or '').strip()
        ]

    @field_validator('sheet_name')
    @classmethod
    def blank_sheet_name_is_default(cls, v):
        if v is not None and not v.strip():
            return None
        return v


class ConversionResult(BaseModel):
    """Summary of a finished conversion."""
    model_config = ConfigDict(populate_by_name=True)

    rows_processed: int = Field(..., alias="rowsProcessed", description="Number of records written")
    conversion_time_ms: int = Field(..., alias="conversionTimeMs", description="Conversion time in milliseconds")
    output_file: str = Field(..., alias="outputFile", description="Final output path")
    sheet_name: str = Field(..., alias="sheetName", description="Sheet that was converted")
    columns: List[str] = Field(default_factory=list, description="Column names in sheet order")
    encrypted: bool = Field(default=False, description="Whether the output is encrypted")
