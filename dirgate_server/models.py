# dirgate_server/models.py
from pydantic import AliasChoices, BaseModel, Field, StrictBool, StrictStr


class ReadPermissionIn(BaseModel):
    path: StrictStr = Field(..., description="Path relative to the served root")
    isPublic: StrictBool = Field(..., description="Readable without logging in")


class WritePermissionIn(BaseModel):
    path: StrictStr = Field(..., description="Path relative to the served root")
    isWritable: StrictBool = Field(
        ...,
        validation_alias=AliasChoices("isWritable", "isPublic"),
        description="Writable by others",
    )
