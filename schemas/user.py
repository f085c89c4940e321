"""
Pydantic schema for one imported user record
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Optional


class UserRecord(BaseModel):
    """
    Typed record produced from one line of the user file.

    Attribute names are snake_case; the camelCase aliases are the column
    names declared for the source file (userId, firstName, ...). Attributes
    with no matching column stay None; empty columns stay empty strings.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        from_attributes=True,
    )

    # Persistence key (required)
    id: int = Field(..., ge=0)

    user_id: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    gender: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    date_of_birth: Optional[str] = None
    job_title: Optional[str] = None
