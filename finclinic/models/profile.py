from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class SurveyProfile(BaseModel):
    """
    Demographic profile used to gate the conditional question and to build
    submission payloads.

    Stored profiles carry no schema version, so every field is optional and
    unknown fields are kept as-is.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    name: Optional[str] = Field(default=None, max_length=255)

    date_of_birth: Optional[str] = Field(
        default=None,
        description="Date of birth (DD/MM/YYYY)"
    )

    age: Optional[int] = Field(default=None, ge=0, le=120)

    gender: Optional[str] = None

    nationality: Optional[str] = None

    emirate: Optional[str] = None

    employment_status: Optional[str] = None

    income_range: Optional[str] = None

    children: int = Field(
        default=0,
        ge=0,
        description="Number of children (0 = none; gates the children-planning question)"
    )

    email: Optional[str] = None

    mobile_number: Optional[str] = Field(default=None, alias="phone_number")

    @property
    def has_children(self) -> bool:
        return self.children > 0

    def to_payload(self) -> dict:
        """Remote payload shape (unset fields dropped, extras preserved)."""
        return self.model_dump(mode="json", exclude_none=True)
