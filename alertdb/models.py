"""Alert record and its mapping to and from MongoDB documents."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from alertdb.exceptions import MalformedAlertError

LOW = "Low"
MEDIUM = "Medium"
HIGH = "High"
CRITICAL = "Critical"

DASHBOARD_PRIORITIES = (CRITICAL, HIGH)

Priority = Literal["Low", "Medium", "High", "Critical"]


class Alert(BaseModel):
    """One alert as stored in the alerts collection. Storage fields such as ``_id`` are ignored."""

    model_config = ConfigDict(strict=True, frozen=True, populate_by_name=True, extra="ignore")

    name: str
    priority: Priority
    created_at: datetime = Field(alias="createdAt")
    cleared: bool

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> Alert:
        """
        Build an Alert from a stored document.

        Raises MalformedAlertError when a field is missing or has the wrong type.
        """
        try:
            return cls.model_validate(doc)
        except ValidationError as e:
            errors = e.errors(include_url=False, include_input=False)
            missing = [str(err["loc"][0]) for err in errors if err["type"] == "missing"]
            fields = sorted({str(err["loc"][0]) for err in errors if err["loc"]})
            raise MalformedAlertError(
                f"Invalid alert document: {', '.join(fields)}",
                {"_id": doc.get("_id"), "missing": missing, "errors": errors},
            ) from e

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)
