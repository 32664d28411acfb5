from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CustomerRecord(BaseModel):
    """One row of the billing API's ``/listar`` payload.

    ``due_date`` keeps the ``dataVenc`` string exactly as received: the reminder
    text quotes it verbatim and the evaluator parses it on demand.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(alias="nome", min_length=1)
    due_date: str = Field(alias="dataVenc")
    contact: str = Field(alias="numero", min_length=1)

    @field_validator("contact", mode="before")
    @classmethod
    def _contact_as_text(cls, v):
        # numbers arrive as JSON integers (5511999990000)
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v
