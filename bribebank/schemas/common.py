"""Shared schema base: camelCase on the wire, snake_case in Python."""

from typing import ClassVar

from pydantic import BaseModel, ConfigDict, model_validator
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class PatchModel(ApiModel):
    """Partial update body. Omitted fields are left alone.

    Fields named in ``not_nullable`` may be omitted but not sent as null,
    since the columns behind them cannot be cleared.
    """

    not_nullable: ClassVar[tuple[str, ...]] = ()

    @model_validator(mode="after")
    def _reject_explicit_nulls(self):
        cleared = [
            name
            for name in self.not_nullable
            if name in self.model_fields_set and getattr(self, name) is None
        ]
        if cleared:
            raise ValueError(f"fields cannot be null: {', '.join(cleared)}")
        return self
