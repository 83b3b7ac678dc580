"""Base model for persisted and exchanged btwardrive data.

Every model inherits from :class:`WardriveBaseModel` which provides
``alias_generator=to_camel`` so snake_case fields are written to disk
as camelCase keys (``last_seen`` -> ``lastSeen``) while still accepting
either spelling on input.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class WardriveBaseModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )
