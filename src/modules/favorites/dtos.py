from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel, ConfigDict


class AddFavoriteDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    product_id: UUID
