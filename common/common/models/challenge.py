from pydantic import BaseModel, Field

from common.types.datetime import UtcDateTime


class Challenge(BaseModel):
    """실생활 챌린지 도메인 모델 (challenges 테이블)"""

    id: str
    title: str | None = None
    description: str | None = None
    difficulty: str | None = None
    category: str | None = None
    duration_minutes: int | None = Field(default=None, alias="duration_minutes")
    points: int = 0
    media_requirement: str | None = Field(default=None, alias="media_requirement")
    image_url: str | None = Field(default=None, alias="image_url")
    created_at: UtcDateTime | None = Field(default=None, alias="created_at")
