from pydantic import BaseModel, ConfigDict, Field


class CallerIdentity(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., min_length=1)
    email: str | None = None
