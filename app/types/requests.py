from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class SessionRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    user_id: Optional[str] = Field(default=None, description="Identity provider user id")
    email: Optional[str] = Field(default=None, description="Email used when no user id is given")
