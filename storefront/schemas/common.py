# storefront/schemas/common.py
from pydantic import BaseModel, ConfigDict


# Base configuration for ORM compatibility
class ORMBase(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# Every response carries the success flag; errors use the same shape with success=False
class Envelope(BaseModel):
    success: bool = True


class MessageResponse(Envelope):
    message: str
