"""Client snapshot models.

Quotes and orders embed a copy of the client as it was when the document
was created. Later edits to the client record never reach old documents.
"""

from enum import Enum

from pydantic import BaseModel, Field


class ClientType(str, Enum):
    """Whether the client is a person or a business."""

    INDIVIDUAL = "individual"
    COMPANY = "company"


class ClientStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class ClientContact(BaseModel):
    """Contact person at a company client."""

    name: str
    email: str | None = None
    phone: str | None = None
    position: str | None = None

    model_config = {"frozen": True}


class ClientSnapshot(BaseModel):
    """Immutable copy of a client's identity at document creation time."""

    id: str | None = None  # None for walk-in clients typed by hand
    name: str = Field(..., min_length=1, max_length=255)
    type: ClientType = ClientType.INDIVIDUAL
    status: ClientStatus = ClientStatus.ACTIVE
    business_name: str | None = Field(None, max_length=255)
    email: str | None = None
    phone: str | None = Field(None, max_length=50)
    address: str | None = Field(None, max_length=500)
    cuit: str | None = Field(None, max_length=20)
    contacts: tuple[ClientContact, ...] = ()

    model_config = {"frozen": True, "from_attributes": True}

    @property
    def display_name(self) -> str:
        """Business name for companies, personal name otherwise."""
        if self.type == ClientType.COMPANY and self.business_name:
            return self.business_name
        return self.name
