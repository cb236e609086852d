"""Address schemas - saved delivery addresses and address form input."""

from pydantic import BaseModel, Field

# Stored in place of the house number when the customer ticks "no number"
NO_NUMBER = "S/N"


class Address(BaseModel):
    """A saved delivery address owned by the customer."""

    id: int = Field(gt=0)
    street: str
    number: str | None = None
    complement: str | None = None
    neighborhood: str
    city: str
    state: str = Field(min_length=2, max_length=2)
    zip_code: str = Field(pattern=r"^\d{8}$")
    is_default: bool = False

    @property
    def title(self) -> str:
        """Street line, e.g. "Rua das Flores, 120"."""
        if self.street and self.number:
            return f"{self.street}, {self.number}"
        return self.street or "Address not provided"

    @property
    def description(self) -> str:
        """Locality line, e.g. "Centro - Campinas"."""
        if self.neighborhood and self.city:
            return f"{self.neighborhood} - {self.city}"
        return self.neighborhood or self.city or "Location not provided"


class AddressInput(BaseModel):
    """Address data entered manually on the checkout screen."""

    zip_code: str = ""
    state: str = ""
    city: str = ""
    street: str = ""
    neighborhood: str = ""
    number: str | None = None
    complement: str | None = None
    no_number: bool = False
    is_default: bool = False

    def to_payload(self) -> dict[str, object]:
        """Request body for the address endpoints."""
        return {
            "zip_code": self.zip_code,
            "state": self.state,
            "city": self.city,
            "street": self.street,
            "neighborhood": self.neighborhood,
            "number": NO_NUMBER if self.no_number else self.number,
            "complement": self.complement or None,
            "is_default": self.is_default,
        }
