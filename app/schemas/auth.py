from pydantic import BaseModel


class WhoAmIResponse(BaseModel):
    id: int
    # Members enrolled without an email carry a placeholder address.
    user: str
    roles: list[str]
    full_name: str | None = None
    membership_number: str | None = None
