from typing import Optional
from putik.schemas.dto.base_dto import BaseDTO


class UserDTO(BaseDTO):
    id: str
    email: str
    name: Optional[str] = None
    contact_number: Optional[str] = None
    role: str

    @classmethod
    def from_orm_model(cls, user) -> "UserDTO":
        return cls(
            id=user.id,
            email=user.email,
            name=user.name,
            contact_number=user.contact_number,
            role=user.role.value,
        )
