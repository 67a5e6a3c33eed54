from typing import Annotated, Mapping

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, ValidationError

from blindkey.crypto.jwk import PublicKeyRecord
from blindkey.errors import SchemaInvalid

Byte = Annotated[StrictInt, Field(ge=0, le=255)]


class StoredIdentity(BaseModel):
    """What the store keeps per username. The username itself is the key and
    is not repeated inside the record."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    password_hash: StrictStr = Field(alias="hashedPassword")
    public_key: PublicKeyRecord = Field(alias="publicKey")
    wrapped_private_key: list[Byte] = Field(alias="encryptedPrivateKey")

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)

    @classmethod
    def from_wire(cls, data: Mapping) -> "StoredIdentity":
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise SchemaInvalid(f"Malformed user record: {exc.error_count()} error(s)") from exc
