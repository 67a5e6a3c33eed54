"""Structured public-key record (JSON Web Key) used on the wire."""
from typing import Optional

from pydantic import BaseModel, ConfigDict, StrictBool, StrictStr


class OtherPrimeInfo(BaseModel):
    model_config = ConfigDict(extra="forbid")

    d: Optional[StrictStr] = None
    r: Optional[StrictStr] = None
    t: Optional[StrictStr] = None


class PublicKeyRecord(BaseModel):
    """Every member is optional: the record has to describe keys of
    algorithms that only use a subset of these parameters. Members are
    strictly typed so a wrong type fails instead of being coerced."""

    model_config = ConfigDict(extra="forbid")

    alg: Optional[StrictStr] = None
    crv: Optional[StrictStr] = None
    d: Optional[StrictStr] = None
    dp: Optional[StrictStr] = None
    dq: Optional[StrictStr] = None
    e: Optional[StrictStr] = None
    ext: Optional[StrictBool] = None
    k: Optional[StrictStr] = None
    key_ops: Optional[list[StrictStr]] = None
    kty: Optional[StrictStr] = None
    n: Optional[StrictStr] = None
    oth: Optional[list[OtherPrimeInfo]] = None
    p: Optional[StrictStr] = None
    q: Optional[StrictStr] = None
    qi: Optional[StrictStr] = None
    use: Optional[StrictStr] = None
    x: Optional[StrictStr] = None
    y: Optional[StrictStr] = None

    def to_json_dict(self) -> dict:
        return self.model_dump(exclude_none=True)
