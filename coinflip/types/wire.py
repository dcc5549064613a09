"""
coinflip.types.wire
-------------------

JSON shape of a FlipRecord, as handed to presentation collaborators and
read back by `coinflip verify`.

Keys are camelCase (`publicHash`, `clientSeed`, `derivedValue`) and all
hashes are lowercase hex without a ``0x`` prefix. The model only checks
*shape*; whether the values are consistent is the verifier's job, so a
tampered but well-formed record parses fine.
"""

from __future__ import annotations

from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from coinflip.constants import DIGEST_SIZE
from coinflip.errors import RecordFormatError
from coinflip.types.core import FlipRecord, Outcome

_HEX_DIGEST = rf"^[0-9a-f]{{{DIGEST_SIZE * 2}}}$"


class FlipRecordModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    nonce: int = Field(..., ge=0, description="Flip counter (first flip is start+1).")
    secret: str = Field(..., description="Revealed server secret (hex text).")
    public_hash: str = Field(
        ..., alias="publicHash", pattern=_HEX_DIGEST, description="SHA-256 hex of secret."
    )
    client_seed: str = Field(..., alias="clientSeed", description="Player-chosen seed.")
    message: str = Field(..., description="Canonical secret:clientSeed:nonce string.")
    digest: str = Field(..., pattern=_HEX_DIGEST, description="SHA-256 hex of message.")
    derived_value: int = Field(..., alias="derivedValue", ge=0, le=0xFFFFFFFF)
    outcome: Outcome = Field(..., description="0 = HEADS, 1 = TAILS.")

    @classmethod
    def from_record(cls, record: FlipRecord) -> "FlipRecordModel":
        return cls.model_validate(record.to_dict())

    def to_record(self) -> FlipRecord:
        return FlipRecord(
            nonce=self.nonce,
            secret=self.secret,
            public_hash=self.public_hash,
            client_seed=self.client_seed,
            message=self.message,
            digest=self.digest,
            derived_value=self.derived_value,
            outcome=Outcome(self.outcome),
        )


def parse_record(data: Mapping[str, Any]) -> FlipRecord:
    """Parse a JSON-shaped mapping into a FlipRecord or raise RecordFormatError."""
    try:
        return FlipRecordModel.model_validate(data).to_record()
    except PydanticValidationError as e:
        raise RecordFormatError(f"not a flip record: {e}") from e


def parse_record_json(text: str) -> FlipRecord:
    try:
        return FlipRecordModel.model_validate_json(text).to_record()
    except PydanticValidationError as e:
        raise RecordFormatError(f"not a flip record: {e}") from e


__all__ = [
    "FlipRecordModel",
    "parse_record",
    "parse_record_json",
]
