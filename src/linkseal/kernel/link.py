"""Link (attestation) and envelope models."""

from typing import Any, Dict, List, Literal, Mapping, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, field_validator

from linkseal.errors import InvalidStepNameError

LINK_TYPE = "link"


class Link(BaseModel):
    """Record of one supply chain step.

    Materials and products are recorded independently and never merged; the
    same path appearing in both with different digests means the step
    modified it.
    """
    type: Literal["link"] = Field(default=LINK_TYPE, alias="_type")
    name: str
    materials: Dict[str, Dict[str, str]] = Field(default_factory=dict)
    products: Dict[str, Dict[str, str]] = Field(default_factory=dict)
    byproducts: Dict[str, Any] = Field(default_factory=dict)  # stdout, stderr, return-value
    command: List[str] = Field(default_factory=list)
    environment: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v:
            raise InvalidStepNameError("Step name must not be empty")
        return v

    def to_dict(self) -> Dict[str, Any]:
        """Plain dict form, as encoded for signing and storage."""
        return self.model_dump(by_alias=True, mode="json")


class Signature(BaseModel):
    """Signature over the canonical encoding of a Link."""
    keyid: str
    sig: str  # lowercase hex

    model_config = ConfigDict(frozen=True, extra="forbid")


class Metablock(BaseModel):
    """Envelope: a Link plus its signatures (empty when unsigned)."""
    signed: Link
    signatures: List[Signature] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True, extra="forbid")

    @property
    def is_signed(self) -> bool:
        return bool(self.signatures)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "signatures": [s.model_dump(mode="json") for s in self.signatures],
            "signed": self.signed.to_dict(),
        }


def assemble_link(
    name: str,
    materials: Mapping[str, Mapping[str, str]],
    products: Mapping[str, Mapping[str, str]],
    byproducts: Optional[Mapping[str, Any]] = None,
    command: Sequence[str] = (),
    environment: Optional[Mapping[str, Any]] = None,
) -> Link:
    """Combine recorded artifacts and command results into a Link.

    No cross-checking between materials and products happens here. The
    command is kept exactly as given, in order, including when empty.

    Raises:
        InvalidStepNameError: If name is empty
    """
    if not name:
        raise InvalidStepNameError("Step name must not be empty")
    return Link(
        name=name,
        materials={path: dict(digests) for path, digests in materials.items()},
        products={path: dict(digests) for path, digests in products.items()},
        byproducts=dict(byproducts or {}),
        command=list(command),
        environment=dict(environment or {}),
    )
