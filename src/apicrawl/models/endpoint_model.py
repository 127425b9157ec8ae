# src/apicrawl/models/endpoint_model.py
from typing import Any, Dict, NamedTuple, Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator

# Keys of a link object that map onto EndpointRecord fields.
KNOWN_LINK_FIELDS = ('href', 'rel', 'method', 'type', 'title')

# Serialization order of a record; identifying fields first.
RECORD_FIELD_ORDER = (
    'address',
    'relation',
    'depth',
    'parent_address',
    'method',
    'content_type',
    'title',
    'metadata',
)


class IdentityKey(NamedTuple):
    """Output identity of a record. Used for set membership only."""
    address: str
    parent_address: Optional[str]
    relation: Optional[str]


class EndpointRecord(BaseModel):
    """Model representing one link discovered in a JSON response."""
    model_config = ConfigDict(frozen=True)

    address: str = Field(..., min_length=1)
    relation: Optional[str] = None
    depth: int = Field(..., ge=0)
    parent_address: Optional[str] = None

    # Only set when the source object declared them
    method: Optional[str] = None
    content_type: Optional[str] = None
    title: Optional[str] = None

    metadata: Dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode='after')
    def _metadata_is_disjoint(self) -> 'EndpointRecord':
        overlap = set(self.metadata).intersection(KNOWN_LINK_FIELDS)
        if overlap:
            raise ValueError(
                f"metadata must not carry link fields: {sorted(overlap)}"
            )
        return self

    @property
    def identity_key(self) -> IdentityKey:
        return IdentityKey(self.address, self.parent_address, self.relation)

    @property
    def is_self_reference(self) -> bool:
        return self.parent_address == self.address

    @property
    def is_templated(self) -> bool:
        return self.metadata.get('templated') is True

    def to_dict(self) -> Dict[str, Any]:
        """Serialize in RECORD_FIELD_ORDER, leaving out unset optional fields."""
        data: Dict[str, Any] = {}
        for name in RECORD_FIELD_ORDER:
            value = getattr(self, name)
            if value is None or (name == 'metadata' and not value):
                continue
            data[name] = dict(value) if name == 'metadata' else value
        return data


class FrontierItem(BaseModel):
    """An address waiting to be fetched."""
    model_config = ConfigDict(frozen=True)

    address: str
    depth: int = Field(..., ge=0)
    parent_address: Optional[str] = None
    relation_hint: Optional[str] = None
