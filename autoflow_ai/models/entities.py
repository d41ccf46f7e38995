"""Entity: a typed, confidence-scored fragment recognized in one utterance."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class EntityType(str, Enum):
    INTEGRATION = "integration"
    TIME = "time"
    DATA_FIELD = "data_field"
    CONTACT = "contact"
    AMOUNT = "amount"
    CONDITION = "condition"


class Entity(BaseModel):
    """Created while parsing a single utterance. Never mutated or merged across turns."""

    model_config = ConfigDict(frozen=True)

    type: EntityType
    value: str                              # Normalized value, e.g. "whatsapp"
    original_text: str                      # Matched substring as written by the user
    confidence: float = Field(ge=0.0, le=1.0)
