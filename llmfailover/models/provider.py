from enum import Enum
from typing import Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from .base import CamelModel


class ApiFamily(str, Enum):
    """
    Wire protocol spoken by a provider's completion endpoint.
    """

    OPENAI = "openai-completions"
    ANTHROPIC = "anthropic-messages"
    GOOGLE = "google-generative-ai"
    COPILOT = "github-copilot"
    BEDROCK = "bedrock-converse-stream"


class AuthMode(str, Enum):
    """
    How the default credential of a provider is obtained.
    """

    API_KEY = "api-key"
    AWS_SDK = "aws-sdk"
    OAUTH = "oauth"
    TOKEN = "token"
    SESSION = "session"


InputModality = Literal["text", "image"]


class ModelCost(BaseModel):
    """
    USD price per million tokens.
    """

    model_config = ConfigDict(frozen=True)

    input_per_million: float = Field(0.0, ge=0)
    output_per_million: float = Field(0.0, ge=0)


class ModelDef(BaseModel):
    """
    A model exposed by a provider. Identity is (provider, id).
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Model identifier on the provider side")
    display_name: str = Field(..., description="Human readable display name")
    reasoning: bool = Field(False, description="Extended reasoning model")
    input_modalities: Tuple[InputModality, ...] = Field(
        ("text",), description="Accepted input modalities"
    )
    cost: ModelCost = Field(default_factory=ModelCost)
    context_window: int = Field(..., gt=0)
    max_output_tokens: int = Field(..., gt=0)
    subscription: bool = Field(False, description="Billed through a subscription")
    local: bool = Field(False, description="Served by a local model server")

    def accepts(self, modality: str) -> bool:
        return modality in self.input_modalities


class ProviderConfig(BaseModel):
    """
    Static description of a supported backend.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Provider slug, e.g. 'anthropic'")
    base_url: str = Field(..., description="API base URL (may contain placeholders)")
    api_family: ApiFamily
    auth_mode: AuthMode = AuthMode.API_KEY
    env_key: Optional[str] = Field(
        None, description="Environment variable holding the default credential"
    )
    requires_auth: bool = True
    description: Optional[str] = None
    subscription: bool = False
    models: Tuple[ModelDef, ...] = ()

    def find_model(self, model_id: str) -> Optional[ModelDef]:
        for model in self.models:
            if model.id == model_id:
                return model
        return None


class DefaultCredential(CamelModel):
    """
    Credential resolved from the process environment for a provider.
    `api_key` is None for providers that need no credential.
    """

    api_key: Optional[str] = None
    source: str
    is_subscription: bool = False
    auth_type: Optional[str] = None


class ProviderSummary(CamelModel):
    name: str
    base_url: str
    api: ApiFamily
    model_count: int
    has_auth: bool
    auth_source: str


class AvailableModel(CamelModel):
    """
    Flattened catalog row: one per (provider, model).
    """

    ref: str
    provider: str
    id: str
    display_name: str
    reasoning: bool
    input_modalities: Tuple[InputModality, ...]
    cost: ModelCost
    context_window: int
    max_output_tokens: int
    local: bool = False
    available: bool


__all__ = [
    "ApiFamily",
    "AuthMode",
    "AvailableModel",
    "DefaultCredential",
    "InputModality",
    "ModelCost",
    "ModelDef",
    "ProviderConfig",
    "ProviderSummary",
]
