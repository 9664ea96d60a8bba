from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

Provider = Literal["openai", "anthropic", "google", "vercel", "ollama"]
Effort = Literal["low", "medium", "high"]

MIN_THINKING_BUDGET = 1024


class ThinkingConfig(BaseModel):
    """Reasoning settings forwarded to the model.

    Args:
        enabled: Whether the model should emit reasoning at all.
        budget_tokens: Token budget for Anthropic and Gemini 2.5 models.
        reasoning_effort: Effort level for OpenAI reasoning models.
        thinking_level: Thinking level for Gemini 3 models.
    """

    model_config = ConfigDict(frozen=True)

    enabled: bool
    budget_tokens: int | None = None
    reasoning_effort: Effort | None = None
    thinking_level: Effort | None = None


class ExchangeOptions(BaseModel):
    """Per-message settings for :meth:`ExchangeController.send`.

    ``conversation_id`` overrides the controller's default target.
    """

    model_config = ConfigDict(frozen=True)

    provider: Provider
    model: str
    thinking_enabled: bool = False
    thinking_budget: int | None = Field(default=None, ge=MIN_THINKING_BUDGET)
    reasoning_effort: Effort | None = None
    thinking_level: Effort | None = None
    conversation_id: str | None = None

    @field_validator("model")
    @classmethod
    def _model_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("model must not be blank")
        return value

    def thinking_config(self) -> ThinkingConfig | None:
        if not self.thinking_enabled:
            return None
        return ThinkingConfig(
            enabled=True,
            budget_tokens=self.thinking_budget,
            reasoning_effort=self.reasoning_effort,
            thinking_level=self.thinking_level,
        )

    def request_body(self, content: str) -> dict:
        """JSON body for the finance API's send-message endpoint."""
        body = {
            "content": content,
            "provider": self.provider,
            "model": self.model,
            "thinkingEnabled": self.thinking_enabled,
        }
        optional = {
            "thinkingBudget": self.thinking_budget,
            "reasoningEffort": self.reasoning_effort,
            "thinkingLevel": self.thinking_level,
        }
        body.update({k: v for k, v in optional.items() if v is not None})
        return body
