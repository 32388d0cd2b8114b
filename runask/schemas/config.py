"""Resolved configuration for a runask session."""

from __future__ import annotations

from pydantic import BaseModel, Field

from runask.errors import ConfigurationError


class AskConfig(BaseModel):
    """Credentials, endpoint, and reveal settings for asking a pipeline."""

    api_key: str = Field(default="", description="RunLLM API key")
    pipeline_id: str = Field(default="", description="RunLLM pipeline identifier")
    streaming_speed_ms: int = Field(
        default=30, ge=0, description="Milliseconds per revealed character"
    )
    base_url: str = Field(default="https://api.runllm.com", description="API root URL")
    timeout: float = Field(default=120.0, gt=0, description="Request timeout in seconds")
    copy_to_clipboard: bool = Field(
        default=True, description="Copy the final answer to the system clipboard"
    )

    @property
    def pipeline_path_id(self) -> str:
        """Pipeline id as used in the URL path.

        Numeric ids are normalized (``" 007 "`` becomes ``"7"``); anything
        else is passed through unchanged.
        """
        raw = self.pipeline_id.strip()
        try:
            return str(int(raw))
        except ValueError:
            return raw

    @property
    def chat_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/api/pipeline/{self.pipeline_path_id}/chat"

    @property
    def tick_interval(self) -> float:
        """Reveal tick period in seconds."""
        return self.streaming_speed_ms / 1000

    def validate_credentials(self) -> None:
        """Check that the values needed for a request are present.

        Raises:
            ConfigurationError: If the API key or pipeline id is blank.
        """
        if not self.api_key.strip():
            raise ConfigurationError(
                "Please set your RunLLM API key (RUNLLM_API_KEY or `runask setup`)."
            )
        if not self.pipeline_id.strip():
            raise ConfigurationError(
                "Please set your RunLLM Pipeline ID (RUNLLM_PIPELINE_ID or `runask setup`)."
            )

    def masked_key(self) -> str:
        """API key with all but the last four characters hidden."""
        if not self.api_key:
            return ""
        if len(self.api_key) <= 4:
            return "*" * len(self.api_key)
        return "*" * (len(self.api_key) - 4) + self.api_key[-4:]
