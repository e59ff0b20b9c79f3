"""Amazon Bedrock adapter implementing the RecommendationModel protocol."""

import logging
from dataclasses import dataclass
from typing import Optional

import aioboto3

logger = logging.getLogger(__name__)


@dataclass
class BedrockModelConfig:
    """Configuration for the Bedrock recommendation model."""
    region: str = 'us-east-1'
    model_id: str = 'amazon.nova-lite-v1:0'
    max_tokens: int = 1024
    temperature: float = 0.7
    top_p: float = 0.9
    system_prompt: str = "You are a careful assistant that follows the requested output format exactly."
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None
    aws_session_token: Optional[str] = None


class BedrockRecommendationModel:
    """Sends prompts to a Bedrock text model through the Converse API."""

    def __init__(self, config: Optional[BedrockModelConfig] = None):
        self.config = config or BedrockModelConfig()
        self._session = aioboto3.Session(
            aws_access_key_id=self.config.aws_access_key_id,
            aws_secret_access_key=self.config.aws_secret_access_key,
            aws_session_token=self.config.aws_session_token,
            region_name=self.config.region,
        )

    async def generate(self, prompt: str) -> str:
        """Return the model's text answer to a single-turn prompt.

        Raises:
            ValueError: If the response carries no text.
            botocore.exceptions.ClientError: On Bedrock errors.
        """
        logger.info(f"Invoking Bedrock model {self.config.model_id}")
        async with self._session.client("bedrock-runtime", region_name=self.config.region) as client:
            response = await client.converse(
                modelId=self.config.model_id,
                system=[{"text": self.config.system_prompt}],
                messages=[{"role": "user", "content": [{"text": prompt}]}],
                inferenceConfig={
                    "maxTokens": self.config.max_tokens,
                    "temperature": self.config.temperature,
                    "topP": self.config.top_p,
                },
            )

        content = response.get("output", {}).get("message", {}).get("content", [])
        text = "".join(block.get("text", "") for block in content).strip()
        if not text:
            raise ValueError(f"Bedrock model {self.config.model_id} returned no text")

        usage = response.get("usage", {})
        logger.info(
            f"Bedrock responded with {len(text)} chars "
            f"({usage.get('inputTokens', '?')} in / {usage.get('outputTokens', '?')} out tokens)"
        )
        return text
