from typing import Protocol, runtime_checkable


@runtime_checkable
class RecommendationModel(Protocol):

    async def generate(self, prompt: str) -> str:
        """Send a prompt to the generative model and return its raw text output."""
        ...
