"""Example completion client adapter.

Use this module as a reference when implementing new provider adapters.
Implement BaseCompletionClient and register the provider in
CompletionClientFactory.
"""

import json
from typing import ClassVar

from docchat.completion.client_base import BaseCompletionClient


class ExampleClientAdapter(BaseCompletionClient):
    """Example adapter that returns a fixed, well-formed reply.

    No network calls. Useful for local development and tests.
    """

    DEFAULT_RESPONSE: ClassVar[dict[str, str]] = {
        "response": "This is an example reply. Configure a completion provider "
        "to get real answers about your document.",
    }

    async def complete(self, *, model: str, prompt: str) -> str:
        _ = model, prompt
        return "```json\n" + json.dumps(self.DEFAULT_RESPONSE) + "\n```"
