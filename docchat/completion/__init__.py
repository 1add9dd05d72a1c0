from docchat.completion.client_base import BaseCompletionClient
from docchat.completion.factory import CompletionClientFactory
from docchat.completion.openai_client_adapter import OpenAIClientAdapter

__all__ = ["BaseCompletionClient", "CompletionClientFactory", "OpenAIClientAdapter"]
