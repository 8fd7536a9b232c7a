"""LLM provider factory using browser-use native providers, and the chat model interface."""

from collections.abc import AsyncIterator, Sequence
from typing import TYPE_CHECKING, Protocol, runtime_checkable

import httpx

# Import available chat models from browser-use
from browser_use import ChatAnthropic, ChatGoogle, ChatGroq, ChatOllama, ChatOpenAI

# These are available via direct import but not in __all__
from browser_use.llm.deepseek.chat import ChatDeepSeek
from browser_use.llm.exceptions import ModelProviderError
from browser_use.llm.messages import AssistantMessage, SystemMessage, UserMessage
from browser_use.llm.openrouter.chat import ChatOpenRouter

from .config import NO_KEY_PROVIDERS, STANDARD_ENV_VAR_NAMES, LLMSettings, ProxyInfo
from .exceptions import LLMProviderError, NetworkError
from .models import ChatChunk, ChatMessage
from .tokens import count_tokens, strip_images

if TYPE_CHECKING:
    from browser_use.llm.base import BaseChatModel


@runtime_checkable
class ChatModel(Protocol):
    """What the pipeline needs from a language model."""

    model: str
    context_length: int

    def count_tokens(self, text: str) -> int: ...

    def stream_chat(self, messages: Sequence[ChatMessage]) -> AsyncIterator[ChatChunk]: ...


def get_llm(
    provider: str,
    model: str,
    api_key: str | None = None,
    base_url: str | None = None,
    proxy_info: ProxyInfo | None = None,
) -> "BaseChatModel":
    """Create LLM instance using browser-use native providers.

    Supported providers:
    - openai: OpenAI GPT models
    - anthropic: Claude models
    - google: Gemini models
    - groq: Groq-hosted models
    - deepseek: DeepSeek models
    - openrouter: OpenRouter API
    - ollama: Local Ollama models (no API key required)
    - proxy: OpenAI-compatible model proxy described by ``proxy_info``

    Args:
        provider: LLM provider name
        model: Model name/identifier
        api_key: API key for the provider (not required for ollama/proxy)
        base_url: Custom base URL for OpenAI-compatible APIs
        proxy_info: Proxy connection details, required for the proxy provider

    Returns:
        Configured BaseChatModel instance

    Raises:
        LLMProviderError: If provider is unsupported or API key is missing
    """
    requires_api_key = provider not in NO_KEY_PROVIDERS and not base_url
    if requires_api_key and not api_key:
        standard_var = STANDARD_ENV_VAR_NAMES.get(provider, "API key")
        raise LLMProviderError(f"API key required for provider '{provider}'. Set {standard_var} or MCP_LLM_API_KEY environment variable.")

    try:
        match provider:
            case "openai":
                return ChatOpenAI(model=model, api_key=api_key, base_url=base_url)

            case "anthropic":
                return ChatAnthropic(model=model, api_key=api_key)

            case "google":
                return ChatGoogle(model=model, api_key=api_key)

            case "groq":
                return ChatGroq(model=model, api_key=api_key)

            case "deepseek":
                return ChatDeepSeek(model=model, api_key=api_key)

            case "openrouter":
                return ChatOpenRouter(model=model, api_key=api_key)

            case "ollama":
                return ChatOllama(model=model, host=base_url)

            case "proxy":
                if proxy_info is None:
                    raise LLMProviderError("The proxy provider requires proxy info; load settings with load_config().")
                return ChatOpenAI(model=model, api_key=proxy_info.access_token, base_url=f"{proxy_info.proxy_url}v1")

            case _:
                raise LLMProviderError(f"Unsupported provider: {provider}")

    except LLMProviderError:
        raise
    except Exception as e:
        raise LLMProviderError(f"Failed to initialize {provider} LLM: {e}") from e


def _to_browser_use_message(message: ChatMessage) -> UserMessage | AssistantMessage | SystemMessage:
    # Image parts in history are flattened away; the pipeline only sends text.
    content = strip_images(message.content)
    match message.role:
        case "system":
            return SystemMessage(content=content)
        case "assistant":
            return AssistantMessage(content=content)
        case _:
            return UserMessage(content=content)


class BrowserUseChatModel:
    """Adapts a browser-use chat model to the ChatModel interface.

    browser-use models return whole completions, so ``stream_chat`` yields a
    single chunk per call.
    """

    def __init__(self, llm: "BaseChatModel", model: str, context_length: int):
        self.llm = llm
        self.model = model
        self.context_length = context_length

    def count_tokens(self, text: str) -> int:
        return count_tokens(self.model, text)

    async def stream_chat(self, messages: Sequence[ChatMessage]) -> AsyncIterator[ChatChunk]:
        try:
            response = await self.llm.ainvoke([_to_browser_use_message(m) for m in messages])
        except (ModelProviderError, httpx.HTTPError) as e:
            raise NetworkError(f"Model call failed: {e}") from e
        yield ChatChunk(content=response.completion)


def build_chat_model(settings: LLMSettings) -> BrowserUseChatModel:
    """Create the chat model described by ``settings``."""
    llm = get_llm(
        provider=settings.provider,
        model=settings.model_name,
        api_key=settings.get_api_key_for_provider(),
        base_url=settings.base_url,
        proxy_info=settings.proxy_info,
    )
    return BrowserUseChatModel(llm, model=settings.model_name, context_length=settings.context_length)
