# llm.py

"""
LLM recommendation pipeline.

Builds a single-turn prompt from the largest assessment gaps and sends it to
one of three chat-completion backends:

* llama.cpp ``llama-server`` (OpenAI-compatible ``/v1/chat/completions``)
* Ollama (thin HTTP call to the same endpoint, or the ``openai`` SDK pointed
  at Ollama's OpenAI-compatible API)
* OpenAI (``openai`` SDK)

Adapters raise `GovError` subclasses; `dispatch` turns every one of them into
an `LLMResult`, so a failed request never escapes to the UI. Nothing is
retried: each failure is final for that call.
"""

import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

import httpx
import openai

from config import (
    CONNECTION_TEST_PROMPT,
    DEFAULT_BASE_URLS,
    DEFAULT_MODELS,
    LLAMA_CPP_MAX_TOKENS,
    LLM_TEMPERATURE,
    LLM_TIMEOUT_SECONDS,
    OPENAI_API_KEY_ENV,
    PROMPT_GAP_LIMIT,
    SYSTEM_PROMPT,
)
from scoring import top_gap_items

logger = logging.getLogger(__name__)

CHAT_COMPLETIONS_PATH = "/v1/chat/completions"
OPENAI_DEFAULT_URL = "https://api.openai.com/v1"


class Provider(str, Enum):
    LLAMA_CPP = "llama_cpp"
    OLLAMA = "ollama"
    OPENAI = "openai"

    @property
    def label(self):
        return {"llama_cpp": "llama.cpp", "ollama": "Ollama", "openai": "OpenAI"}[self.value]


# ----------- Failure taxonomy -------------


class GovError(Exception):
    """Base class for recommendation failures. `message` tells the user what to do next."""

    kind = "error"

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class ConnectionRefused(GovError):
    kind = "connection_refused"


class ServerBusy(GovError):
    kind = "server_busy"


class RequestTimeout(GovError):
    kind = "timeout"


class HttpError(GovError):
    kind = "http_error"

    def __init__(self, status, body, provider=None):
        source = f" from {provider.label} server" if provider else ""
        super().__init__(f"HTTP {status} error{source}:\n{body}")
        self.status = status
        self.body = body


class MissingCredential(GovError):
    kind = "missing_credential"


class UnsupportedProvider(GovError):
    kind = "unsupported_provider"


class MalformedResponse(GovError):
    kind = "malformed_response"


# ----------- Config & result -------------


@dataclass(frozen=True)
class ProviderConfig:
    """
    The active LLM backend for a session.

    Blank `model` and `base_url` fall back to the provider defaults in
    `config.py`. `use_client_library` only matters for Ollama: True goes
    through the `openai` SDK, False through a plain httpx POST.
    """

    provider: str
    model: str = ""
    base_url: str = ""
    api_key: str = field(default="", repr=False)
    use_client_library: bool = True

    @property
    def _key(self):
        return getattr(self.provider, "value", self.provider)

    @property
    def effective_model(self):
        return self.model or DEFAULT_MODELS.get(self._key, "")

    @property
    def effective_base_url(self):
        return (self.base_url or DEFAULT_BASE_URLS.get(self._key, "")).rstrip("/")

    def resolve_api_key(self, environ=None):
        """
        Resolve the OpenAI key: explicit value first, then the environment.

        Raises:
            MissingCredential: if neither source has a key.
        """
        if self.api_key:
            return self.api_key
        env = os.environ if environ is None else environ
        key = env.get(OPENAI_API_KEY_ENV, "")
        if key:
            return key
        raise MissingCredential(
            f"OpenAI API key not provided. Enter a key or set the {OPENAI_API_KEY_ENV} "
            "environment variable."
        )


@dataclass(frozen=True)
class LLMResult:
    success: bool
    content: str = ""
    error: Optional[GovError] = None
    notice: str = ""

    @classmethod
    def ok(cls, content):
        return cls(success=True, content=content)

    @classmethod
    def failed(cls, error):
        return cls(success=False, error=error)

    @classmethod
    def info(cls, notice):
        """A non-error outcome that produced no text, e.g. nothing to analyze."""
        return cls(success=False, notice=notice)

    @property
    def message(self):
        if self.error is not None:
            return self.error.message
        return self.notice or self.content


# ----------- Helpers -------------


def _messages(prompt):
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": prompt},
    ]


def _timeout_error(provider):
    return RequestTimeout(
        f"Request to {provider.label} timed out after {LLM_TIMEOUT_SECONDS:.0f} seconds.\n\n"
        "The model may be generating a long response. Try:\n"
        "- Reducing max_tokens\n"
        "- Using a smaller/faster model\n"
        "- Checking server load"
    )


def _content_from_payload(data, provider):
    """Pull `choices[0].message.content` out of a decoded chat-completion body."""
    if isinstance(data, dict):
        choices = data.get("choices")
        if isinstance(choices, list) and choices and isinstance(choices[0], dict):
            message = choices[0].get("message")
            content = message.get("content") if isinstance(message, dict) else None
            if isinstance(content, str):
                return content
        error = data.get("error")
        if isinstance(error, dict) and error.get("message"):
            raise MalformedResponse(f"{provider.label} returned an error: {error['message']}")
    raise MalformedResponse(f"Unexpected response format from {provider.label}")


def _content_from_completion(completion, provider):
    choices = getattr(completion, "choices", None) or []
    message = getattr(choices[0], "message", None) if choices else None
    content = getattr(message, "content", None)
    if isinstance(content, str):
        return content
    # unknown keys such as "error" survive as extras on the SDK model
    error = getattr(completion, "error", None)
    if isinstance(error, dict) and error.get("message"):
        raise MalformedResponse(f"{provider.label} returned an error: {error['message']}")
    raise MalformedResponse(f"Unexpected response format from {provider.label}")


def _sdk_client(api_key, base_url, client):
    kwargs = {"api_key": api_key, "timeout": LLM_TIMEOUT_SECONDS, "max_retries": 0}
    if base_url:
        kwargs["base_url"] = base_url
    if client is not None:
        kwargs["http_client"] = client
    return openai.OpenAI(**kwargs)


# ----------- Providers -------------


class ChatProvider(ABC):
    """One backend protocol. `send` returns the reply text or raises a `GovError`."""

    provider: Provider

    @abstractmethod
    def send(self, prompt, config: ProviderConfig, client: Optional[httpx.Client] = None) -> str:
        ...

    @abstractmethod
    def connection_help(self, config: ProviderConfig) -> str:
        """Remediation text for an unreachable backend."""

    def _post_chat(self, url, payload, config, client):
        if client is None:
            with httpx.Client(timeout=httpx.Timeout(LLM_TIMEOUT_SECONDS)) as owned:
                return self._post_chat(url, payload, config, owned)
        try:
            response = client.post(
                url,
                json=payload,
                headers={"Content-Type": "application/json"},
                timeout=LLM_TIMEOUT_SECONDS,
            )
        except httpx.TimeoutException as exc:
            raise _timeout_error(self.provider) from exc
        except (httpx.TransportError, httpx.InvalidURL) as exc:
            raise ConnectionRefused(self.connection_help(config)) from exc

        self._check_status(response)
        try:
            data = response.json()
        except ValueError as exc:
            raise MalformedResponse(
                f"{self.provider.label} returned a non-JSON response:\n{response.text[:500]}"
            ) from exc
        return _content_from_payload(data, self.provider)

    def _check_status(self, response):
        if not response.is_success:
            raise HttpError(response.status_code, response.text, self.provider)

    def _sdk_send(self, api_key, base_url, config, prompt, client):
        """Run one chat completion through the `openai` SDK; closes the SDK client it owns."""
        try:
            sdk = _sdk_client(api_key, base_url, client)
        except (httpx.InvalidURL, openai.OpenAIError) as exc:
            raise ConnectionRefused(self.connection_help(config)) from exc
        try:
            return self._sdk_chat(sdk, config, prompt)
        finally:
            if client is None:
                sdk.close()

    def _sdk_chat(self, sdk, config, prompt):
        try:
            completion = sdk.chat.completions.create(
                model=config.effective_model,
                messages=_messages(prompt),
                temperature=LLM_TEMPERATURE,
            )
        except openai.APITimeoutError as exc:
            raise _timeout_error(self.provider) from exc
        except openai.APIConnectionError as exc:
            raise ConnectionRefused(self.connection_help(config)) from exc
        except openai.APIStatusError as exc:
            raise HttpError(exc.status_code, exc.response.text, self.provider) from exc
        except openai.APIResponseValidationError as exc:
            raise MalformedResponse(f"Unexpected response format from {self.provider.label}") from exc
        return _content_from_completion(completion, self.provider)


class LlamaCppProvider(ChatProvider):
    provider = Provider.LLAMA_CPP

    def send(self, prompt, config, client=None):
        payload = {
            "messages": _messages(prompt),
            "temperature": LLM_TEMPERATURE,
            "max_tokens": LLAMA_CPP_MAX_TOKENS,
            "stream": False,
        }
        return self._post_chat(config.effective_base_url + CHAT_COMPLETIONS_PATH, payload, config, client)

    def _check_status(self, response):
        if response.status_code == 503:
            raise ServerBusy(
                "llama.cpp server is busy (503). The server may be:\n"
                "- Still loading the model\n"
                "- Processing another request\n\n"
                "Try again in a moment."
            )
        super()._check_status(response)

    def connection_help(self, config):
        url = config.effective_base_url
        return (
            f"Cannot connect to llama.cpp server at {url}\n\n"
            "Make sure llama-server is running:\n"
            "1. Start the server: ./llama-server -m /path/to/model.gguf --port 8080\n"
            f"2. Verify server is accessible at {url}/health"
        )


class OllamaProvider(ChatProvider):
    provider = Provider.OLLAMA

    def send(self, prompt, config, client=None):
        if config.use_client_library:
            # Ollama ignores the key but the SDK insists on one.
            return self._sdk_send("ollama", config.effective_base_url + "/v1", config, prompt, client)

        payload = {
            "model": config.effective_model,
            "messages": _messages(prompt),
            "temperature": LLM_TEMPERATURE,
            "stream": False,
        }
        return self._post_chat(config.effective_base_url + CHAT_COMPLETIONS_PATH, payload, config, client)

    def connection_help(self, config):
        return (
            f"Cannot connect to Ollama server at {config.effective_base_url}\n\n"
            "Make sure Ollama is running:\n"
            "1. Install Ollama: https://ollama.ai\n"
            "2. Start server: 'ollama serve'\n"
            f"3. Pull model: 'ollama pull {config.effective_model}'"
        )


class OpenAIProvider(ChatProvider):
    provider = Provider.OPENAI

    def send(self, prompt, config, client=None):
        api_key = config.resolve_api_key()
        return self._sdk_send(api_key, config.effective_base_url, config, prompt, client)

    def connection_help(self, config):
        url = config.effective_base_url or OPENAI_DEFAULT_URL
        return (
            f"Cannot connect to the OpenAI API at {url}\n\n"
            "Check your network connection, proxy settings and the OpenAI status page."
        )


PROVIDERS = {
    Provider.LLAMA_CPP: LlamaCppProvider(),
    Provider.OLLAMA: OllamaProvider(),
    Provider.OPENAI: OpenAIProvider(),
}


def get_provider(provider) -> ChatProvider:
    """
    Look up the adapter for a provider name or `Provider`.

    Raises:
        UnsupportedProvider: for anything outside the three known backends.
    """
    try:
        return PROVIDERS[Provider(provider)]
    except ValueError:
        raise UnsupportedProvider(
            f"Unknown provider: {provider!r}. Choose one of: "
            + ", ".join(p.value for p in Provider)
        ) from None


# ----------- Pipeline -------------


def dispatch(prompt, config: ProviderConfig, client: Optional[httpx.Client] = None) -> LLMResult:
    """
    Send one prompt to the configured backend.

    Args:
        prompt (str): the user message; the system prompt is added here.
        config (ProviderConfig): backend selection and connection details.
        client (httpx.Client, optional): transport to use instead of a fresh client
            with the 120 second timeout.

    Returns:
        LLMResult: the reply text, or the `GovError` that stopped the request.
    """
    try:
        adapter = get_provider(config.provider)
        logger.info(
            "Sending prompt to %s (model=%s, %d chars)",
            adapter.provider.label,
            config.effective_model,
            len(prompt),
        )
        content = adapter.send(prompt, config, client=client)
    except GovError as exc:
        logger.warning("LLM request failed (%s): %s", exc.kind, exc.message.splitlines()[0])
        return LLMResult.failed(exc)
    logger.info("Received %d chars from %s", len(content), adapter.provider.label)
    return LLMResult.ok(content)


def build_prompt(gap_items):
    """
    Build the recommendation prompt.

    Args:
        gap_items (pd.DataFrame): rows with code, question, current, target and gap,
            already ranked (see `scoring.top_gap_items`).

    Returns:
        str: the user message
    """
    lines = []
    for item in gap_items.to_dict(orient="records"):
        lines.append(
            f"{item['code']}: {item.get('question', '')}\n"
            f"Current Level: {int(item['current'])}, Target Level: {int(item['target'])}, "
            f"Gap: {int(item['gap'])}\n"
        )
    return (
        "Based on the following AI Governance Assessment gaps aligned with NIST AI RMF, "
        "provide specific, actionable recommendations for each item. "
        "Consider healthcare regulatory requirements (HIPAA, CMIA) and organizational "
        "implementation feasibility.\n\n"
        "Assessment Gaps:\n"
        + "\n".join(lines)
        + "\n\nFor each governance item, provide:\n"
        "1. **Specific Action Steps** - Concrete tasks to close the gap\n"
        "2. **Key Stakeholders** - Who needs to be involved\n"
        "3. **Timeline** - Quick win (1-3 months) vs Strategic initiative (6-12 months)\n"
        "4. **Dependencies** - Prerequisites or related items\n\n"
        "Format your response clearly with the GOV code as headers."
    )


def generate_recommendations(ratings, config, limit=PROMPT_GAP_LIMIT, client=None) -> LLMResult:
    """
    Ask the configured LLM for recommendations on the largest open gaps.

    Returns an informational result without any network call when no
    question has a positive gap.
    """
    gap_items = top_gap_items(ratings, limit)
    if gap_items.empty:
        return LLMResult.info("No gaps found to analyze.")
    return dispatch(build_prompt(gap_items), config, client=client)


def check_connection(config, client=None) -> LLMResult:
    """Round-trip a trivial prompt through `dispatch` to check the backend."""
    return dispatch(CONNECTION_TEST_PROMPT, config, client=client)


def provider_hint(config):
    """Status line shown while the connection is still unverified."""
    try:
        provider = Provider(config.provider)
    except ValueError:
        return f"Unknown provider: {config.provider!r}"
    if provider is Provider.LLAMA_CPP:
        return f"llama.cpp: Ensure llama-server is running at {config.effective_base_url}"
    if provider is Provider.OLLAMA:
        return (
            f"Ollama: Ensure server is running at {config.effective_base_url} "
            f"and model {config.effective_model} is pulled"
        )
    return f"OpenAI: Enter API key or set {OPENAI_API_KEY_ENV} environment variable"
