"""
Unified LLM provider for DeepSeek, Gemini and Groq.
Every call goes through complete_text() and returns the model's raw text;
callers own prompt construction and response parsing.
"""
from __future__ import annotations

import os
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

PROVIDER_KEYS = {
    "deepseek": "DEEPSEEK_API_KEY",
    "gemini": "GEMINI_API_KEY",
    "groq": "GROQ_API_KEY",
}

# ---------------------------------------------------------------------------
# Provider selection
# ---------------------------------------------------------------------------


def provider_configured(provider: str) -> bool:
    """True when the credential for ``provider`` is present in the environment."""
    env_name = PROVIDER_KEYS.get((provider or "").lower())
    if not env_name:
        return False
    return bool(os.getenv(env_name))


# ---------------------------------------------------------------------------
# DeepSeek
# ---------------------------------------------------------------------------

_deepseek_client = None


def _get_deepseek_client():
    global _deepseek_client
    if _deepseek_client is not None:
        return _deepseek_client
    api_key = os.getenv("DEEPSEEK_API_KEY")
    if not api_key:
        return None
    from openai import OpenAI
    base_url = os.getenv("DEEPSEEK_BASE_URL", "https://api.deepseek.com")
    _deepseek_client = OpenAI(api_key=api_key, base_url=base_url)
    return _deepseek_client


# ---------------------------------------------------------------------------
# Gemini
# ---------------------------------------------------------------------------

_gemini_models: dict = {}


def _get_gemini_model(model_name: Optional[str] = None):
    api_key = os.getenv("GEMINI_API_KEY")
    if not api_key:
        return None
    model_name = model_name or os.getenv("GEMINI_MODEL", "gemini-1.5-flash")
    if model_name in _gemini_models:
        return _gemini_models[model_name]
    try:
        import google.generativeai as genai
    except ImportError:
        return None
    genai.configure(api_key=api_key)
    _gemini_models[model_name] = genai.GenerativeModel(model_name)
    return _gemini_models[model_name]


# ---------------------------------------------------------------------------
# Groq
# ---------------------------------------------------------------------------

_groq_client = None


def _get_groq_client():
    """Lazy Groq client using GROQ_API_KEY. None when the key is missing."""
    global _groq_client
    if _groq_client is not None:
        return _groq_client
    api_key = os.getenv("GROQ_API_KEY")
    if not api_key:
        return None
    from groq import Groq
    _groq_client = Groq(api_key=api_key)
    return _groq_client


def _groq_error(e: Exception) -> RuntimeError:
    from groq import APIError, AuthenticationError, RateLimitError

    if isinstance(e, RateLimitError) or getattr(e, "status_code", None) == 429:
        return RuntimeError("Groq rate limit reached. Please try again in a few minutes.")
    if isinstance(e, AuthenticationError) or getattr(e, "status_code", None) == 401:
        return RuntimeError("Invalid or expired Groq API key. Check GROQ_API_KEY in .env")
    if isinstance(e, APIError):
        return RuntimeError(f"Groq API error: {getattr(e, 'message', str(e))}")
    return RuntimeError(f"Groq API error: {e}")


# ---------------------------------------------------------------------------
# Unified complete_text
# ---------------------------------------------------------------------------


def _chat_messages(prompt: str, system: Optional[str]) -> list[dict]:
    messages = []
    if system:
        messages.append({"role": "system", "content": system})
    messages.append({"role": "user", "content": prompt})
    return messages


def complete_text(
    provider: str,
    prompt: str,
    *,
    system: Optional[str] = None,
    model: Optional[str] = None,
    max_tokens: int = 2048,
    temperature: float = 0.1,
    timeout: Optional[float] = None,
) -> str:
    """
    Call the given provider (gemini | deepseek | groq) and return raw text.

    Any transport, timeout or API failure is raised as RuntimeError; nothing
    is retried here.
    """
    if provider == "gemini":
        gemini = _get_gemini_model(model)
        if gemini is None:
            raise RuntimeError("GEMINI_API_KEY is not set or Gemini model failed to load")
        full = (system + "\n\n" + prompt) if system else prompt
        request_options = {"timeout": timeout} if timeout else None
        try:
            response = gemini.generate_content(
                full,
                generation_config={
                    "temperature": temperature,
                    "max_output_tokens": max_tokens,
                },
                request_options=request_options,
            )
            if response and response.text:
                return response.text.strip()
            return ""
        except Exception as e:
            raise RuntimeError(f"Gemini API error: {e}") from e

    elif provider == "deepseek":
        client = _get_deepseek_client()
        if client is None:
            raise RuntimeError("DEEPSEEK_API_KEY is not set")
        if timeout:
            client = client.with_options(timeout=timeout)
        model_name = model or os.getenv("DEEPSEEK_MODEL", "deepseek-chat")
        try:
            resp = client.chat.completions.create(
                model=model_name,
                messages=_chat_messages(prompt, system),
                temperature=temperature,
                max_tokens=max_tokens,
            )
            return (resp.choices[0].message.content or "").strip()
        except Exception as e:
            raise RuntimeError(f"DeepSeek API error: {e}") from e

    elif provider == "groq":
        client = _get_groq_client()
        if client is None:
            raise RuntimeError("GROQ_API_KEY is not set")
        if timeout:
            client = client.with_options(timeout=timeout)
        model_name = model or os.getenv("GROQ_MODEL") or "llama-3.3-70b-versatile"
        try:
            resp = client.chat.completions.create(
                model=model_name,
                messages=_chat_messages(prompt, system),
                temperature=temperature,
                max_tokens=max_tokens,
            )
            return (resp.choices[0].message.content or "").strip()
        except Exception as e:
            raise _groq_error(e) from e
    else:
        raise ValueError(f"Unknown provider: {provider}")
