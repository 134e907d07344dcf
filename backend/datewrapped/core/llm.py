from openai import AsyncOpenAI

from datewrapped.core.config import settings


def normalize_openai_base_url(base_url: str) -> str:
    base_url = (base_url or "").strip()
    if not base_url:
        return base_url
    base_url = base_url.rstrip("/")
    if base_url.endswith("/v1"):
        return base_url
    return f"{base_url}/v1"


def create_llm_client() -> AsyncOpenAI:
    return AsyncOpenAI(
        api_key=settings.OPENAI_API_KEY or "missing-key",
        base_url=normalize_openai_base_url(settings.OPENAI_API_BASE) or None,
        timeout=settings.LLM_REQUEST_TIMEOUT_S,
        max_retries=0,
    )
