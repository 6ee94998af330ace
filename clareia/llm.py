# clareia/llm.py
import json
import logging
import time
from typing import Any, Dict, Optional

import httpx

from .config import Settings
from .errors import MalformedEnvelopeError, ServiceError, TransportError

logger = logging.getLogger(__name__)

# Bump whenever PROMPT_TEMPLATE wording changes; it shapes the model output.
PROMPT_VERSION = "2023-03.1"

PROMPT_TEMPLATE = """Analise o seguinte extrato financeiro e transforme-o em um formato estruturado.
Para cada transação, identifique: a data, a descrição original, o valor, uma categoria
apropriada, e forneça uma explicação clara e simplificada do que significa esta transação.
Caso identifique tarifas bancárias ou cobranças que poderiam ser evitadas, destaque isso
na explicação. Retorne os dados no seguinte formato JSON:
{{
  "statementDate": "Mês e Ano do Extrato",
  "totalAmount": valor total,
  "items": [
    {{
      "id": "1",
      "date": "data no formato DD/MM",
      "description": "descrição clara",
      "amount": valor numérico,
      "category": "categoria",
      "explanation": "explicação simples e didática"
    }},
    ...
  ]
}}

Extrato para análise:
{extracted_text}"""

API_KEY_HEADER = "x-goog-api-key"

# Upstream bodies can be large HTML pages; keep logs short.
_LOG_BODY_LIMIT = 300


def build_prompt(extracted_text: str) -> str:
    return PROMPT_TEMPLATE.format(extracted_text=extracted_text)


def build_request_body(prompt: str, settings: Settings) -> Dict[str, Any]:
    return {
        "contents": [{"parts": [{"text": prompt}]}],
        "generationConfig": {
            "temperature": settings.temperature,
            "topK": settings.top_k,
            "topP": settings.top_p,
            "maxOutputTokens": settings.max_output_tokens,
        },
    }


def read_reply_text(envelope: Any) -> str:
    """
    Returns candidates[0].content.parts[0].text, checking every step.
    Raises MalformedEnvelopeError when any level is missing or mistyped.
    """
    if not isinstance(envelope, dict):
        raise MalformedEnvelopeError("Response body is not a JSON object")
    candidates = envelope.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        raise MalformedEnvelopeError("Response has no candidates")
    first = candidates[0]
    content = first.get("content") if isinstance(first, dict) else None
    if not isinstance(content, dict):
        raise MalformedEnvelopeError("First candidate has no content")
    parts = content.get("parts")
    if not isinstance(parts, list) or not parts or not isinstance(parts[0], dict):
        raise MalformedEnvelopeError("Candidate content has no parts")
    text = parts[0].get("text")
    if not isinstance(text, str):
        raise MalformedEnvelopeError("First content part has no text")
    return text


async def _post_once(client: httpx.AsyncClient, settings: Settings, body: Dict[str, Any]) -> httpx.Response:
    try:
        return await client.post(
            settings.extraction_url,
            json=body,
            headers={
                "Content-Type": "application/json",
                API_KEY_HEADER: settings.api_key.get_secret_value(),
            },
        )
    except httpx.TransportError as e:
        raise TransportError(f"Extraction service unreachable: {type(e).__name__}") from e


async def _post_with_retry(client: httpx.AsyncClient, settings: Settings, body: Dict[str, Any]) -> httpx.Response:
    attempts = settings.transport_retries + 1
    for attempt in range(1, attempts):
        try:
            return await _post_once(client, settings, body)
        except TransportError:
            logger.warning("Transport failure on attempt %d/%d; retrying", attempt, attempts)
    return await _post_once(client, settings, body)


async def call_extraction_service(
    prompt: str,
    settings: Settings,
    client: Optional[httpx.AsyncClient] = None,
) -> str:
    """
    Calls the generateContent endpoint and returns the model's reply text.
    Raises TransportError, ServiceError or MalformedEnvelopeError. HTTP
    errors are never retried; transport failures get settings.transport_retries
    extra attempts.
    """
    body = build_request_body(prompt, settings)
    t0 = time.time()

    if client is None:
        async with httpx.AsyncClient(timeout=settings.request_timeout) as own_client:
            r = await _post_with_retry(own_client, settings, body)
    else:
        r = await _post_with_retry(client, settings, body)

    elapsed_ms = (time.time() - t0) * 1000.0
    if not r.is_success:
        logger.warning(
            "Extraction service HTTP %d after %.0f ms: %s",
            r.status_code, elapsed_ms, r.text[:_LOG_BODY_LIMIT],
        )
        raise ServiceError(r.status_code, r.text)

    logger.info("Extraction service replied in %.0f ms", elapsed_ms)
    try:
        data = r.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise MalformedEnvelopeError("Response body is not valid JSON") from e
    return read_reply_text(data)
