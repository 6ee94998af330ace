# clareia/pipeline.py
import logging
import time
from pathlib import PurePath
from typing import Optional

import httpx

from .config import Settings
from .extract import build_reader, extract_text
from .fallback import FallbackKind, fallback
from .llm import build_prompt, call_extraction_service
from .logic import parse_reply
from .schema import ProcessedStatement, UploadedDocument

logger = logging.getLogger(__name__)


def demo_statement(document: UploadedDocument) -> ProcessedStatement:
    example = fallback(FallbackKind.BANK_STATEMENT)
    # name up to the first dot, as the demo always labeled it
    stem = PurePath(document.filename).name.split(".")[0]
    return example.model_copy(update={"statementDate": f"{example.statementDate} - {stem}"})


async def process_statement(
    document: UploadedDocument,
    settings: Settings,
    client: Optional[httpx.AsyncClient] = None,
) -> ProcessedStatement:
    """
    Runs one upload through extraction, the generative service and
    normalization. Every ExtractionError propagates unchanged; demo data is
    only returned when settings.demo_mode is on.
    """
    logger.info(
        "Processing %s (%s, %d bytes)",
        document.filename, document.media_type, len(document.content),
    )

    if settings.demo_mode:
        logger.info("Demo mode: returning example statement for %s", document.filename)
        return demo_statement(document)

    t0 = time.time()
    text = extract_text(document, reader=build_reader(settings))
    prompt = build_prompt(text)
    reply = await call_extraction_service(prompt, settings, client=client)
    statement = parse_reply(reply)

    logger.info(
        "Processed %s: %d item(s) in %.0f ms",
        document.filename, len(statement.items), (time.time() - t0) * 1000.0,
    )
    return statement
