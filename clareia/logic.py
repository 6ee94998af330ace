# clareia/logic.py
import json
import logging
import math
import re
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

from .errors import JSONParseError, NoJSONFoundError, SchemaValidationError
from .schema import ProcessedStatement, StatementItem

logger = logging.getLogger(__name__)

# -------- Locating the JSON payload in free-form replies --------

TAGGED_FENCE_RE = re.compile(r"```[ \t]*json[ \t]*\r?\n?(.*?)```", re.IGNORECASE | re.DOTALL)
ANY_FENCE_RE = re.compile(r"```[^\n`]*\r?\n?(.*?)```", re.DOTALL)
FENCE_MARKER_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)

Matcher = Callable[[str], Optional[str]]


def _first_fence(pattern: re.Pattern, text: str) -> Optional[str]:
    for m in pattern.finditer(text):
        if m.group(1).strip():
            return m.group(1)
    return None


def match_tagged_fence(text: str) -> Optional[str]:
    return _first_fence(TAGGED_FENCE_RE, text)


def match_any_fence(text: str) -> Optional[str]:
    return _first_fence(ANY_FENCE_RE, text)


def match_balanced_braces(text: str) -> Optional[str]:
    """
    Return the first balanced top-level {...} span found in text.
    Braces inside JSON strings are ignored.
    """
    start = text.find("{")
    while start != -1:
        depth = 0
        in_str = False
        esc = False
        for i in range(start, len(text)):
            ch = text[i]
            if esc:
                esc = False
                continue
            if ch == "\\" and in_str:
                esc = True
                continue
            if ch == '"':
                in_str = not in_str
                continue
            if in_str:
                continue
            if ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    return text[start : i + 1]
        start = text.find("{", start + 1)
    return None


# Order is precedence: explicitly labeled JSON first, bare braces last.
MATCHERS: List[Tuple[str, Matcher]] = [
    ("tagged_fence", match_tagged_fence),
    ("any_fence", match_any_fence),
    ("balanced_braces", match_balanced_braces),
]


def _strip_fences(candidate: str) -> str:
    return FENCE_MARKER_RE.sub("", candidate.strip()).strip()


def locate_json(raw_reply_text: str) -> str:
    text = raw_reply_text or ""
    for name, matcher in MATCHERS:
        found = matcher(text)
        if found is None:
            continue
        cleaned = _strip_fences(found)
        if cleaned:
            logger.debug("JSON located by %s matcher", name)
            return cleaned
    raise NoJSONFoundError("No JSON object found in the extraction service reply")


# -------- Normalizing the payload into a ProcessedStatement --------

DEFAULT_DATE = "N/A"
DEFAULT_DESCRIPTION = "Item sem descrição"
DEFAULT_CATEGORY = "outros"
DEFAULT_EXPLANATION = "Sem explicação disponível"


def is_number(value: Any) -> bool:
    # bool is an int subclass; JSON true/false is not an amount
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        # int literal beyond float range
        return False


def _text_or(value: Any, default: str) -> str:
    if value is None:
        return default
    text = value if isinstance(value, str) else str(value)
    return text if text.strip() else default


def _default_id(index: int, taken: Set[str]) -> str:
    """Positional id (index+1), suffixed when the model already used that id."""
    candidate = str(index + 1)
    suffix = 1
    while candidate in taken:
        candidate = f"{index + 1}-{suffix}"
        suffix += 1
    return candidate


def normalize_item(raw: Dict[str, Any], index: int, taken: Set[str]) -> StatementItem:
    amount = raw.get("amount")
    item_id = _text_or(raw.get("id"), "")
    if not item_id:
        item_id = _default_id(index, taken)
        taken.add(item_id)
    return StatementItem(
        id=item_id,
        date=_text_or(raw.get("date"), DEFAULT_DATE),
        description=_text_or(raw.get("description"), DEFAULT_DESCRIPTION),
        amount=float(amount) if is_number(amount) else 0.0,
        category=_text_or(raw.get("category"), DEFAULT_CATEGORY),
        explanation=_text_or(raw.get("explanation"), DEFAULT_EXPLANATION),
    )


def normalize(json_string: str) -> ProcessedStatement:
    try:
        data = json.loads(json_string)
    except json.JSONDecodeError as e:
        raise JSONParseError(f"Invalid JSON in extraction reply: {e.msg} (pos {e.pos})") from e
    except ValueError as e:
        # e.g. integer literals past the int digit limit
        raise JSONParseError(f"Invalid JSON in extraction reply: {e}") from e

    if not isinstance(data, dict):
        raise SchemaValidationError("Top-level JSON value must be an object")
    if data.get("statementDate") is None:
        raise SchemaValidationError("Missing required field 'statementDate'")
    if "items" not in data:
        raise SchemaValidationError("Missing required field 'items'")
    raw_items = data["items"]
    if not isinstance(raw_items, list):
        raise SchemaValidationError("Field 'items' must be a list")

    for index, raw in enumerate(raw_items):
        if not isinstance(raw, dict):
            raise SchemaValidationError(f"items[{index}] must be an object")

    # Ids the model supplied anywhere in the list; defaults must avoid them
    taken = {_text_or(raw.get("id"), "") for raw in raw_items} - {""}
    items = [normalize_item(raw, index, taken) for index, raw in enumerate(raw_items)]

    total = data.get("totalAmount")
    if is_number(total):
        total_amount = float(total)
    else:
        total_amount = math.fsum(item.amount for item in items)

    statement_date = data["statementDate"]
    return ProcessedStatement(
        statementDate=statement_date if isinstance(statement_date, str) else str(statement_date),
        totalAmount=total_amount,
        items=items,
    )


def parse_reply(raw_reply_text: str) -> ProcessedStatement:
    return normalize(locate_json(raw_reply_text))
