"""
Helpers for the loosely shaped payloads returned by the edge functions.

Nothing in here raises on bad input: unexpected shapes degrade to empty
values so a malformed response never becomes a user-facing error.
"""
import json
import math
import re
from typing import Any, Dict, List, Optional, Tuple

# Keys the inference service has used for result rows, in lookup order
ROW_KEYS = ("data", "queryData", "rows")

_SCRIPT_TAG_RE = re.compile(r"<script[\s\S]*?>[\s\S]*</script>", re.IGNORECASE)
_SCRIPT_BODY_RE = re.compile(r"<script[^>]*>(.*?)</script>", re.IGNORECASE | re.DOTALL)
_LEADING_FENCE_RE = re.compile(r"^```[A-Za-z0-9_-]*\s*\n?")
_TRAILING_FENCE_RE = re.compile(r"\n?```\s*$")
_INNER_FENCE_RE = re.compile(r"```[A-Za-z0-9_-]*\s*")


def decode_json(value: Any, max_depth: int = 2) -> Any:
    """JSON-decode strings up to max_depth times, returning the input on failure."""
    for _ in range(max_depth):
        if isinstance(value, bytes):
            value = value.decode("utf-8", errors="replace")
        if not isinstance(value, str):
            break
        try:
            value = json.loads(value)
        except (ValueError, TypeError):
            break
    return value


def normalize_inference_payload(raw: Any) -> Dict[str, Any]:
    """
    Normalize an inference response to {"answer", "sql", "data"}.

    The service may return the payload JSON-encoded once or twice, wrapped
    in a "data" envelope, with rows under any of ROW_KEYS.

    Example:
        >>> normalize_inference_payload('{"data":"{\\"answer\\":\\"42\\",\\"sql\\":\\"SELECT 1\\"}"}')
        {'answer': '42', 'sql': 'SELECT 1', 'data': None}
    """
    payload = decode_json(raw)

    result = payload
    if isinstance(payload, dict):
        envelope = decode_json(payload.get("data"))
        # Rows encoded as a string stay with the outer payload; fields the
        # envelope lacks fall back to the outer ones
        if isinstance(envelope, dict):
            result = {k: v for k, v in payload.items() if k != "data"}
            result.update(envelope)

    if not isinstance(result, dict):
        return {"answer": "", "sql": "", "data": None}

    rows = None
    for key in ROW_KEYS:
        if result.get(key) is not None:
            rows = decode_json(result[key], max_depth=1)
            break

    answer = result.get("answer")
    sql = result.get("sql")
    return {
        "answer": "" if answer is None else str(answer),
        "sql": "" if sql is None else str(sql),
        "data": rows,
    }


def sanitize_chart_code(code: Optional[str]) -> str:
    """Strip wrapping quotes and Markdown code fences from chart code."""
    if not code:
        return ""
    s = str(code).strip()
    while len(s) >= 2 and s[0] == s[-1] and s[0] in ("\"", "'"):
        s = s[1:-1].strip()
    s = _LEADING_FENCE_RE.sub("", s)
    s = _TRAILING_FENCE_RE.sub("", s)
    s = _INNER_FENCE_RE.sub("", s)
    s = s.replace("```", "")
    return s.strip()


def has_script_tag(code: str) -> bool:
    return bool(_SCRIPT_TAG_RE.search(code or ""))


def extract_script_body(code: str) -> str:
    """Return the body of the first <script> element, or the code verbatim."""
    match = _SCRIPT_BODY_RE.search(code or "")
    if match:
        return match.group(1)
    return code


def coerce_number(value: Any) -> float:
    """Best-effort numeric conversion; anything non-finite becomes 0."""
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        try:
            number = float(str(value).strip())
        except (TypeError, ValueError):
            return 0.0
    return number if math.isfinite(number) else 0.0


def _label_value(row: Any) -> Optional[Tuple[Any, Any]]:
    if isinstance(row, (list, tuple)) and len(row) >= 2:
        return row[0], row[1]
    if isinstance(row, dict):
        if "label" in row and "value" in row:
            return row["label"], row["value"]
        values = list(row.values())
        if len(values) >= 2:
            return values[0], values[1]
    return None


def rows_to_series(raw_data: Any) -> Tuple[List[str], List[float]]:
    """
    Extract (labels, values) from array-of-arrays or array-of-objects rows.

    Rows without at least a label and a value are skipped.
    """
    labels: List[str] = []
    values: List[float] = []
    if not isinstance(raw_data, list):
        return labels, values
    for row in raw_data:
        pair = _label_value(row)
        if pair is None:
            continue
        labels.append(str(pair[0]))
        values.append(coerce_number(pair[1]))
    return labels, values


def build_data_struct(raw_data: Any) -> Optional[Dict[str, Any]]:
    """Column/row view of array-of-arrays data for the chart service."""
    if not isinstance(raw_data, list) or not raw_data or not isinstance(raw_data[0], (list, tuple)):
        return None
    rows = []
    for row in raw_data:
        if not isinstance(row, (list, tuple)) or not row:
            continue
        rows.append({"label": str(row[0]), "value": row[1] if len(row) > 1 else None})
    return {"columns": ["label", "value"], "rows": rows}
