from __future__ import annotations

import os
import re
import traceback
from typing import Optional

from dotenv import load_dotenv
from google import genai


class UnsafeRequestError(Exception):
    """Raised when a prompt violates safety rules."""


class AIServiceError(Exception):
    """Raised when the AI service cannot complete."""


# Load environment variables so GOOGLE_API_KEY is available when running locally or in production.
load_dotenv()

DEFAULT_MODEL = "gemini-2.5-flash"

_client: Optional[genai.Client] = None
_client_key: Optional[str] = None


def _log_debug(message: str) -> None:
    print(f"[AI DEBUG] {message}", flush=True)


SYNTAX_RULES = """
NanoLang Syntax Rules:
1. To print: say "text" or say variable (join several values with commas: say "X is", x)
2. To assign variables: set name = value
3. To loop: repeat number ... end
4. To check condition: check condition ... end
5. To comment: note comment text
6. No semicolons needed.
7. Use indentation for blocks inside repeat/check.
8. Expressions follow Python rules (and, or, not, True, False).
""".strip()

UNSAFE_PATTERNS = [
    r"\bhack(ing)?\b",
    r"\bexploit\b",
    r"\bsystem command\b",
    r"\bshell\b",
    r"\bbash\b",
    r"\bpowershell\b",
    r"\binfinite loop\b",
    r"while\s+true",
]


def _unsafe_match(text: str) -> Optional[str]:
    """Return the first unsafe pattern found in a request, if any."""
    lowered = (text or "").lower()
    for pattern in UNSAFE_PATTERNS:
        if re.search(pattern, lowered):
            _log_debug(f"Request rejected, matched {pattern!r}")
            return pattern
    return None


def _strip_code_fences(text: str) -> str:
    # Models sometimes wrap NanoLang in ```nano ... ``` despite the prompt; drop fence lines only.
    kept = [line for line in text.strip().split("\n") if not line.strip().startswith("```")]
    return "\n".join(kept).strip()


def _block_reason(response) -> Optional[str]:
    feedback = getattr(response, "prompt_feedback", None)
    reason = getattr(feedback, "block_reason", None)
    if reason and str(reason).lower() not in {"block_reason_unspecified", ""}:
        return str(reason)

    for candidate in getattr(response, "candidates", None) or []:
        finish = str(getattr(candidate, "finish_reason", "") or "")
        if "safety" in finish.lower():
            return finish
    return None


def _response_text(response) -> str:
    reason = _block_reason(response)
    if reason:
        _log_debug(f"Gemini withheld the answer: {reason}")
        raise AIServiceError(f"Response blocked: {reason}")

    if getattr(response, "text", ""):
        return response.text

    # No aggregated text; take the first candidate part that carries any.
    for candidate in getattr(response, "candidates", None) or []:
        for part in getattr(getattr(candidate, "content", None), "parts", None) or []:
            if getattr(part, "text", ""):
                return str(part.text)
    return ""


def _get_client() -> Optional[genai.Client]:
    api_key = os.environ.get("GOOGLE_API_KEY")
    if not api_key:
        _log_debug("GOOGLE_API_KEY missing or empty")
        return None

    global _client, _client_key
    if _client is None or _client_key != api_key:
        _log_debug("(Re)initializing genai client")
        _client = genai.Client(api_key=api_key)
        _client_key = api_key
    return _client


def _ask_model(composed: str, purpose: str) -> Optional[str]:
    """Send one prompt; any failure is logged and reported as None."""
    client = _get_client()
    if client is None:
        return None

    model = os.environ.get("NANO_AI_MODEL") or DEFAULT_MODEL
    _log_debug(f"Calling {model} for {purpose} prompt_len={len(composed)}")

    try:
        response = client.models.generate_content(
            model=model,
            contents=composed,
            config={"temperature": 0.35, "response_mime_type": "text/plain"},
        )
        text = _response_text(response).strip()
    except Exception as exc:  # noqa: BLE001
        _log_debug(f"{purpose} failed: {type(exc).__name__}: {exc}")
        _log_debug(traceback.format_exc())
        return None

    if not text:
        _log_debug(f"AI returned empty response for {purpose}")
        return None
    return text


def _check_prompt(text: str, what: str) -> str:
    cleaned = (text or "").strip()
    if not cleaned:
        raise ValueError(f"Empty {what}")
    if _unsafe_match(cleaned):
        raise UnsafeRequestError("Unsafe request")
    return cleaned


def generate_nano_code(user_prompt: str, language: str = "en") -> Optional[str]:
    prompt = _check_prompt(user_prompt, "prompt")
    lang_instruction = (
        "Comments and strings inside code should be in Japanese if appropriate."
        if language == "ja"
        else ""
    )
    composed = (
        'You are an expert programmer in "NanoLang".\n'
        f"{SYNTAX_RULES}\n\n"
        f'Task: Write NanoLang code that does the following: "{prompt}".\n'
        f"{lang_instruction}\n"
        "Return ONLY the code. Do not use markdown backticks."
    )
    text = _ask_model(composed, "generate")
    if text is None:
        return None
    code = _strip_code_fences(text)
    _log_debug(f"Received code_len={len(code)}")
    return code or None


def explain_nano_code(code: str, language: str = "en") -> Optional[str]:
    source = _check_prompt(code, "code")
    lang_instruction = "Explain in Japanese." if language == "ja" else "Explain in English."
    composed = (
        f"{lang_instruction}\n"
        'Explain the following "NanoLang" code in simple terms for a beginner:\n'
        f"{source}\n\n"
        "Keep it brief and encouraging."
    )
    return _ask_model(composed, "explain")


def convert_python_to_nano(code: str) -> Optional[str]:
    source = _check_prompt(code, "code")
    composed = (
        'Convert the following Python code into "NanoLang".\n\n'
        "NanoLang Rules:\n"
        "- print(x) -> say x\n"
        "- x = y -> set x = y\n"
        "- if cond: -> check cond ... end\n"
        "- for loops -> repeat number ... end (simplify if possible)\n"
        "- # comment -> note comment\n\n"
        "If a Python feature is too complex for NanoLang, simplify it or add a 'note' "
        "explaining it's not supported.\n\n"
        f"Python Code:\n{source}\n\n"
        "Return ONLY the NanoLang code. No markdown."
    )
    text = _ask_model(composed, "convert")
    if text is None:
        return None
    return _strip_code_fences(text) or None
