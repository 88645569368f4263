from __future__ import annotations

from polyvox.audio.mic import MicError
from polyvox.errors import AIProcessingFailed, CaptureFailure, ConfigurationError, TransportFailure

_TRACEBACK_NOISE = ("File ", "^", "Traceback ", "During handling", "The above exception")

HINT_API_KEY = "Set api_key in the config file or export GEMINI_API_KEY, then retry."
HINT_REJECTED = "The Gemini API rejected the request. Check the API key and model name."
HINT_RATE_LIMIT = "Gemini rate limit reached. Wait a moment before recording again."
HINT_SERVER = "The Gemini service is having trouble. Try again in a minute."
HINT_NETWORK = "Could not reach the Gemini API. Check the network connection and api_base."
HINT_MIC = "Microphone init failed. Check input device selection and app mic permissions."
HINT_DEFAULT = "Check logs for full traceback."

# Substring hints for errors that only arrive as text (worker tracebacks).
_TEXT_HINTS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("api key", "configurationerror"), HINT_API_KEY),
    (("status: 400", "status: 403"), HINT_REJECTED),
    (("status: 429",), HINT_RATE_LIMIT),
    (("no module named",), "A required package is missing in this virtualenv. Reinstall dependencies and retry."),
    (("config file not found",), "Configured JSON file is missing. Update the config path or restore the file."),
    (("sounddevice", "microphone", "portaudio"), HINT_MIC),
    (("edge_tts", "edge-tts"), "Speech synthesis failed. Check the network connection for edge-tts."),
)


def summarize_exception(detail: str, *, max_len: int = 220) -> str:
    lines = [ln.strip() for ln in str(detail or "").splitlines() if ln.strip()]
    if not lines:
        return "Unknown runtime error."
    meaningful = [ln for ln in lines if not ln.startswith(_TRACEBACK_NOISE)]
    out = (meaningful or lines)[-1]
    if len(out) > max_len:
        return out[: max_len - 3].rstrip() + "..."
    return out


def hint_for_exception(summary: str) -> str:
    s = str(summary or "").lower()
    for needles, hint in _TEXT_HINTS:
        if any(n in s for n in needles):
            return hint
    return HINT_DEFAULT


def hint_for_error(err: BaseException) -> str:
    """Pick a hint from the exception type, falling back to its text."""
    if isinstance(err, AIProcessingFailed) and err.last_error is not None:
        return hint_for_error(err.last_error)
    if isinstance(err, ConfigurationError):
        return HINT_API_KEY
    if isinstance(err, TransportFailure):
        code = err.status_code
        if code is None:
            return HINT_NETWORK
        if code == 429:
            return HINT_RATE_LIMIT
        if code >= 500:
            return HINT_SERVER
        if code in (400, 401, 403, 404):
            return HINT_REJECTED
    if isinstance(err, (MicError, CaptureFailure)):
        return HINT_MIC
    return hint_for_exception(f"{type(err).__name__}: {err}")
