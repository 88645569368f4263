from __future__ import annotations

import argparse
import copy
import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from platformdirs import user_config_dir

from polyvox.contracts import LANGUAGE_NAMES
from polyvox.nlp.translator.gemini import DEFAULT_API_BASE, DEFAULT_MODEL, PLACEHOLDER_API_KEY

API_KEY_ENV_VARS: tuple[str, ...] = ("POLYVOX_API_KEY", "GEMINI_API_KEY")

DEFAULTS: dict[str, Any] = {
    "list_devices": False,
    "debug": False,
    "translator": "gemini",
    "api_key": "",
    "model": DEFAULT_MODEL,
    "api_base": DEFAULT_API_BASE,
    "request_timeout_sec": 30.0,
    "max_retries": 3,
    "backoff_base_sec": 1.0,
    "backoff_jitter_sec": 0.5,
    "target_language": "es",
    "capture_language": "en",
    "asr_model": "tiny",
    "device": None,
    "sr": 16000,
    "channels": 1,
    "chunk_sec": 0.3,
    "rms_th": 250.0,
    "silence_chunks": 3,
    "min_utter_sec": 0.3,
    "max_utter_sec": 15.0,
    "no_speech_timeout_sec": 8.0,
    "tts_enabled": True,
    "auto_play": False,
    "poll_ms": 60,
    "queue_maxsize": 32,
}
CONFIG_KEYS: tuple[str, ...] = tuple(DEFAULTS.keys())


@dataclass(frozen=True)
class AppPaths:
    config_dir: Path
    config_path: Path


def app_paths() -> AppPaths:
    config_dir = Path(user_config_dir("polyvox", "polyvox"))
    return AppPaths(config_dir=config_dir, config_path=config_dir / "config.json")


def _load_json_dict(path: Path) -> dict[str, Any]:
    # Accept UTF-8 with or without BOM for Windows-edited config files.
    with path.open("r", encoding="utf-8-sig") as f:
        loaded = json.load(f)
    if not isinstance(loaded, dict):
        raise ValueError(f"config must be a JSON object: {path}")
    return loaded


def _write_json_dict(path: Path, payload: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(payload, f, ensure_ascii=False, indent=2)
        f.write("\n")


def _known_only(payload: dict[str, Any]) -> dict[str, Any]:
    return {key: payload[key] for key in CONFIG_KEYS if key in payload}


def ensure_user_config_exists(defaults: dict[str, Any] | None = None) -> Path:
    paths = app_paths()
    if paths.config_path.exists():
        return paths.config_path
    _write_json_dict(paths.config_path, defaults or copy.deepcopy(DEFAULTS))
    return paths.config_path


def load_user_config(config_path: str | None = None) -> tuple[dict[str, Any], Path]:
    if config_path:
        chosen = Path(config_path)
        if not chosen.exists():
            raise SystemExit(f"Config file not found: {chosen}")
    else:
        chosen = ensure_user_config_exists()
    merged = copy.deepcopy(DEFAULTS)
    merged.update(_known_only(_load_json_dict(chosen)))
    return merged, chosen


def save_user_config(values: dict[str, Any], config_path: str | None = None) -> Path:
    path = Path(config_path) if config_path else ensure_user_config_exists()
    existing = _known_only(_load_json_dict(path)) if path.exists() else {}
    merged = copy.deepcopy(DEFAULTS)
    merged.update(existing)
    merged.update(_known_only(values))
    _write_json_dict(path, merged)
    return path


def resolve_api_key(configured: str | None) -> str:
    """Configured key wins unless it is empty or the placeholder; then the environment."""
    key = (configured or "").strip()
    if key and key != PLACEHOLDER_API_KEY:
        return key
    for name in API_KEY_ENV_VARS:
        value = os.getenv(name, "").strip()
        if value:
            return value
    return key


def parser_with_defaults(defaults: dict[str, Any]) -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="polyvox", description="Speak English, get it corrected and translated.")
    p.add_argument("--config", default=None, help="JSON config path (CLI flags override config)")
    p.add_argument("--list-devices", action="store_true", help="print audio devices and exit")
    p.add_argument("--text", default=None, help="translate this text headlessly instead of opening the window")
    p.add_argument("--debug", action="store_true", help="verbose logging and chunk RMS printing")
    p.add_argument("--translator", default=defaults["translator"], choices=["gemini", "stub"])
    p.add_argument("--api-key", default=defaults["api_key"], help="Gemini API key (or set GEMINI_API_KEY)")
    p.add_argument("--model", default=defaults["model"], help="Gemini model name")
    p.add_argument("--api-base", default=defaults["api_base"], help="Gemini API base URL")
    p.add_argument("--request-timeout-sec", type=float, default=defaults["request_timeout_sec"])
    p.add_argument("--max-retries", type=int, default=defaults["max_retries"], help="attempts before giving up")
    p.add_argument("--backoff-base-sec", type=float, default=defaults["backoff_base_sec"])
    p.add_argument("--backoff-jitter-sec", type=float, default=defaults["backoff_jitter_sec"])
    p.add_argument(
        "--target-language",
        default=defaults["target_language"],
        choices=sorted(LANGUAGE_NAMES),
        help="translation target language",
    )
    p.add_argument("--capture-language", default=defaults["capture_language"], help="ASR language code")
    p.add_argument("--asr-model", default=defaults["asr_model"], help="faster-whisper model size")
    p.add_argument("--device", type=int, default=defaults["device"], help="sounddevice input device id")
    p.add_argument("--sr", type=int, default=defaults["sr"], help="sample rate (Hz)")
    p.add_argument("--channels", type=int, default=defaults["channels"], help="input channels")
    p.add_argument("--chunk-sec", type=float, default=defaults["chunk_sec"], help="mic chunk size in seconds")
    p.add_argument("--rms-th", type=float, default=defaults["rms_th"], help="RMS threshold for speech VAD")
    p.add_argument(
        "--silence-chunks",
        type=int,
        default=defaults["silence_chunks"],
        help="finalize after this many non-speech chunks",
    )
    p.add_argument(
        "--min-utter-sec",
        type=float,
        default=defaults["min_utter_sec"],
        help="ignore utterances shorter than this",
    )
    p.add_argument(
        "--max-utter-sec",
        type=float,
        default=defaults["max_utter_sec"],
        help="force finalize while continuously speaking (seconds)",
    )
    p.add_argument(
        "--no-speech-timeout-sec",
        type=float,
        default=defaults["no_speech_timeout_sec"],
        help="end capture if nobody speaks within this many seconds",
    )
    p.add_argument(
        "--tts-enabled",
        action=argparse.BooleanOptionalAction,
        default=defaults["tts_enabled"],
        help="enable Play Translation",
    )
    p.add_argument(
        "--auto-play",
        action=argparse.BooleanOptionalAction,
        default=defaults["auto_play"],
        help="speak each translation as soon as it arrives",
    )
    p.add_argument("--poll-ms", type=int, default=defaults["poll_ms"], help="UI queue poll interval (ms)")
    p.add_argument("--queue-maxsize", type=int, default=defaults["queue_maxsize"], help="view update queue size")
    return p


def resolve_args(argv: list[str] | None = None) -> argparse.Namespace:
    pre = argparse.ArgumentParser(add_help=False)
    pre.add_argument("--config", default=None)
    pre_args, _ = pre.parse_known_args(argv)
    defaults, _ = load_user_config(config_path=pre_args.config)
    parser = parser_with_defaults(defaults)
    args = parser.parse_args(argv)
    if args.text is not None and not args.text.strip():
        parser.error("--text must not be blank")
    if defaults.get("list_devices"):
        args.list_devices = True
    if defaults.get("debug"):
        args.debug = True
    args.api_key = resolve_api_key(args.api_key)
    return args
