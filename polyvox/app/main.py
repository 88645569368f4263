from __future__ import annotations

import json
import signal
import sys
from typing import Any

from polyvox.app.config import resolve_args
from polyvox.app.controller import TranslatorController
from polyvox.app.diagnostics import hint_for_error
from polyvox.app.logging_setup import setup_app_logger
from polyvox.audio.mic import SoundDeviceMicSource
from polyvox.capture.whisper_engine import build_whisper_engine
from polyvox.errors import AIProcessingFailed, ConfigurationError
from polyvox.nlp.orchestrator import TranslationOrchestrator
from polyvox.nlp.translator.factory import get_translator
from polyvox.tts.edge_speaker import EdgeTTSSpeaker
from polyvox.ui.bridge import ViewBus


def build_orchestrator(args: Any) -> TranslationOrchestrator:
    options: dict[str, Any] = {}
    if args.translator == "gemini":
        options = {
            "api_key": args.api_key,
            "model": args.model,
            "api_base": args.api_base,
            "timeout_sec": float(args.request_timeout_sec),
        }
    return TranslationOrchestrator(
        get_translator(args.translator, **options),
        max_retries=int(args.max_retries),
        backoff_base_sec=float(args.backoff_base_sec),
        backoff_jitter_sec=float(args.backoff_jitter_sec),
    )


def run_text_once(args: Any, orchestrator: TranslationOrchestrator) -> int:
    """Headless mode: translate ``--text`` and print the four fields as JSON."""
    try:
        result = orchestrator.translate(
            args.text,
            args.target_language,
            on_status=lambda message: print(message, file=sys.stderr),
        )
    except (ConfigurationError, AIProcessingFailed) as e:
        print(e.user_message, file=sys.stderr)
        print(hint_for_error(e), file=sys.stderr)
        return 2
    print(
        json.dumps(
            {
                "corrected_english": result.corrected_english,
                "alternative_phrasings": list(result.alternative_phrasings),
                "tone_and_cultural_notes": result.tone_notes,
                "translated_text": result.translated_text,
            },
            ensure_ascii=False,
            indent=2,
        )
    )
    return 0


def main(argv: list[str] | None = None) -> int:
    args = resolve_args(argv)
    logger, _log_dir, log_path = setup_app_logger(debug=bool(args.debug), console=bool(args.debug))
    logger.info(
        "app_start",
        extra={"config_path": str(args.config or ""), "translator": args.translator, "target_lang": args.target_language},
    )

    if args.list_devices:
        print(SoundDeviceMicSource.list_devices())
        return 0

    orchestrator = build_orchestrator(args)
    if args.text is not None:
        return run_text_once(args, orchestrator)

    from PyQt6 import QtCore, QtWidgets
    from polyvox.app.main_window_qt import MainWindow

    app = QtWidgets.QApplication(sys.argv)
    bus = ViewBus(maxsize=max(1, int(args.queue_maxsize)))
    controller = TranslatorController(
        engine=build_whisper_engine(args),
        orchestrator=orchestrator,
        speaker=EdgeTTSSpeaker() if args.tts_enabled else None,
        language=args.target_language,
        bus=bus,
        auto_play=bool(args.auto_play and args.tts_enabled),
    )

    window = MainWindow()
    window.record_requested.connect(controller.toggle_recording)
    window.language_requested.connect(controller.set_language)
    window.play_requested.connect(controller.play_audio)
    window.render(controller.snapshot())

    timer = QtCore.QTimer()

    def _on_tick() -> None:
        snap = bus.latest()
        if snap is not None:
            window.render(snap)

    timer.timeout.connect(_on_tick)
    timer.start(max(10, int(args.poll_ms)))

    def _on_about_to_quit() -> None:
        logger.info("app_quit")
        controller.shutdown()

    app.aboutToQuit.connect(_on_about_to_quit)
    signal.signal(signal.SIGINT, lambda *_: app.quit())

    window.show()
    print(f"Logs: {log_path}")
    return app.exec()


if __name__ == "__main__":
    raise SystemExit(main())
