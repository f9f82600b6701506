#!/usr/bin/env python3
"""Extract a name list from a text/CSV file or an audio recording."""
from __future__ import annotations

import argparse
import mimetypes
import sys
from pathlib import Path
from typing import Optional

from hrdraw.core.errors import ExternalServiceError
from hrdraw.services.duplicates import analyze_duplicates, deduplicate
from hrdraw.services.name_assistant import NameAssistant, OpenAINameAssistant
from hrdraw.services.name_parser import join_names, parse_names, split_names


def extract_from_text(assistant: Optional[NameAssistant], text: str) -> list[str]:
    if assistant is None:
        return split_names(text)
    try:
        return assistant.clean_names(text)
    except ExternalServiceError as exc:
        print(f"AI cleanup failed, falling back to plain split: {exc}", file=sys.stderr)
        return split_names(text)


def extract_from_audio(assistant: NameAssistant, path: Path, mime_type: Optional[str]) -> list[str]:
    mime = mime_type or mimetypes.guess_type(path.name)[0] or "audio/webm"
    return assistant.transcribe_audio(path.read_bytes(), mime)


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Extract participant names for the draw")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--text-file", type=Path, help="Text or CSV file with names")
    source.add_argument("--audio-file", type=Path, help="Recording of names read aloud")
    parser.add_argument("--mime-type", default=None, help="Audio MIME type, guessed from the file name")
    parser.add_argument("--no-ai", action="store_true", help="Split text on newlines/commas only")
    parser.add_argument("--dedupe", action="store_true", help="Drop repeated names")
    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None, assistant: Optional[NameAssistant] = None) -> int:
    args = parse_args(argv)

    if assistant is None and not args.no_ai:
        openai_assistant = OpenAINameAssistant()
        if openai_assistant.is_available():
            assistant = openai_assistant

    try:
        if args.audio_file:
            if assistant is None:
                print("Error: audio input needs OPENAI_API_KEY", file=sys.stderr)
                return 1
            names = extract_from_audio(assistant, args.audio_file, args.mime_type)
        else:
            text = args.text_file.read_text(encoding="utf-8-sig")
            names = extract_from_text(None if args.no_ai else assistant, text)
    except (OSError, ExternalServiceError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    candidates = parse_names(join_names(names))
    report = analyze_duplicates(candidates)
    if args.dedupe:
        candidates = deduplicate(candidates)
    print(join_names(c.name for c in candidates))
    print(
        f"{report.total} names, {report.unique_count} unique, "
        f"{report.duplicate_count} duplicates",
        file=sys.stderr,
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
