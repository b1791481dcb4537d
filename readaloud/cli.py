"""CLI interface: browse voices, export samples, and read text files aloud."""

import argparse
import asyncio
import logging
import os
import sys

from readaloud.constants import (
    DEFAULT_LANG,
    ENGINE_NAME,
    PREFERENCES_PATH,
    TIMEOUT_OPTIONS,
    VERSION,
    VOICE_DEMO_PANGRAM,
)
from readaloud.controller import NarrationListener, PlaybackController
from readaloud.document import TextDocument
from readaloud.preferences import PreferenceStore
from readaloud.tts import generate_single
from readaloud.voices import (
    EDGE_VOICES,
    filter_voices,
    find_voice,
    recommended_voices,
    search_voices,
    sort_voices,
    voices_by_language,
)

logger = logging.getLogger(__name__)


class _PrintingListener(NarrationListener):
    """Echo each mark to stdout as it starts playing."""

    def on_speak_mark(self, mark):
        print(mark.text.strip(), flush=True)


def cmd_voices(args):
    """List available voices."""
    if args.recommended:
        voices = recommended_voices()
    elif args.lang:
        voices = filter_voices(EDGE_VOICES, args.lang)
    else:
        voices = list(EDGE_VOICES)
    if args.filter:
        voices = search_voices(args.filter, voices)
    if not voices:
        print("No matching voices found.")
        return

    for lang, group in sorted(voices_by_language(voices).items()):
        print(f"{lang}:")
        for v in sort_voices(group):
            print(f"  {v.id:<36} {v.gender:<7} {v.lang}")


def cmd_sample(args):
    """Write a voice sample to an MP3 file."""
    if not find_voice(args.voice):
        print(f"Error: Unknown voice: {args.voice}", file=sys.stderr)
        print("Run 'readaloud voices' to list voices.", file=sys.stderr)
        raise SystemExit(1)

    output = args.output or f"{args.voice}.mp3"
    try:
        generate_single(args.text, args.voice, output, rate=args.rate)
    except Exception as e:
        print(f"Error: Could not synthesize sample: {e}", file=sys.stderr)
        raise SystemExit(1)
    print(f"Sample written to {output}")


async def _read(controller: PlaybackController, args) -> None:
    if not await controller.init():
        logger.warning("Edge TTS did not answer the probe, narration may fail")
    controller.set_lang(args.lang)
    if args.voice:
        await controller.set_voice(args.voice, args.lang)
    if args.rate is not None:
        await controller.set_rate(args.rate)
    if args.timeout:
        controller.set_timeout(args.timeout)

    try:
        await controller.start()
        await controller.wait_until_idle()
    finally:
        await controller.shutdown()


def cmd_read(args):
    """Read a text file aloud."""
    file_path = args.file
    if not os.path.exists(file_path):
        print(f"Error: File not found: {file_path}", file=sys.stderr)
        raise SystemExit(1)

    with open(file_path, encoding="utf-8") as f:
        text = f.read()

    if not text.strip():
        print(f"Error: File is empty: {file_path}", file=sys.stderr)
        raise SystemExit(1)

    if args.voice and not find_voice(args.voice):
        print(f"Error: Unknown voice: {args.voice}", file=sys.stderr)
        raise SystemExit(1)

    document = TextDocument(text, args.lang)
    controller = PlaybackController(document, preferences=PreferenceStore(args.prefs))
    controller.subscribe(_PrintingListener())

    print(f"Reading {os.path.basename(file_path)} ({len(document.units)} units)")
    try:
        asyncio.run(_read(controller, args))
    except KeyboardInterrupt:
        print("Stopped.")


def cmd_prefs(args):
    """Show or update stored preferences."""
    store = PreferenceStore(args.prefs)
    if args.engine:
        store.set_preferred_client(args.engine)
        print(f"Updated: preferred engine → {args.engine}")
        return

    data = store.load()
    if not data:
        print(f"No preferences stored in {store.path}")
        return
    print(f"Preferences ({store.path}):")
    for key, value in sorted(data.items()):
        print(f"  {key:<20} {value}")


def main():
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="readaloud",
        description="Readaloud: narrate text with Edge neural voices",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("--prefs", default=PREFERENCES_PATH, help="Preferences file")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # voices
    voices_parser = subparsers.add_parser("voices", help="List available voices")
    voices_parser.add_argument("--lang", help="Only voices for this language or locale")
    voices_parser.add_argument("--filter", help="Filter voices by substring")
    voices_parser.add_argument("--recommended", action="store_true", help="Only voices for common locales")
    voices_parser.set_defaults(func=cmd_voices)

    # sample
    sample_parser = subparsers.add_parser("sample", help="Export a voice sample")
    sample_parser.add_argument("voice", help="Voice id, e.g. en-US-AriaNeural")
    sample_parser.add_argument("-o", "--output", help="Output MP3 path (default: <voice>.mp3)")
    sample_parser.add_argument("--text", default=VOICE_DEMO_PANGRAM, help="Text to speak")
    sample_parser.add_argument("--rate", type=float, default=1.0, help="Speaking rate multiplier")
    sample_parser.set_defaults(func=cmd_sample)

    # read
    read_parser = subparsers.add_parser("read", help="Read a text file aloud")
    read_parser.add_argument("file", help="Path to a UTF-8 text file")
    read_parser.add_argument("--lang", default=DEFAULT_LANG, help="Document language")
    read_parser.add_argument("--voice", help="Voice id (remembered for the language)")
    read_parser.add_argument("--rate", type=float, help="Speaking rate multiplier")
    read_parser.add_argument("--timeout", type=int, choices=TIMEOUT_OPTIONS, default=0,
                             help="Stop after this many seconds (0 = never)")
    read_parser.set_defaults(func=cmd_read)

    # prefs
    prefs_parser = subparsers.add_parser("prefs", help="Show stored preferences")
    prefs_parser.add_argument("--engine", choices=[ENGINE_NAME], help="Set the preferred engine")
    prefs_parser.set_defaults(func=cmd_prefs)

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not args.command:
        parser.print_help()
        return

    args.func(args)
