"""All magic numbers and configuration constants."""

import os

ENGINE_NAME = "edge-tts"                     # name persisted as the preferred engine
VOICE_GROUP_ID = "lobe-edge-tts"             # id of the single voice group the client exposes
VOICE_GROUP_NAME = "Lobe Edge TTS"
DEFAULT_VOICE = "en-US-AriaNeural"           # last-resort voice when nothing else resolves
DEFAULT_LANG = "en"
DEFAULT_RATE = 1.0                           # multiplier, Edge accepts 0.5 .. 2.0
DEFAULT_PITCH = 1.0                          # multiplier, Edge accepts 0.5 .. 1.5
PITCH_HZ_PER_UNIT = 100                      # pitch 1.1 -> "+10Hz"
REGION_PRIORITY = ("CN", "TW", "HK", "US", "GB")  # voice sort order, first match wins

AUDIO_CACHE_CAPACITY = 200                   # entries, oldest evicted first
PRELOAD_IMMEDIATE_MARKS = 2                  # marks synthesized (awaited) in preload mode
PRELOAD_BACKGROUND_DELAY = 0.1               # seconds between background preload requests
PRELOAD_UNIT_COUNT = 2                       # units peeked ahead after start/forward/backward

STOP_TIMEOUT = 3.0                           # seconds stop() waits for the narration task
MAX_EMPTY_UNITS = 10                         # consecutive empty units before auto-advance stops

TTS_RETRY_COUNT = 3                          # max attempts per synthesis request
TTS_RETRY_BASE_DELAY = 0.5                   # seconds, base delay for exponential backoff
AUDIO_FORMAT = "mp3"                         # container edge-tts streams back
PROBE_TEXT = "test"                          # text synthesized by init() to check the provider

UNIT_SENTENCE_LIMIT = 5                      # sentences per unit built from plain text
HIGHLIGHT_REJECT_TAGS = ("rt", "sup")        # ruby annotations and footnote markers

# Sleep timer choices in seconds (0 disables the timer)
TIMEOUT_OPTIONS = (0, 60, 180, 300, 600, 1200, 1800, 2700, 3600, 7200, 10800, 14400, 21600, 28800)

PREFERENCES_PATH = os.path.join(os.path.expanduser("~"), ".readaloud", "preferences.json")
PREFERRED_CLIENT_KEY = "preferredClient"
VOICE_DEMO_PANGRAM = "The quick brown fox jumps over the lazy dog."
VERSION = "0.1.0"
