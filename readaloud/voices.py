"""Edge voice catalog and the helpers that filter, sort and group it."""

from readaloud.constants import REGION_PRIORITY, VOICE_GROUP_ID, VOICE_GROUP_NAME
from readaloud.models import Voice, VoiceGroup

# Hardcoded catalog (avoids a network call to list voices at startup)
EDGE_VOICES = [
    Voice("zh-CN-XiaoxiaoNeural", "晓晓 (Xiaoxiao)", "zh-CN", "Female"),
    Voice("zh-CN-YunxiNeural", "云希 (Yunxi)", "zh-CN", "Male"),
    Voice("zh-CN-YunyangNeural", "云扬 (Yunyang)", "zh-CN", "Male"),
    Voice("zh-CN-XiaoyiNeural", "晓伊 (Xiaoyi)", "zh-CN", "Female"),
    Voice("zh-CN-YunjianNeural", "云健 (Yunjian)", "zh-CN", "Male"),
    Voice("zh-CN-YunxiaNeural", "云夏 (Yunxia)", "zh-CN", "Male"),
    Voice("zh-HK-HiuGaaiNeural", "曉佳 (HiuGaai)", "zh-HK", "Female"),
    Voice("zh-HK-HiuMaanNeural", "曉曼 (HiuMaan)", "zh-HK", "Female"),
    Voice("zh-HK-WanLungNeural", "雲龍 (WanLung)", "zh-HK", "Male"),
    Voice("zh-TW-HsiaoChenNeural", "曉臻 (HsiaoChen)", "zh-TW", "Female"),
    Voice("zh-TW-YunJheNeural", "雲哲 (YunJhe)", "zh-TW", "Male"),
    Voice("zh-TW-HsiaoYuNeural", "曉雨 (HsiaoYu)", "zh-TW", "Female"),
    Voice("en-US-AriaNeural", "Aria", "en-US", "Female"),
    Voice("en-US-JennyNeural", "Jenny", "en-US", "Female"),
    Voice("en-US-GuyNeural", "Guy", "en-US", "Male"),
    Voice("en-US-AnaNeural", "Ana", "en-US", "Female"),
    Voice("en-US-ChristopherNeural", "Christopher", "en-US", "Male"),
    Voice("en-US-EricNeural", "Eric", "en-US", "Male"),
    Voice("en-US-MichelleNeural", "Michelle", "en-US", "Female"),
    Voice("en-US-RogerNeural", "Roger", "en-US", "Male"),
    Voice("en-US-SteffanNeural", "Steffan", "en-US", "Male"),
    Voice("en-GB-LibbyNeural", "Libby", "en-GB", "Female"),
    Voice("en-GB-MaisieNeural", "Maisie", "en-GB", "Female"),
    Voice("en-GB-RyanNeural", "Ryan", "en-GB", "Male"),
    Voice("en-GB-SoniaNeural", "Sonia", "en-GB", "Female"),
    Voice("en-GB-ThomasNeural", "Thomas", "en-GB", "Male"),
    Voice("en-AU-NatashaNeural", "Natasha", "en-AU", "Female"),
    Voice("en-AU-WilliamNeural", "William", "en-AU", "Male"),
    Voice("en-CA-ClaraNeural", "Clara", "en-CA", "Female"),
    Voice("en-CA-LiamNeural", "Liam", "en-CA", "Male"),
    Voice("en-IN-NeerjaNeural", "Neerja", "en-IN", "Female"),
    Voice("en-IN-PrabhatNeural", "Prabhat", "en-IN", "Male"),
    Voice("ja-JP-NanamiNeural", "Nanami (ななみ)", "ja-JP", "Female"),
    Voice("ja-JP-KeitaNeural", "Keita (けいた)", "ja-JP", "Male"),
    Voice("ko-KR-SunHiNeural", "SunHi (선희)", "ko-KR", "Female"),
    Voice("ko-KR-InJoonNeural", "InJoon (인준)", "ko-KR", "Male"),
    Voice("fr-FR-DeniseNeural", "Denise", "fr-FR", "Female"),
    Voice("fr-FR-HenriNeural", "Henri", "fr-FR", "Male"),
    Voice("fr-FR-EloiseNeural", "Eloise", "fr-FR", "Female"),
    Voice("fr-CA-SylvieNeural", "Sylvie", "fr-CA", "Female"),
    Voice("fr-CA-AntoineNeural", "Antoine", "fr-CA", "Male"),
    Voice("fr-CA-JeanNeural", "Jean", "fr-CA", "Male"),
    Voice("de-DE-KatjaNeural", "Katja", "de-DE", "Female"),
    Voice("de-DE-ConradNeural", "Conrad", "de-DE", "Male"),
    Voice("de-DE-AmalaNeural", "Amala", "de-DE", "Female"),
    Voice("de-DE-KillianNeural", "Killian", "de-DE", "Male"),
    Voice("es-ES-ElviraNeural", "Elvira", "es-ES", "Female"),
    Voice("es-ES-AlvaroNeural", "Alvaro", "es-ES", "Male"),
    Voice("es-MX-DaliaNeural", "Dalia", "es-MX", "Female"),
    Voice("es-MX-JorgeNeural", "Jorge", "es-MX", "Male"),
    Voice("it-IT-ElsaNeural", "Elsa", "it-IT", "Female"),
    Voice("it-IT-IsabellaNeural", "Isabella", "it-IT", "Female"),
    Voice("it-IT-DiegoNeural", "Diego", "it-IT", "Male"),
    Voice("pt-BR-FranciscaNeural", "Francisca", "pt-BR", "Female"),
    Voice("pt-BR-AntonioNeural", "Antonio", "pt-BR", "Male"),
    Voice("pt-PT-RaquelNeural", "Raquel", "pt-PT", "Female"),
    Voice("pt-PT-DuarteNeural", "Duarte", "pt-PT", "Male"),
    Voice("ru-RU-SvetlanaNeural", "Svetlana", "ru-RU", "Female"),
    Voice("ru-RU-DmitryNeural", "Dmitry", "ru-RU", "Male"),
    Voice("ar-EG-SalmaNeural", "Salma", "ar-EG", "Female"),
    Voice("ar-EG-ShakirNeural", "Shakir", "ar-EG", "Male"),
    Voice("hi-IN-SwaraNeural", "Swara", "hi-IN", "Female"),
    Voice("hi-IN-MadhurNeural", "Madhur", "hi-IN", "Male"),
    Voice("th-TH-PremwadeeNeural", "Premwadee", "th-TH", "Female"),
    Voice("th-TH-NiwatNeural", "Niwat", "th-TH", "Male"),
    Voice("vi-VN-HoaiMyNeural", "HoaiMy", "vi-VN", "Female"),
    Voice("vi-VN-NamMinhNeural", "NamMinh", "vi-VN", "Male"),
    Voice("nl-NL-ColetteNeural", "Colette", "nl-NL", "Female"),
    Voice("nl-NL-FennaNeural", "Fenna", "nl-NL", "Female"),
    Voice("nl-NL-MaartenNeural", "Maarten", "nl-NL", "Male"),
    Voice("sv-SE-SofieNeural", "Sofie", "sv-SE", "Female"),
    Voice("sv-SE-MattiasNeural", "Mattias", "sv-SE", "Male"),
    Voice("da-DK-ChristelNeural", "Christel", "da-DK", "Female"),
    Voice("da-DK-JeppeNeural", "Jeppe", "da-DK", "Male"),
    Voice("nb-NO-PernilleNeural", "Pernille", "nb-NO", "Female"),
    Voice("nb-NO-FinnNeural", "Finn", "nb-NO", "Male"),
    Voice("fi-FI-NooraNeural", "Noora", "fi-FI", "Female"),
    Voice("fi-FI-HarriNeural", "Harri", "fi-FI", "Male"),
]

# Locales offered first in a voice picker
RECOMMENDED_LOCALES = ("zh-CN", "en-US", "en-GB", "ja-JP", "ko-KR", "fr-FR", "de-DE", "es-ES")


def find_voice(voice_id: str, voices: list[Voice] | None = None) -> Voice | None:
    """Look up a voice by its short name."""
    for voice in EDGE_VOICES if voices is None else voices:
        if voice.id == voice_id:
            return voice
    return None


def voice_sort_key(voice: Voice) -> tuple[int, str]:
    """Sort key: preferred regions first, then name (case-sensitive)."""
    region = voice.region
    if region in REGION_PRIORITY:
        return REGION_PRIORITY.index(region), voice.name
    return len(REGION_PRIORITY), voice.name


def sort_voices(voices: list[Voice]) -> list[Voice]:
    return sorted(voices, key=voice_sort_key)


def filter_voices(voices: list[Voice], lang: str) -> list[Voice]:
    """Voices whose locale starts with lang.

    "en" additionally matches en-US and en-GB explicitly.
    """
    return [
        v for v in voices
        if v.lang.startswith(lang) or (lang == "en" and v.lang in ("en-US", "en-GB"))
    ]


def group_voices(voices: list[Voice], lang: str, available: bool = True) -> list[VoiceGroup]:
    """Filter and sort voices for lang into the single group a client exposes.

    The group is disabled when the client is unavailable or nothing matched.
    """
    filtered = sort_voices(filter_voices(voices, lang))
    return [
        VoiceGroup(
            id=VOICE_GROUP_ID,
            name=VOICE_GROUP_NAME,
            voices=filtered,
            disabled=not available or not filtered,
        )
    ]


def voices_by_language(voices: list[Voice] | None = None) -> dict[str, list[Voice]]:
    """Group voices by primary language subtag ("en", "zh", ...)."""
    grouped = {}
    for voice in EDGE_VOICES if voices is None else voices:
        grouped.setdefault(voice.lang.split("-")[0], []).append(voice)
    return grouped


def search_voices(query: str, voices: list[Voice] | None = None) -> list[Voice]:
    """Case-insensitive substring search over id, name and locale."""
    query = query.lower()
    return [
        v for v in (EDGE_VOICES if voices is None else voices)
        if query in v.id.lower() or query in v.name.lower() or query in v.lang.lower()
    ]


def recommended_voices() -> list[Voice]:
    return [v for v in EDGE_VOICES if v.lang in RECOMMENDED_LOCALES]
