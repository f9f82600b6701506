import os
from typing import Dict


def get_language() -> str:
    value = (
        os.getenv("APP_LANGUAGE")
        or os.getenv("LANGUAGE")
        or "en"
    )
    value = value.lower()
    if value.startswith("zh"):
        return "zh"
    return "en"


def is_chinese() -> bool:
    return get_language() == "zh"


def pick(zh: str, en: str) -> str:
    return zh if is_chinese() else en


def default_group_label(index: int) -> str:
    """Label for the 1-indexed group ``index``."""
    return pick(f"第 {index} 组", f"Group {index}")


LABELS: Dict[str, Dict[str, str]] = {
    "ai_clean_failed": {
        "zh": "AI 格式化失败，已按换行和逗号拆分。",
        "en": "AI cleanup failed, names were split on newlines and commas instead.",
    },
    "transcribe_failed": {
        "zh": "语音识别失败，请检查 API Key。",
        "en": "Audio transcription failed. Check the API key.",
    },
    "empty_pool": {
        "zh": "没有可抽选的候选人了！",
        "en": "No eligible candidates left to draw!",
    },
}


def label(key: str) -> str:
    value = LABELS.get(key, {})
    return value.get(get_language(), "")
