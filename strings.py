"""
Centralized strings file for Guidebot.
All user-facing strings live here.

To update translations, simply edit the strings in this file.
"""

from typing import Final


# =============================================================================
# PROCESSING ERRORS
# =============================================================================

# Sent when fetching or analyzing an image fails. The user's language may be
# unknown at that point, so the apology carries every supported language.
ANALYSIS_FAILED: Final[str] = """申し訳ありません。画像の解析中にエラーが発生しました。もう一度お試しください。
Sorry, something went wrong while analyzing your image. Please try again.
죄송합니다. 이미지를 분석하는 중에 오류가 발생했습니다. 다시 시도해 주세요.
抱歉，分析图片时出错了，请再试一次。"""

LANGUAGE_SETUP_FAILED: Final[str] = """申し訳ありません。言語の設定中にエラーが発生しました。
Sorry, something went wrong while setting your language.
죄송합니다. 언어를 설정하는 중에 오류가 발생했습니다.
抱歉，设置语言时出错了。"""


# =============================================================================
# LANGUAGE CONFIRMATION
# =============================================================================

LANGUAGE_SET_CONFIRMATION: Final[str] = (
    "Language has been set. You can now send a photo."
)

# Pre-translated confirmations keyed by ISO 639-1 code. Other languages are
# translated by the model on demand.
LANGUAGE_SET_CONFIRMATIONS: Final[dict[str, str]] = {
    "en": LANGUAGE_SET_CONFIRMATION,
    "ja": "言語が設定されました。写真を送信してください。",
    "ko": "언어가 설정되었습니다. 이제 사진을 보내실 수 있습니다.",
    "zh": "语言已设置。现在您可以发送照片了。",
    "fr": "La langue a été définie. Vous pouvez maintenant envoyer une photo.",
    "es": "Se ha configurado el idioma. Ya puedes enviar una foto.",
    "de": "Die Sprache wurde festgelegt. Sie können jetzt ein Foto senden.",
    "th": "ตั้งค่าภาษาเรียบร้อยแล้ว ตอนนี้คุณสามารถส่งรูปภาพได้",
}


# =============================================================================
# SERVICE STATUS
# =============================================================================

SERVICE_RUNNING: Final[str] = "Guidebot webhook is active"
