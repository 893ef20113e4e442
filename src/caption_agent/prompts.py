"""Prompt construction for caption generation."""

from caption_agent.models import CaptionLength

DEFAULT_TONE = "Use a professional yet engaging tone."

_PROMPT_TEMPLATE = """You are an expert social media manager.
Analyze the uploaded image(s) and write an engaging Instagram caption in {language}.

**Constraints:**
- Caption Length: {length}
- User Context: {user_description}
- Topic/Vibe: {topic}

**Goal:** Create a caption that stops the scroll. Include viral, high-reach hashtags relevant to the visual content.

Brand/Style Context:
{context}

Output strictly in JSON format, with no other text:
{{
  "caption": "The main caption text including emojis",
  "hashtags": ["#tag1", "#tag2", "#tag3"],
  "translation": "{translation_hint}"
}}
"""


def build_context_query(topic: str) -> str:
    """Query sent to context search for a given topic."""
    return f"instagram caption style for {topic}"


def is_english(language: str) -> bool:
    return language.strip().lower() in {"english", "en", "en-us", "en-gb"}


def build_prompt(
    language: str,
    topic: str,
    length: CaptionLength,
    user_description: str,
    context: str,
) -> str:
    """Assemble the instruction text sent ahead of the images.

    Empty ``context`` is replaced by :data:`DEFAULT_TONE`.
    """
    if is_english(language):
        translation_hint = "Omit this field: the caption is already in English"
    else:
        translation_hint = f"English translation of the {language} caption"

    return _PROMPT_TEMPLATE.format(
        language=language,
        length=length,
        user_description=user_description,
        topic=topic,
        context=context or DEFAULT_TONE,
        translation_hint=translation_hint,
    )
