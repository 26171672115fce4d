"""Translation prompts for LLM providers."""


def build_translation_prompt(source_language: str, target_language: str, text: str) -> str:
    """Build translation prompt for LLM."""
    return f"""You are a precise translation engine.
Source language: {source_language}
Target language: {target_language}

Languages may be natural languages (en, pt, ja) or programming languages
(python, typescript). When translating code into a natural language, describe
what the code does in that language.

Text to translate:
{text}

Return ONLY the translated text, with no explanations."""
