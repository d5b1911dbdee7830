"""Static informational data: supported languages and conversation starters."""

from backend.agent.prompts import DEFAULT_LANGUAGE
from backend.api.schemas import LanguageInfo

SUPPORTED_LANGUAGES = [
    LanguageInfo(code="en", name="English", native="English"),
    LanguageInfo(code="es", name="Spanish", native="Español"),
    LanguageInfo(code="fr", name="French", native="Français"),
    LanguageInfo(code="de", name="German", native="Deutsch"),
    LanguageInfo(code="it", name="Italian", native="Italiano"),
    LanguageInfo(code="pt", name="Portuguese", native="Português"),
    LanguageInfo(code="zh", name="Chinese", native="中文"),
    LanguageInfo(code="ja", name="Japanese", native="日本語"),
    LanguageInfo(code="ko", name="Korean", native="한국어"),
]

CONVERSATION_STARTERS = {
    "en": [
        "What vegetables grow well in shade?",
        "How do I know when to water my plants?",
        "What are the best plants for beginners?",
        "How can I improve my soil quality?",
        "What plants attract beneficial insects?",
    ],
    "es": [
        "¿Qué vegetales crecen bien en la sombra?",
        "¿Cómo sé cuándo regar mis plantas?",
        "¿Cuáles son las mejores plantas para principiantes?",
        "¿Cómo puedo mejorar la calidad de mi suelo?",
        "¿Qué plantas atraen insectos beneficiosos?",
    ],
    "fr": [
        "Quels légumes poussent bien à l'ombre?",
        "Comment savoir quand arroser mes plantes?",
        "Quelles sont les meilleures plantes pour les débutants?",
        "Comment puis-je améliorer la qualité de mon sol?",
        "Quelles plantes attirent les insectes bénéfiques?",
    ],
}


def get_starters(language: str | None) -> list[str]:
    """Starters for a language, English ones when none exist for it."""
    return CONVERSATION_STARTERS.get(language or DEFAULT_LANGUAGE, CONVERSATION_STARTERS[DEFAULT_LANGUAGE])
