"""
Savor AI Prompt Engineering
Language-aware system and user prompts for structured recipe generation
"""

from dataclasses import dataclass
from typing import Dict, Optional

from schemas.recipe_schemas import PreferenceProfile, SUPPORTED_LANGUAGES


LANGUAGE_INSTRUCTIONS: Dict[str, str] = {
    "pl": """WAŻNE: Musisz odpowiedzieć w języku POLSKIM.
CAŁA treść przepisu (tytuł, opis, podsumowanie, składniki, instrukcje, tagi, kuchnia) MUSI być napisana po polsku.

Przykładowe tagi po polsku: "obiad", "szybkie", "wegetariańskie", "zdrowe", "desery"
Przykładowe kuchnie po polsku: "włoska", "grecka", "azjatycka", "polska", "meksykańska\"""",
    "en": """IMPORTANT: You MUST respond in ENGLISH language.
ALL recipe content (title, description, summary, ingredients, instructions, tags, cuisine) MUST be written in English.

Example tags in English: "dinner", "quick", "vegetarian", "healthy", "desserts"
Example cuisine in English: "italian", "greek", "asian", "polish", "mexican\"""",
}

LANGUAGE_NAMES: Dict[str, str] = {
    "en": "ENGLISH",
    "pl": "POLISH",
}

USER_PROMPT_INSTRUCTIONS: Dict[str, str] = {
    "en": "Create a recipe for",
    "pl": "Stwórz przepis na",
}

DIETARY_LABELS: Dict[str, Dict[str, str]] = {
    "en": {
        "header": "USER DIETARY PREFERENCES:",
        "diet_type": "Diet type",
        "avoid": "AVOID these ingredients",
        "preferred": "Preferred cuisines",
    },
    "pl": {
        "header": "PREFERENCJE DIETETYCZNE UŻYTKOWNIKA:",
        "diet_type": "Typ diety",
        "avoid": "UNIKAJ tych składników",
        "preferred": "Preferowane kuchnie",
    },
}

DIET_TYPE_NAMES: Dict[str, Dict[str, str]] = {
    "en": {
        "vegan": "vegan",
        "vegetarian": "vegetarian",
        "pescatarian": "pescatarian",
        "keto": "keto",
        "paleo": "paleo",
        "gluten_free": "gluten-free",
        "dairy_free": "dairy-free",
        "low_carb": "low-carb",
        "mediterranean": "Mediterranean",
        "omnivore": "omnivore",
    },
    "pl": {
        "vegan": "wegańska",
        "vegetarian": "wegetariańska",
        "pescatarian": "peskatariańska",
        "keto": "ketogeniczna",
        "paleo": "paleo",
        "gluten_free": "bezglutenowa",
        "dairy_free": "bez nabiału",
        "low_carb": "niskowęglowodanowa",
        "mediterranean": "śródziemnomorska",
        "omnivore": "wszystkożerna",
    },
}

RECIPE_FORMAT = """{
  "title": "Recipe Title",
  "summary": "Brief one-sentence summary",
  "description": "Detailed description",
  "prep_time_minutes": 15,
  "cook_time_minutes": 30,
  "servings": 4,
  "difficulty": "easy|medium|hard",
  "cuisine": "Italian",
  "ingredients": ["ingredient 1", "ingredient 2"],
  "instructions": ["step 1", "step 2"],
  "tags": ["tag1", "tag2"],
  "dietary_info": {
    "vegetarian": true,
    "vegan": false,
    "gluten_free": false,
    "dairy_free": false,
    "nut_free": true
  },
  "nutrition": {
    "calories": 350,
    "protein_g": 12,
    "carbs_g": 45,
    "fat_g": 10
  }
}"""


@dataclass(frozen=True)
class RecipePrompts:
    """System and user prompt pair sent to a provider"""
    system: str
    user: str


class RecipePromptBuilder:
    """
    Builds deterministic prompts for recipe generation.

    The system prompt carries the language directive, the JSON field contract
    and any dietary constraints from the preference profile. Unsupported
    language codes fall back to the builder's default language.
    """

    def __init__(self, default_language: str = "en"):
        self.default_language = default_language if default_language in SUPPORTED_LANGUAGES else "en"

    def resolve_language(self, lang: Optional[str]) -> str:
        if lang and lang.lower() in SUPPORTED_LANGUAGES:
            return lang.lower()
        return self.default_language

    def build_system_prompt(self, profile: Optional[PreferenceProfile] = None, lang: Optional[str] = None) -> str:
        lang = self.resolve_language(lang)
        language_name = LANGUAGE_NAMES[lang]

        prompt = f"""{LANGUAGE_INSTRUCTIONS[lang]}

You are a professional chef and recipe creator. Generate recipes in strict JSON format matching this structure:

{RECIPE_FORMAT}

CRITICAL RULES:
- Return ONLY valid JSON, no markdown, no explanations
- All text content MUST be in {language_name} language
- All fields must match the types shown above
- ingredients and instructions must be non-empty arrays
- times and servings must be positive numbers
- difficulty must be exactly: "easy", "medium", or "hard\""""

        if profile is not None:
            prompt += self._build_dietary_section(profile, lang)

        return prompt

    def build_user_prompt(self, prompt: str, lang: Optional[str] = None) -> str:
        lang = self.resolve_language(lang)
        return (
            f"{USER_PROMPT_INSTRUCTIONS[lang]}: {prompt}\n\n"
            f"Remember: Return ONLY valid JSON in {LANGUAGE_NAMES[lang]} "
            "matching the exact structure specified in the system prompt."
        )

    def build_prompts(
        self,
        prompt: str,
        profile: Optional[PreferenceProfile] = None,
        lang: Optional[str] = None,
    ) -> RecipePrompts:
        return RecipePrompts(
            system=self.build_system_prompt(profile, lang),
            user=self.build_user_prompt(prompt, lang),
        )

    def _build_dietary_section(self, profile: PreferenceProfile, lang: str) -> str:
        labels = DIETARY_LABELS[lang]
        lines = ["", "", labels["header"]]

        if profile.diet_type:
            diet = profile.diet_type.value
            lines.append(f"- {labels['diet_type']}: {DIET_TYPE_NAMES[lang].get(diet, diet)}")
        if profile.disliked_ingredients:
            lines.append(f"- {labels['avoid']}: {', '.join(profile.disliked_ingredients)}")
        if profile.preferred_cuisines:
            lines.append(f"- {labels['preferred']}: {', '.join(profile.preferred_cuisines)}")

        return "\n".join(lines)
