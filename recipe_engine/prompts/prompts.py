"""Prompts sent to the generative model.

Provides a factory for the recipe generation prompt and the fixed ingredient
detection prompt used with food photos. Both ask for JSON only; responses are
still run through structured-text recovery because models wrap output anyway.
"""

from typing import Optional, Sequence

from recipe_engine.engine.scoring import has_dietary_filter


def _get_dietary_section(dietary_filter: Optional[str]) -> str:
    if not has_dietary_filter(dietary_filter):
        return ""
    diet = dietary_filter.strip().lower()
    return f"""
## Dietary Requirement (MANDATORY)
The recipe must be {diet}. Do not use any ingredient that conflicts with a {diet} diet,
and include "{diet}" in dietaryTags.
"""


def build_recipe_prompt(ingredients: Sequence[str], dietary_filter: Optional[str] = None) -> str:
    """Generate the recipe creation prompt.

    Args:
        ingredients: User ingredient tokens to build the recipe around.
        dietary_filter: Optional diet the recipe must satisfy.

    Returns:
        str: Prompt text requesting a single recipe as a JSON object.
    """
    ingredient_list = ", ".join(ingredients)
    return f"""You are an experienced chef and recipe developer.

Create a high-quality, authentic recipe using the following ingredients: {ingredient_list}.
Use as many of these ingredients as possible. You may add common pantry staples
(salt, pepper, oil, water) and at most a few other ingredients.
{_get_dietary_section(dietary_filter)}
## Output Format
Respond with ONLY a valid JSON object, no markdown and no explanations, with these keys:
- "title": recipe name (string)
- "description": one or two sentences (string)
- "ingredients": ingredient lines with quantities (array of strings)
- "instructions": ordered steps (array of strings)
- "prepTime": e.g. "15min" (string)
- "cookTime": e.g. "30min" (string)
- "servings": number of servings (integer)
- "calories": estimated calories per serving (number)
- "dietaryTags": diets the recipe satisfies, e.g. ["vegetarian"] (array of strings)
"""


INGREDIENT_DETECTION_PROMPT = """Identify all food ingredients visible in this image.

Return ONLY valid JSON: an array of objects with these keys:
- "name": ingredient name, singular and lowercase (string)
- "quantity": estimated amount, e.g. "2" or "half" (string)
- "unit": unit for the quantity, e.g. "pieces", "g", "cup" (string)
- "confidence": how sure you are this ingredient is present, 0.0-1.0 (number)

Example: [{"name": "tomato", "quantity": "3", "unit": "pieces", "confidence": 0.95}]
If no food is visible, return [].
"""
