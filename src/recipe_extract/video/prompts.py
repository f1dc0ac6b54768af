"""Prompt sent to the video service's chat endpoint."""

RECIPE_PROMPT_LINES = (
    "Extract a complete cooking recipe from this video.",
    "Return STRICT, VALID JSON with this shape:",
    "{",
    '  "title": string,',
    '  "servings": number | null,',
    '  "prep_time": string | null,  // e.g., "15 min"',
    '  "cook_time": string | null,  // e.g., "30 min"',
    '  "total_time": string | null,',
    '  "ingredients": [',
    '    { "name": string, "quantity": string | number | null, "unit": string | null, "notes": string | null }',
    "  ],",
    '  "steps": [',
    '    { "t_in": "HH:MM:SS" | null, "t_out": "HH:MM:SS" | null, "instruction": string }',
    "  ],",
    '  "tools": string[] | [],',
    '  "tips": string[] | [],',
    '  "creator": {',
    '    "name": string | null,',
    '    "handle": string | null',
    "  }",
    "}",
    "Rules:",
    "- If the video omits something, infer conservatively or set null.",
    "- Keep fractions as written (1/3, not 0.333).",
    "- Prefer standard units (g, ml, tsp, tbsp, cup, °C/°F).",
    "- Keep steps concise, ordered, and aligned to timestamps when available.",
    "- Extract creator/channel information from the video if visible or mentioned.",
)


def build_recipe_prompt() -> str:
    return "\n".join(RECIPE_PROMPT_LINES)
