"""Shape Descriptors — advisory JSON schemas sent with structured recipes.

Invariants:
    - Every descriptor is plain JSON-schema (type/properties/required/description)
    - Descriptors are hints only: results are re-validated by the extractor and
      the pydantic models in schemas/persona.py
    - Property names match the wire format (camelCase)
"""

PERSONA_SHAPE = {
    "type": "object",
    "properties": {
        "name": {"type": "string", "description": "The character's name"},
        "role": {"type": "string", "description": "The character's role or occupation"},
        "tone": {
            "type": "string",
            "description": "The character's tone and manner of speaking",
        },
        "personality": {"type": "string", "description": "The character's personality"},
        "worldview": {
            "type": "string",
            "description": "The background setting or worldview of the character",
        },
        "experience": {
            "type": "string",
            "description": "The character's past experiences and background",
        },
        "other": {"type": "string", "description": "Other free-form settings or notes"},
    },
    "required": ["name", "role", "tone", "personality", "worldview", "experience"],
}

MBTI_SHAPE = {
    "type": "object",
    "properties": {
        "type": {
            "type": "string",
            "description": "The 4-letter MBTI type code (e.g., 'INFJ', 'ESTP').",
        },
        "typeName": {
            "type": "string",
            "description": "The descriptive name for the MBTI type (e.g., 'Advocate').",
        },
        "description": {
            "type": "string",
            "description": (
                "A brief, one-paragraph description of this personality type, "
                "written from the perspective of the character."
            ),
        },
        "scores": {
            "type": "object",
            "properties": {
                "mind": {"type": "number", "description": "0 (Introverted) to 100 (Extraverted)."},
                "energy": {"type": "number", "description": "0 (Sensing) to 100 (Intuitive)."},
                "nature": {"type": "number", "description": "0 (Thinking) to 100 (Feeling)."},
                "tactics": {"type": "number", "description": "0 (Judging) to 100 (Perceiving)."},
            },
            "required": ["mind", "energy", "nature", "tactics"],
        },
    },
    "required": ["type", "typeName", "description", "scores"],
}

CREATION_CHAT_SHAPE = {
    "type": "object",
    "properties": {
        "responseText": {
            "type": "string",
            "description": "Reply shown to the user.",
        },
        "updatedParameters": {
            "type": "object",
            "description": (
                "Only the persona parameters to change (name, role, tone, personality, "
                "worldview, experience, other). Empty object when nothing changes."
            ),
        },
    },
    "required": ["responseText", "updatedParameters"],
}
