"""Prompt Templates — static text for every recipe, parameterized by output language.

Invariants:
    - Templates are str.format() strings; literal braces are doubled
    - Every persona-facing template names the output {language}
    - JSON payloads are embedded with ensure_ascii=False, indent=2
"""

import json
from typing import Any

SCHEMA_INSTRUCTION = """<output_format>
Return ONLY a JSON value matching this schema. No preamble, no explanation.
{schema}
</output_format>"""

WEB_RESEARCH_PROMPT = (
    "Search the web for information about \"{topic}\". Combine what you find into a "
    "detailed description suitable for building a character profile, written in "
    "{language}. Include likely background, personality, manner of speaking and "
    "distinctive experiences."
)

PERSONA_FROM_TEXT_PROMPT = """Extract the character's parameters from the text below, in {language}, using the JSON format given.
- Keys must be exactly: name, role, tone, personality, worldview, experience, other.
- name (name), role (role or occupation), tone (manner of speaking), personality, worldview (setting), experience (past experiences), other (anything else).
---
{text}"""

PERSONA_REFORMAT_PROMPT = """Using the TEXT below, reply with the following JSON ONLY.
- No explanations, no preamble, no code fences.
- Keys in this order: name, role, tone, personality, worldview, experience, other
- Values are short sentences in {language}. Use an empty string ("") when a value is unknown.

Example (reply with exactly one line of JSON in this form):
{{"name":"Karma Signal","role":"","tone":"","personality":"","worldview":"","experience":"","other":""}}

TEXT:
{text}"""

PERSONA_FROM_DOCUMENT_PROMPT = """Extract the character information from the text below in {language}, following the JSON format given.

---

{text}"""

PERSONA_FROM_SUMMARY_PROMPT = """Update every field of the JSON format given, in {language}, based on the summary text below.

---

{text}"""

SUMMARY_FROM_PARAMS_PROMPT = """Write an engaging, story-like introduction, in {language}, of the character defined by the JSON below, told from the character's own point of view. If the 'other' field holds extra notes, weave them in. Return only the prose.

---

{params}"""

SHORT_SUMMARY_PROMPT = """Summarize the following text in {language} in about 50 characters:

---

{text}"""

SHORT_TONE_PROMPT = """Summarize the following description of a manner of speaking in {language} in about 50 characters, keeping its distinctive features:

---

{text}"""

CHANGE_SUMMARY_PROMPT = """Compare the two character settings below and summarize, in {language}, in one short sentence what changed from the old version to the new one.

Old version:
{old}

New version:
{new}

Summary:"""

MBTI_PROMPT = """Analyze the character settings below and produce a Myers-Briggs Type Indicator (MBTI) profile in {language}. The reply must be JSON following the schema given.

Character settings:
{persona}"""

REFINEMENT_WELCOME_PROMPT = """You are the character with the settings below.
---
{persona}
---
The user is about to fine-tune your detailed settings through a conversation. To begin, greet the user in {language} in your own voice and briefly explain that they can change your settings by chatting. Keep the whole greeting within 80 characters."""

CREATION_CHAT_SYSTEM = """You are a creative assistant helping the user build a character (persona).

The current persona settings are:
---
{current}
---

Analyze the user's instructions carefully and update the most relevant persona parameters (name, role, tone, personality, worldview, experience, other) so that they merge naturally with the existing settings.

Always reply in JSON with two keys, responseText and updatedParameters. responseText is written in {language}.
updatedParameters holds only the parameters to change; use an empty object when nothing changes.

Example: the user says "Name her Taro Yamada and make her calm":
```json
{{
    "responseText": "Understood. I will apply the new name and personality.",
    "updatedParameters": {{
        "name": "Taro Yamada",
        "personality": "Calm and composed."
    }}
}}
```

Example: the user just says "Good morning":
```json
{{
    "responseText": "Good morning!",
    "updatedParameters": {{}}
}}
```"""

ROMAJI_PROMPT = """Translate the following Japanese name into a single, lowercase, filename-safe romaji string. Reply with the string only.

Name: "{name}"

Romaji:"""

PERSONA_CHAT_SYSTEM = """You are a character with the following traits. Respond as this character in {language}.
- Name: {name}
- Role: {role}
- Tone: {tone}
- Personality: {personality}
- Worldview: {worldview}
- Experience: {experience}
- Other: {other}"""

HELP_CHAT_SYSTEM = """You are the guide AI of "Vocal Persona Editor". Answer the user's questions about how to use the app and its features in {language}, politely and clearly.

The app lets users create personas from a web topic or a document, refine them through chat, analyze their MBTI profile, review version history, and test-chat with them using an assigned voice."""


def to_json(data: Any) -> str:
    """Embed a JSON payload in a prompt."""
    return json.dumps(data, ensure_ascii=False, indent=2)
