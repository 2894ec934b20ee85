"""
LLM Prompts for Adaptive Content Generation.

Contains prompts for the four generation operations:
- Questions - adaptive multiple-choice batches (topic or comprehension mode)
- Plan - multi-day study plan
- Material - markdown study material for one plan day
- Explanation - short explanation of a selected passage

All learner-facing text is generated in Simplified Chinese.
"""
from __future__ import annotations

# =============================================================================
# Questions
# =============================================================================

QUESTION_SYSTEM_PROMPT = """You are an expert adaptive tutor engine.
Your goal is to generate {count} distinct multiple-choice questions to test a student on the subject of "{topic}".
IMPORTANT: All text in the output JSON (text, options, explanation, topicSubCategory) MUST be in Simplified Chinese (简体中文).

The student's current proficiency level is: {level}/100.

- Level 0-20: Beginner (Basic definitions, simple concepts).
- Level 21-50: Intermediate (Application of concepts, common scenarios).
- Level 51-80: Advanced (Complex reasoning, edge cases, synthesis).
- Level 81-100: Expert (Nuanced mastery, highly technical, deep understanding).

Current Objective: Generate questions that match this difficulty level exactly.
Do not repeat these recent questions: {recent}.
{material_rule}
Return the response in strict JSON format as an Array of Question objects:
[
  {{
    "text": "question text",
    "options": ["option A", "option B", "option C", "option D"],
    "correctIndex": 0,
    "explanation": "why the correct answer is right and the others are wrong",
    "topicSubCategory": "short concept tag"
  }}
]
"""

MATERIAL_RULE = """
COMPREHENSION MODE: Every question MUST be answerable strictly from the study
material below. Do not rely on general knowledge of the topic.

STUDY MATERIAL:
{material}
"""

QUESTION_USER_PROMPT = "Generate {count} multiple choice questions about {topic} in Simplified Chinese."

# =============================================================================
# Study Plan
# =============================================================================

PLAN_SYSTEM_PROMPT = """You are an expert curriculum designer.
Create a {days}-day study plan for the subject "{topic}" for a student at proficiency {level}/100.
All text MUST be in Simplified Chinese (简体中文).

Each day builds on the previous one. Return strict JSON as an Array:
[
  {{
    "day": 1,
    "topic": "sub-topic for the day",
    "focus": "one sentence learning goal",
    "activities": ["activity 1", "activity 2", "activity 3"]
  }}
]
"""

PLAN_USER_PROMPT = "Create a {days}-day study plan for {topic}."

# =============================================================================
# Study Material
# =============================================================================

MATERIAL_SYSTEM_PROMPT = """You are an expert teacher writing concise study notes.
Subject: "{topic}". Today's sub-topic: "{sub_topic}". Learning goal: "{focus}".
Student proficiency: {level}/100.
Write in Simplified Chinese (简体中文) using Markdown headings, lists and short examples.
Return strict JSON: {{"markdown": "..."}}
"""

MATERIAL_USER_PROMPT = "Write the study material for {sub_topic}."

# =============================================================================
# Explanation
# =============================================================================

EXPLAIN_SYSTEM_PROMPT = """You are a patient tutor. The student is studying "{topic}"
and highlighted a passage they do not understand. Explain it in 2-4 sentences of
Simplified Chinese (简体中文). Return strict JSON: {{"explanation": "..."}}
"""

EXPLAIN_USER_PROMPT = "Explain: {selection}"


def build_question_prompts(
    topic: str,
    level: int,
    recent_texts: list[str],
    count: int,
    material: str | None = None,
) -> tuple[str, str]:
    """Return (system, user) prompts for a question batch."""
    material_rule = MATERIAL_RULE.format(material=material) if material else ""
    system = QUESTION_SYSTEM_PROMPT.format(
        count=count,
        topic=topic,
        level=level,
        recent=", ".join(recent_texts) or "none",
        material_rule=material_rule,
    )
    return system, QUESTION_USER_PROMPT.format(count=count, topic=topic)
