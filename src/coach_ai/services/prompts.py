"""Prompt templates and compilation.

Templates use ``str.format`` placeholders. Missing variables render as
``[Not provided]`` rather than failing, so a partially known context still
produces a usable prompt.
"""

import logging
import math
from dataclasses import dataclass
from typing import Any

from coach_ai.config import settings
from coach_ai.entities import CompiledPrompt, GenerationConfig, ModelProfile
from coach_ai.services.model_client import config_for

logger = logging.getLogger(__name__)

MISSING = "[Not provided]"


@dataclass(frozen=True)
class PromptTemplate:
    id: str
    version: str
    system_prompt: str
    user_template: str
    max_units: int
    temperature: float
    profile: ModelProfile = ModelProfile.FAST

    def generation_config(self) -> GenerationConfig:
        return config_for(self.profile, max_units=self.max_units, temperature=self.temperature)


PROMPT_TEMPLATES: dict[str, PromptTemplate] = {
    "suggestion_explanation": PromptTemplate(
        id="suggestion_explanation",
        version="1.0.0",
        system_prompt=(
            "You are an expert strength coach explaining workout suggestions.\n"
            "Explain the science behind progressive overload in clear, accessible language.\n"
            "Help users understand WHY, not just WHAT. Never change the suggested numbers."
        ),
        user_template=(
            "User: {user_name} ({experience_level})\n"
            "Exercise: {exercise_name}\n"
            "Last performance: {last_weight}{units} x {last_reps} reps {rpe_info}\n\n"
            "Suggestion: {suggested_weight}{units} x {reps_min}-{reps_max} reps\n"
            "Confidence: {confidence}\n"
            "Recovery score: {recovery_score}/10\n"
            "{deload_note}\n\n"
            "Explain why this suggestion makes sense in 2-3 sentences."
        ),
        max_units=300,
        temperature=0.5,
    ),
    "progressive_overload": PromptTemplate(
        id="progressive_overload",
        version="2.0.0",
        system_prompt="Expert strength coach. Responses: MAX 25 words. Include exact weight/reps. No fluff.",
        user_template=(
            "{exercise_name}: {last_weight}{units}x{last_reps} (RPE {rpe}). "
            "Recovery: {recovery_score}/10. Suggested: {suggested_weight}{units} x {reps_min}-{reps_max}.\n"
            "Next set recommendation:"
        ),
        max_units=60,
        temperature=0.3,
    ),
    "form_guide": PromptTemplate(
        id="form_guide",
        version="1.0.0",
        system_prompt=(
            "You are a certified personal trainer providing form guidance.\n"
            "Focus on safety and effectiveness. Tailor advice to the user's experience level."
        ),
        user_template=(
            "Exercise: {exercise_name}\n"
            "User level: {experience_level}\n"
            "Equipment: {equipment}\n"
            "User question: {question}\n\n"
            "Existing form guide:\n{existing_guide}\n\n"
            "Common mistakes:\n{common_mistakes}\n\n"
            "Provide personalized form advice for this user."
        ),
        max_units=300,
        temperature=0.5,
    ),
    "workout_summary": PromptTemplate(
        id="workout_summary",
        version="1.0.0",
        system_prompt=(
            "You are an encouraging fitness coach analyzing completed workouts.\n"
            "Highlight achievements and records. Keep the tone energetic."
        ),
        user_template=(
            "User: {user_name}\n"
            "Workout: {workout_name}\n"
            "Duration: {duration} minutes\n"
            "Exercises:\n{exercise_details}\n\n"
            "Records achieved: {records}\n"
            "Total volume: {total_volume}{units}\n"
            "Average RPE: {average_rpe}\n"
            "Previous week's volume: {previous_volume}\n\n"
            "Write a short, motivating workout summary."
        ),
        max_units=400,
        temperature=0.7,
    ),
    "motivation": PromptTemplate(
        id="motivation",
        version="1.0.0",
        system_prompt=(
            "You generate intense, short motivational lines for workouts.\n"
            "Style: empowering, athletic. Maximum 10 words."
        ),
        user_template=(
            "Context: {context}\n"
            "User's streak: {streak} days\n"
            "Goal: {goal}\n\n"
            "Generate a workout motivation line:"
        ),
        max_units=30,
        temperature=0.9,
    ),
    "coach": PromptTemplate(
        id="coach",
        version="1.0.0",
        system_prompt=(
            "You are an elite fitness coach combining sports science with personalized coaching.\n"
            "Analyze the data before recommending. Consider recovery, progressive overload, "
            "injury prevention and motivation.\n"
            "Be direct and actionable."
        ),
        user_template=(
            "## Athlete\n{context}\n\n"
            "## Analysis\n{analysis}\n\n"
            "## Reference knowledge\n{knowledge}\n\n"
            "## Question\n{query}\n\n"
            "Provide a coaching response:"
        ),
        max_units=600,
        temperature=0.6,
        profile=ModelProfile.PRO,
    ),
}


class _Defaulting(dict):
    def __init__(self, template_id: str, values: dict[str, Any]) -> None:
        super().__init__(values)
        self._template_id = template_id

    def __missing__(self, key: str) -> str:
        logger.warning("Missing variable %r for prompt template %r", key, self._template_id)
        return MISSING


def get_template(template_id: str) -> PromptTemplate:
    """Look up a template.

    Raises:
        KeyError: If the template does not exist
    """
    try:
        return PROMPT_TEMPLATES[template_id]
    except KeyError:
        raise KeyError(f"Unknown prompt template: {template_id}") from None


def compile_prompt(template_id: str, variables: dict[str, Any]) -> CompiledPrompt:
    """Render a template and estimate its size.

    Args:
        template_id: Key into PROMPT_TEMPLATES
        variables: Placeholder values; ``None`` counts as missing

    Returns:
        The compiled prompt with ``unit_estimate`` covering system and user text
    """
    template = get_template(template_id)
    values = {k: v for k, v in variables.items() if v is not None}
    user_prompt = template.user_template.format_map(_Defaulting(template_id, values))
    unit_estimate = math.ceil(len(template.system_prompt + user_prompt) / settings.chars_per_unit)
    logger.debug("Compiled %s (%d units)", template_id, unit_estimate)
    return CompiledPrompt(
        system_prompt=template.system_prompt,
        user_prompt=user_prompt,
        unit_estimate=unit_estimate,
        template_id=template_id,
    )


def rpe_info(rpe: float | None) -> str:
    return "" if rpe is None else f"(RPE {rpe:g}/10)"
