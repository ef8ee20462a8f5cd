"""
Optional chat assistant that answers training questions and proposes plan edits.

The assistant never edits a plan itself: replies are mined for patches,
which are validated against the closed patch schema in plan_patches and
applied by the caller.
"""

import json
import logging
import os

import anthropic

from fitcoach.config import DEFAULT_CONFIG
from fitcoach.plan_patches import PATCH_TYPES, parse_patches_from_text
from fitcoach.profile_analyzer import select_goal


logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are a strength and conditioning coach helping a user adjust a workout plan.

Your scope is fitness, exercise technique, programming, recovery and sports nutrition.
Politely decline anything outside that scope.

When the user asks to change their plan, answer briefly and include a JSON array of patches.
Allowed patch types: {patch_types}.
Patch fields:
- type (required)
- week_number (optional, omit to edit every week)
- day_index (required, 0-based position of the day in the week)
- exercise_index (required for replace_exercise, remove_exercise, change_prescription)
- exercise_id (required for replace_exercise and add_exercise; use ids from the catalog list)
- sets (required for add_exercise and change_prescription):
  {{"count": int, "reps": int OR "reps_range": {{"min": int, "max": int}}, "rest_seconds": int, "rpe": float}}
- notes (optional, one sentence explaining the change)

Rules:
- Always prioritize safety and proper form
- Respect the user's equipment, experience level and limitations
- Never put the same exercise twice in one day
- Ask for clarification if information is insufficient
"""


class CoachAssistant:
    """
    Chat assistant bound to an explicitly supplied client.

    Usage:
        assistant = CoachAssistant.from_config(config)
        reply = assistant.send_message("Swap squats for something knee friendly", profile, plan)
        patches = assistant.propose_patches(reply)
    """

    def __init__(self, client, config=None, catalog=None):
        """
        Args:
            client: anthropic.Anthropic (or any object exposing messages.create)
            config: Full configuration dict; uses the `assistant` section
            catalog: Optional catalog used to list exercise ids in the context
        """
        self.client = client
        self.catalog = catalog
        settings = {**DEFAULT_CONFIG["assistant"], **((config or {}).get("assistant") or {})}
        self.model = settings["model"]
        self.max_tokens = settings["max_tokens"]
        self.max_history = settings["max_history"]
        self.chat_history = []

    @classmethod
    def from_config(cls, config, catalog=None, api_key=None):
        """Build an assistant with a real Anthropic client; the key comes from the environment."""
        settings = {**DEFAULT_CONFIG["assistant"], **(config.get("assistant") or {})}
        api_key = api_key or os.getenv(settings["api_key_env"])
        if not api_key:
            raise ValueError(f"{settings['api_key_env']} not found in environment variables")
        client = anthropic.Anthropic(api_key=api_key, timeout=settings["timeout"])
        return cls(client, config=config, catalog=catalog)

    def _system_prompt(self):
        return SYSTEM_PROMPT.format(patch_types=", ".join(PATCH_TYPES))

    def _context_block(self, profile=None, plan=None):
        lines = []
        if profile is not None:
            goal = select_goal(profile)
            lines.append("USER CONTEXT:")
            lines.append(f"- Experience: {getattr(profile.experience_level, 'value', profile.experience_level)}")
            lines.append(f"- Goal: {getattr(goal.type, 'value', goal.type) if goal else 'general_fitness'}")
            lines.append(f"- Equipment: {', '.join(sorted(profile.equipment)) or 'bodyweight only'}")
            if profile.limitations:
                lines.append(f"- Limitations: {profile.limitations}")

        if plan is not None:
            lines.append(f"CURRENT PLAN: {plan.name}")
            if plan.weeks:
                for day_index, workout in enumerate(plan.weeks[0].workouts):
                    lines.append(f"- day_index {day_index} ({workout.day_label}): {json.dumps(workout.exercise_ids())}")

        if self.catalog is not None and plan is not None:
            used = {entry.exercise_id for week in plan.weeks[:1] for w in week.workouts for entry in w.exercises}
            body_parts = {self.catalog.get_by_id(ex_id).body_part for ex_id in used if self.catalog.get_by_id(ex_id)}
            options = []
            for body_part in sorted(body_parts):
                options.extend(item.id for item in self.catalog.get_by_body_part(body_part))
            if options:
                lines.append(f"CATALOG IDS FOR THESE BODY PARTS: {', '.join(options[:120])}")

        return "\n".join(lines)

    def send_message(self, message, profile=None, plan=None):
        """
        Send a user message and return the assistant's reply text.

        Raises:
            RuntimeError: the API call failed
        """
        context = self._context_block(profile, plan)
        content = f"{message}\n\n{context}" if context else message
        messages = list(self.chat_history) + [{"role": "user", "content": content}]

        try:
            response = self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                system=self._system_prompt(),
                messages=messages,
            )
            reply = (response.content[0].text or "").strip()
        except (anthropic.APIError, IndexError, AttributeError) as err:
            logger.error("Assistant request failed: %s", err)
            raise RuntimeError("Failed to get a response from the coach assistant") from err

        if not reply:
            reply = "I could not process that request."

        self.chat_history.extend(
            [
                {"role": "user", "content": message},
                {"role": "assistant", "content": reply},
            ]
        )
        if len(self.chat_history) > self.max_history:
            self.chat_history = self.chat_history[-self.max_history:]
        return reply

    def propose_patches(self, reply):
        """Validated patches contained in a reply (empty list if none or all invalid)."""
        patches = parse_patches_from_text(reply)
        logger.info("Assistant proposed %d valid patch(es)", len(patches))
        return patches

    def clear_history(self):
        self.chat_history = []
