"""Shared test fixtures for plancompose tests."""

import pytest


THREE_SCENE_PLAN = """\
Platform: YouTube
Duration: 30
Voice: warm and upbeat
Brand: Acme #0f172a #3B82F6
Music: uplifting

Scene 1: Opening
Purpose: hook
Narration: "Stop scrolling. This changes everything."
Visual: city skyline at dawn
Effect: cinematic_zoom, lens_flare

Scene 2: Demo
Purpose: body
Narration: Here is how it works, step by step.
Visual: product close-up on a desk
Effect: overlay_text

Scene 3: Close
Purpose: cta
Narration: Sign up today.
Visual: logo on white
Effect: logo_reveal
"""


@pytest.fixture
def three_scene_plan():
    """Hook / body / cta plan, 30 seconds, YouTube."""
    return THREE_SCENE_PLAN


@pytest.fixture
def plan_text():
    """Build a plan from (purpose, effects) pairs plus global directives."""
    def _build(scenes, **directives):
        lines = [f"{key.replace('_', ' ').title()}: {value}" for key, value in directives.items()]
        lines.append("")
        for i, (purpose, effects) in enumerate(scenes, start=1):
            lines.append(f"Scene {i}")
            lines.append(f"Purpose: {purpose}")
            lines.append(f"Narration: Line {i}.")
            lines.append(f"Visual: shot {i}")
            if effects:
                lines.append(f"Effect: {effects}")
            lines.append("")
        return "\n".join(lines)
    return _build
