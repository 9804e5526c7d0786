"""
Future Self Prompt Builder

Assembles the instruction sent with the user's photo to the image model.

Two modes:
- Interval: the subject N years from now on a neutral studio backdrop
- Custom: the subject at a chosen age performing a free-text action, in a
  setting that fits the action

Both modes carry the projected weight, the lifestyle factor lists verbatim,
the visual translation guide, a full-body framing requirement and the content
safety constraint. Building a prompt never contacts the image service.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from health_projection import HealthSnapshot
from lifestyle_factors import LifestyleFactors
from survey_questions import BasicInfo


class PromptMode(Enum):
    INTERVAL = "interval"
    CUSTOM = "custom"


@dataclass(frozen=True)
class BaseImage:
    """The user's photo as sent to the image service."""
    data: bytes
    mime_type: str

    def __repr__(self) -> str:
        return f"BaseImage(mime_type={self.mime_type!r}, size={len(self.data)})"


@dataclass(frozen=True)
class GenerationRequest:
    """Payload for one image generation call."""
    base_image: BaseImage
    prompt: str
    mode: PromptMode
    target_age: int
    years_offset: int
    action_text: Optional[str] = None

    @property
    def mime_type(self) -> str:
        return self.base_image.mime_type


def _bullets(items: Sequence[str]) -> str:
    if not items:
        return "- None specified."
    return "\n".join(f"- {item}" for item in items)


SKIN_DIRECTIVE = (
    "- **Skin:** If smoking, high alcohol intake, or poor sun protection are noted, depict "
    "corresponding sallow skin, premature wrinkles, and sunspots. If hydration and a good diet "
    "are noted, show healthier, more vibrant skin for their age."
)

SAFETY_DIRECTIVE = (
    "The final image must be a full-body shot. Do not create any violent, graphic, or "
    "disturbing content. The result should be a plausible, neutral, and data-driven prediction."
)


class PromptBuilder:
    """Builds GenerationRequests from a health snapshot and lifestyle factors."""

    def build_interval_prompt(
        self,
        base_image: BaseImage,
        basic_info: BasicInfo,
        snapshot: HealthSnapshot,
        factors: LifestyleFactors,
        years_offset: int
    ) -> GenerationRequest:
        target_age = basic_info.age + years_offset
        weight = snapshot.projected_weight

        prompt = f"""
**Objective:** Generate a hyper-realistic, full-body photograph of the person in the provided image, but {years_offset} years in the future (at age {target_age}). The depiction must be a direct and accurate reflection of the provided lifestyle data.

**Subject's Profile:**
- Current Age: {basic_info.age}
- Future Age: {target_age}
- Projected Weight: Approximately {weight} lbs.

{self._factor_sections(factors)}

**Visual Translation Guide (Strictly Adhere):**
- **Body Shape:** The subject's body composition must reflect a weight of ~{weight} lbs. If negative factors like poor diet or a sedentary lifestyle are present, depict a higher body fat percentage and less muscle tone. If positive factors like regular exercise are present, depict a healthier, toned physique appropriate for their age.
{SKIN_DIRECTIVE}
- **Face:** If sleep is poor, add visible dark circles and tired eyes. If stress is high, show it in facial tension and expression lines.
- **Posture:** A sedentary lifestyle should be reflected in poorer, more slumped posture.

**Final Instructions:** The background must be a neutral gray studio setting. {SAFETY_DIRECTIVE}
""".strip()

        return GenerationRequest(
            base_image=base_image,
            prompt=prompt,
            mode=PromptMode.INTERVAL,
            target_age=target_age,
            years_offset=years_offset,
        )

    def build_custom_prompt(
        self,
        base_image: BaseImage,
        basic_info: BasicInfo,
        snapshot: HealthSnapshot,
        factors: LifestyleFactors,
        target_age: int,
        action_text: str
    ) -> GenerationRequest:
        weight = snapshot.projected_weight
        mood = factors.mood.expression

        prompt = f"""
**Objective:** Generate a hyper-realistic, full-body photograph of the person in the provided image, but at age {target_age}. The depiction must be a direct and accurate reflection of the provided lifestyle data, and show them performing the requested action.

**Action:** The person should be depicted **{action_text}**.

**Subject's Profile:**
- Current Age: {basic_info.age}
- Future Age: {target_age}
- Projected Weight: Approximately {weight} lbs.
- General Mood/Expression: {mood}

{self._factor_sections(factors)}

**Visual Translation Guide (Strictly Adhere):**
- **Body Shape:** The subject's body composition must reflect a weight of ~{weight} lbs and be appropriate for someone performing the action "{action_text}". If negative factors like poor diet or a sedentary lifestyle are present, depict a higher body fat percentage and less muscle tone. If positive factors like regular exercise are present, depict a healthier, toned physique appropriate for their age.
{SKIN_DIRECTIVE}
- **Face:** The expression should reflect the general mood ({mood}). If sleep is poor, add visible dark circles and tired eyes. If stress is high, show it in facial tension and expression lines.
- **Posture:** A sedentary lifestyle should be reflected in poorer, more slumped posture, unless overridden by the requested action.

**Final Instructions:** The background should be a setting that makes sense for the action "{action_text}". {SAFETY_DIRECTIVE}
""".strip()

        return GenerationRequest(
            base_image=base_image,
            prompt=prompt,
            mode=PromptMode.CUSTOM,
            target_age=target_age,
            years_offset=target_age - basic_info.age,
            action_text=action_text,
        )

    def _factor_sections(self, factors: LifestyleFactors) -> str:
        return (
            "**Lifestyle Analysis & Visual Directives:**\n\n"
            "**Positive Factors (leading to healthier aging):**\n"
            f"{_bullets(factors.positive)}\n\n"
            "**Negative Factors (leading to accelerated aging):**\n"
            f"{_bullets(factors.negative)}"
        )
