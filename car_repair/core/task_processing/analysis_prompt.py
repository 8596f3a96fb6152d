"""
Car inspection prompt template.

Dependencies: None (pure prompt templates)
System role: Instruction set for the vision model
"""

from car_repair.core.task_processing.locale import LocaleProfile, language_name
from car_repair.models.analysis import CarInfo

IMAGE_TYPE_DESCRIPTIONS: dict[str, str] = {
    "front": "Front view",
    "back": "Back view",
    "left": "Left side view",
    "right": "Right side view",
    "issue": "Issue/Damage close-up",
    "other": "Additional view",
}

CAR_INSPECTION_PROMPT = """You are an expert car inspector. Analyze the provided images of a {brand} {model} ({year}) with {mileage} km mileage.
Rules (must follow):
- Describe only damage clearly visible in the images.
- Do not assume hidden, internal, mechanical, or not-visible damage.
- If damage cannot be confirmed, use "severity": "unknown".
- Do not hedge detected damage with words like "likely" or "probable".
- Costs must cover confirmed visible damage only.
- Give every cost in {currency} at typical {region} repair prices.
- Write all descriptive text in {language}.
- Output valid JSON only, no extra text.

Images (in order): {image_descriptions}
{owner_description}
JSON structure:
{{
  "damage_detected": true,
  "damages": [
    {{
      "location": "front bumper/door/etc",
      "severity": "minor/moderate/severe/unknown",
      "description": "detailed description",
      "estimated_parts_cost_original": "approximate cost for OEM parts only",
      "estimated_parts_cost_alternative": "approximate cost for aftermarket parts only",
      "estimated_labor_cost": "approximate labor/repair work cost"
    }}
  ],
  "recommendations": ["recommendation 1", "recommendation 2"],
  "estimated_total_parts_cost_original": "total OEM parts cost",
  "estimated_total_parts_cost_alternative": "total aftermarket parts cost",
  "estimated_total_labor_cost": "total labor cost",
  "currency": "{currency}",
  "region": "{region}",
  "locale": "{locale_tag}",
  "summary": "brief summary of the inspection"
}}"""


def describe_image_type(image_type: str) -> str:
    """Prompt label for a photo angle."""
    return IMAGE_TYPE_DESCRIPTIONS.get(image_type, IMAGE_TYPE_DESCRIPTIONS["other"])


def build_car_inspection_prompt(
    car_info: CarInfo,
    image_types: list[str],
    locale: LocaleProfile,
) -> str:
    """
    Build the inspection prompt for one task.

    Args:
        car_info: Vehicle descriptor
        image_types: Photo angles in the order the images are attached
        locale: Currency, language and region for the report

    Returns:
        str: Prompt text
    """
    owner_description = (
        f"Owner's description: {car_info.description}\n" if car_info.description else ""
    )
    return CAR_INSPECTION_PROMPT.format(
        brand=car_info.brand or "Unknown",
        model=car_info.model or "Unknown",
        year=car_info.year or "unknown year",
        mileage=car_info.mileage if car_info.mileage is not None else "unknown",
        currency=locale.currency,
        region=locale.region,
        language=language_name(locale.language),
        locale_tag=locale.locale_tag,
        image_descriptions=", ".join(describe_image_type(t) for t in image_types),
        owner_description=owner_description,
    )
