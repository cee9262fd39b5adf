"""Prompt templates for the cry and diaper analyzers."""

from __future__ import annotations

from typing import Any, Dict, Optional

from core import AdmissibilityLabel, InferencePrompt, PromptKind


_LABELS = " | ".join(label.value for label in AdmissibilityLabel)

CRY_VALIDATION_PROMPT = f"""You are screening an audio clip before a pediatric cry analysis.
Decide what the clip actually contains. Answer with exactly ONE label:
- "subject": a live recording of a real infant crying
- "wrong_subject": a voice or sound that is not an infant cry (adult speech, singing, animal, toy)
- "synthetic_media": an infant cry played back from a TV, phone, video or other recording
- "empty_ambient": silence, background noise, or ambient sound only
- "unrecognized": the audio is too distorted or short to tell

Respond with STRICT JSON only:
{{"label": "{_LABELS}", "subject": "what you heard, 2-5 words", "confidence": 0-100}}"""


DIAPER_VALIDATION_PROMPT = f"""You are screening a photo before a pediatric stool analysis.
Decide what the image actually shows. Answer with exactly ONE label:
- "subject": a real photo of a used baby diaper with visible stool
- "wrong_subject": anything else (food, adult toilet, pets, people, objects, a clean diaper)
- "synthetic_media": a screenshot, a photo of a screen, a drawing, or a generated image
- "empty_ambient": a blank, dark, or fully blurred image
- "unrecognized": the image cannot be interpreted

Respond with STRICT JSON only:
{{"label": "{_LABELS}", "subject": "what you see, 2-5 words", "confidence": 0-100}}"""


CRY_EXTRACTION_PROMPT = """You are a professional pediatric audio analyst. Analyze this infant cry carefully.

TASK:
1. Identify the cry TYPE (exactly one of):
   - "hungry": rhythmic, repetitive, feeding request
   - "tired": monotone, weak, sleepy
   - "pain": sharp, high-pitched, sustained
   - "discomfort": fussy; diaper, cold or heat
   - "colic": long, intense, often in the evening
   - "attention": intermittent, wants a parent
   - "overstimulated": overwhelmed by the environment
   - "sick": weak, hiccupy, abnormal
   - "no_cry_detected": there is no infant cry in the clip
   - "false_positive": the sound only resembles a cry
2. Confidence percentage (0-100)
3. Short explanation ({language}, 1-2 sentences)
4. Recommendations ({language}, 2-3 items)
5. Urgency tier

RESPONSE FORMAT (STRICT JSON):
{{
  "category": "hungry|tired|pain|discomfort|colic|attention|overstimulated|sick|no_cry_detected|false_positive",
  "confidence": 85,
  "explanation": "...",
  "recommendations": ["...", "..."],
  "urgency": "low|medium|high"
}}"""


DIAPER_EXTRACTION_PROMPT = """You are a pediatric health specialist. Analyze this photo of a baby diaper CAREFULLY.

MOST IMPORTANT: assess the COLOR, CONSISTENCY and APPEARANCE of the stool.

NORMAL COLORS:
- "brown" (any shade): normal, healthy digestion
- "yellow" / mustard: normal, especially when breastfed
- "green" / green-yellow: usually normal, formula, iron, green foods

NEEDS ATTENTION:
- "black" (meconium excepted): possible digestive bleeding
- "red" / bloody: digestive problems, anal fissure
- "pale" (white, clay): liver or bile problem - URGENT
- "watery": very watery or foamy, diarrhea or infection

If there is no stool in the diaper answer "no_stool_detected"; if the photo is too unclear answer "unclear_image".

RESPONSE FORMAT (STRICT JSON):
{{
  "category": "brown|yellow|green|black|red|pale|watery|no_stool_detected|unclear_image",
  "confidence": 0-100,
  "consistency": "normal|watery|hard|foamy",
  "concernLevel": "normal|attention|warning|urgent",
  "explanation": "{language} explanation (2-3 sentences)",
  "recommendations": ["recommendation 1", "recommendation 2"],
  "shouldSeeDoctor": true,
  "doctorUrgency": "none|soon|today|immediate"
}}

VERY IMPORTANT: if you see white, black or red, use the "urgent" level!"""


def format_context(context: Optional[Dict[str, Any]]) -> str:
    """Render caller-supplied baby context as prompt lines."""
    lines = []
    for key, value in sorted((context or {}).items()):
        text = str(value if value is not None else "").strip()
        if text:
            lines.append(f"- {str(key).replace('_', ' ')}: {text[:120]}")
    if not lines:
        return ""
    return "\n\nBABY CONTEXT:\n" + "\n".join(lines[:8])


def build_validation_prompt(template: str) -> InferencePrompt:
    return InferencePrompt(
        kind=PromptKind.VALIDATION,
        text=template,
        temperature=0.1,
        top_k=10,
        top_p=0.7,
        max_output_tokens=256,
    )


def build_extraction_prompt(
    template: str,
    *,
    language: str = "English",
    context: Optional[Dict[str, Any]] = None,
    temperature: float = 0.2,
    top_k: int = 20,
    top_p: float = 0.8,
) -> InferencePrompt:
    text = template.format(language=language) + format_context(context)
    return InferencePrompt(
        kind=PromptKind.EXTRACTION,
        text=text,
        temperature=temperature,
        top_k=top_k,
        top_p=top_p,
        max_output_tokens=1024,
    )
