"""Render one screen plus the batch config into the critique instruction text."""

import json

from ux_review.models.request import AnalysisConfig, AnalysisRequest

NIELSENS_HEURISTICS = (
    "Visibility of system status",
    "Match between system and real world",
    "User control and freedom",
    "Consistency and standards",
    "Error prevention",
    "Recognition rather than recall",
    "Flexibility and efficiency of use",
    "Aesthetic and minimalist design",
    "Help users recognize, diagnose, and recover from errors",
    "Help and documentation",
)

GESTALT_PRINCIPLES = (
    "Proximity",
    "Similarity",
    "Closure",
    "Continuity",
    "Figure/Ground",
    "Common Region",
    "Focal Point",
)

WCAG_CHECKS = (
    "WCAG 1.4.3 Contrast (Minimum): 4.5:1 for body text, 3:1 for large text",
    "WCAG 2.5.5 Target Size: interactive targets at least 44x44px",
    "WCAG 1.4.12 Text Spacing: content survives increased line, letter and word spacing",
)

UX_LAWS = (
    "Fitts's Law: time to acquire a target is a function of distance and size",
    "Hick's Law: decision time grows with the number of choices",
    "Miller's Law: the average person holds 7±2 items in working memory",
    "Jakob's Law: users prefer patterns they already know from other products",
)

PLATFORM_GUIDELINES = {
    "ios": "Apple Human Interface Guidelines",
    "android": "Material Design guidelines",
    "web": "established web conventions and responsive layout patterns",
}

ANALYSIS_DIMENSIONS = """\
**YOUR ANALYSIS MUST COVER:**

1. **VISUAL DESIGN** (from image):
   - WCAG accessibility (contrast ratios, touch targets, text sizing)
   - Visual hierarchy and information architecture
   - Gestalt principles (proximity, similarity, closure)
   - Platform guidelines ({platform})

2. **UX PSYCHOLOGY** (from structure + content):
   - Cognitive load: Is there too much information overwhelming users?
   - Mental models: Does this match user expectations for this screen type?
   - Decision fatigue: Are there too many choices causing paralysis?
   - Friction points: Any unnecessary steps or barriers?
   - Persuasion techniques: Social proof, scarcity, urgency usage
   - Emotional design: Does it evoke appropriate feelings for the context?

3. **BEHAVIORAL PATTERNS**:
   - Call-to-action clarity: Is the primary action immediately obvious?
   - Progressive disclosure: Is information revealed appropriately?
   - Feedback mechanisms: Does user know what will happen after actions?
   - Error prevention: Are there guardrails and validation?
   - Habit formation: Does this encourage return visits/engagement?

4. **USER FLOW ANALYSIS**:
   - Entry points: How did user arrive here? Is context clear?
   - Exit options: Where can they go next? Is navigation obvious?
   - Navigation clarity: Is the path forward unambiguous?
   - Task completion: Can user achieve their goal efficiently?

5. **MICROCOPY & CONTENT**:
   - Clarity: Is language simple, direct, and jargon-free?
   - Tone of voice: Appropriate for context and user state?
   - Button labels: Action-oriented and clear about outcomes?
   - Error messages: Helpful, empathetic, and solution-focused?

6. **INTERACTION DESIGN**:
   - Affordances: Do elements look clickable/interactive?
   - State changes: Are loading, success, error states visible?
   - Micro-interactions: Are they delightful or distracting?

7. **INFORMATION ARCHITECTURE**:
   - Content organization: Logical grouping and hierarchy?
   - Navigation depth: Is content buried too deep?
   - Scannability: Can users quickly find what they need?

**SPECIFIC PSYCHOLOGY PRINCIPLES TO CHECK:**
- **Hick's Law**: Are there too many options causing decision paralysis?
- **Miller's Law**: Is cognitive load kept under 7±2 items per section?
- **Fitts's Law**: Are important targets large and close to previous interaction points?
- **Jakob's Law**: Does this match familiar patterns from similar apps?
- **Peak-End Rule**: Is the experience memorable at key moments?
- **Zeigarnik Effect**: Are progress indicators used effectively?
- **Von Restorff Effect**: Does the primary CTA stand out distinctly?
- **Serial Position Effect**: Is key information at start or end?
"""

OUTPUT_CONTRACT = """\
**OUTPUT FORMAT:**
Return ONLY a JSON array with this structure:

[
  {
    "location": "Specific element or area",
    "category": "Visual Design | UX Psychology | Behavioral Patterns | User Flows | Microcopy | Interaction Design | Information Architecture",
    "severity": "critical" | "high" | "medium" | "low" | "positive",
    "finding": "What you observed (be specific)",
    "recommendation": "Exact fix with the behavioral rationale for why it matters",
    "principle": "Specific principle (e.g., 'Hick's Law', 'Cognitive Load', 'WCAG 2.1')"
  }
]

**EXAMPLE GOOD FEEDBACK:**

{
  "location": "Sign up form",
  "category": "UX Psychology",
  "severity": "high",
  "finding": "Form has 12 fields on first screen, causing decision fatigue and increasing bounce rate likelihood",
  "recommendation": "Break into 3-step progressive disclosure: (1) Email + Password, (2) Basic Info, (3) Preferences. Show a progress bar. Users can only hold 7±2 items in working memory, so 12 fields at once triggers abandonment.",
  "principle": "Miller's Law + Progressive Disclosure"
}

Provide 15-20 findings covering all 7 analysis areas above.
Include both visual AND behavioral/psychological insights.
Be specific, actionable, and explain the 'WHY' behind each recommendation.

RESPOND WITH ONLY THE JSON ARRAY. NO OTHER TEXT."""


def _format_dimension(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def _json_block(items: tuple, empty: str) -> str:
    if not items:
        return empty
    return json.dumps([item.model_dump(by_alias=True) for item in items], indent=2, ensure_ascii=False)


def _framework_section(config: AnalysisConfig) -> str:
    frameworks = config.frameworks
    lines: list[str] = []
    if frameworks.accessibility:
        lines.append("Accessibility (WCAG 2.1):")
        lines.extend(f"- {check}" for check in WCAG_CHECKS)
    if frameworks.heuristics:
        lines.append("Nielsen's heuristics:")
        lines.extend(f"- {h}" for h in NIELSENS_HEURISTICS)
    if frameworks.gestalt:
        lines.append("Gestalt principles:")
        lines.extend(f"- {p}" for p in GESTALT_PRINCIPLES)
    if frameworks.platform_guidelines:
        lines.append(f"Platform guidelines: follow {PLATFORM_GUIDELINES[config.platform]}")
    if frameworks.ux_laws:
        lines.append("UX laws:")
        lines.extend(f"- {law}" for law in UX_LAWS)
    if not lines:
        return ""
    return "\n**FRAMEWORK CHECKLISTS:**\n" + "\n".join(lines) + "\n"


def build_prompt(request: AnalysisRequest, config: AnalysisConfig) -> str:
    """Build the instruction text sent to every provider.

    Pure: the same screen and config always produce the same string. Sections
    with nothing to say (user context, framework checklists) are left out
    rather than rendered empty.
    """
    text_content = "\n".join(request.extracted_text) if request.extracted_text else "No text content extracted"
    interactive = _json_block(request.interactive_elements, "No interactive elements identified")
    prototype = _json_block(request.prototype_links, "No prototype connections")

    user_context = config.user_context.strip()
    user_context_section = (
        f"\n**USER PROVIDED CONTEXT:**\n{user_context}\n\nPlease consider this context when providing feedback.\n"
        if user_context
        else ""
    )
    step_line = f"\n- Flow step: {request.order}" if request.order is not None else ""

    return (
        f"You are an expert UX researcher and behavioral psychologist analyzing a {config.design_type} screen.\n"
        "\n"
        "**SCREEN CONTEXT:**\n"
        f'- Name: "{request.screen_name}"\n'
        f"- Type: {request.flow_context.screen_type or 'unknown'}\n"
        f"- Purpose: {request.flow_context.purpose or 'Not specified'}\n"
        f"- Platform: {config.platform}{step_line}\n"
        f"- Dimensions: {_format_dimension(request.pixel_width)}×{_format_dimension(request.pixel_height)}px"
        f"{user_context_section}\n"
        "\n"
        f"**TEXT CONTENT ON SCREEN:**\n{text_content}\n"
        "\n"
        f"**INTERACTIVE ELEMENTS:**\n{interactive}\n"
        "\n"
        f"**PROTOTYPE FLOWS:**\n{prototype}\n"
        "\n"
        f"{ANALYSIS_DIMENSIONS.format(platform=config.platform)}"
        f"{_framework_section(config)}"
        "\n"
        f"{OUTPUT_CONTRACT}"
    )
