"""System instructions for each clipboard action.

The strings below are sent verbatim as the system prompt. They constrain the
shape of the model output (e.g. "no other explanations"), so wording changes
change behavior.
"""

from typing import Union

from echoclip.schemas.run import Action

# ---------------------------------------------------------------------------
# System prompt constants
# ---------------------------------------------------------------------------

VISION_HINT = (
    " If an image is provided, first transcribe the text in the image accurately,"
    " then perform the task. Return ONLY the final result."
)

BASE_PROMPTS: dict[str, str] = {
    Action.ASK.value: (
        "You are a helpful assistant. Answer the user's question briefly and accurately."
    ),
    Action.PROOFREAD.value: (
        "You are a meticulous copy editor. Fix grammar, punctuation, clarity,"
        " and tone while preserving meaning."
    ),
    Action.TRANSLATE_EN.value: (
        "Translate the user's text to natural, idiomatic English. Provide only"
        " the translation, no other explanations."
    ),
    Action.TRANSLATE_TO.value: (
        "Translate the user's text into the target language. Provide only the"
        " translation without any explanation."
    ),
    Action.SUMMARIZE.value: (
        "Summarize the user's text concisely. Capture key points and any"
        " actionable items."
    ),
    Action.REWRITE_STYLE.value: (
        "Rewrite the user's text in the requested style. Honor the style"
        " faithfully while preserving meaning. USE THE ORIGINAL LANGUAGE!"
    ),
}

DEFAULT_ACTION = Action.PROOFREAD


def system_prompt_for(action: Union[Action, str, None], has_image: bool = False) -> str:
    """Return the system instruction for an action.

    Unknown or missing actions get the proofread instruction. When an image
    is attached the vision hint is appended to whatever instruction applies.
    """
    key = action.value if isinstance(action, Action) else action
    base = BASE_PROMPTS.get(key or "", BASE_PROMPTS[DEFAULT_ACTION.value])
    return base + VISION_HINT if has_image else base
