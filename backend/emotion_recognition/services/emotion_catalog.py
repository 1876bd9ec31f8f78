from dataclasses import dataclass
from typing import Dict, Tuple

from emotion_recognition.schemas.emotion_schema import EmotionLabel


@dataclass(frozen=True)
class EmotionDescriptor:
    """Display metadata the dashboard shows next to a detected label."""
    description: str
    icon: str
    color: str
    secondary_emotions: Tuple[str, ...]
    recommendations: Tuple[str, ...]


EMOTION_CATALOG: Dict[EmotionLabel, EmotionDescriptor] = {
    EmotionLabel.HAPPY: EmotionDescriptor(
        description="Joy, contentment or satisfaction",
        icon="😊",
        color="#FFD700",
        secondary_emotions=("content", "excited", "grateful"),
        recommendations=("Share your joy", "Practice gratitude", "Connect with others"),
    ),
    EmotionLabel.SAD: EmotionDescriptor(
        description="Loss, disappointment or withdrawal",
        icon="😢",
        color="#4169E1",
        secondary_emotions=("melancholy", "disappointed", "lonely"),
        recommendations=("Talk to someone", "Practice self-care", "Engage in uplifting activities"),
    ),
    EmotionLabel.ANGRY: EmotionDescriptor(
        description="Frustration, irritation or resentment",
        icon="😠",
        color="#DC143C",
        secondary_emotions=("frustrated", "irritated", "annoyed"),
        recommendations=("Take deep breaths", "Step away from the situation", "Express feelings constructively"),
    ),
    EmotionLabel.SURPRISED: EmotionDescriptor(
        description="Reaction to something unexpected",
        icon="😲",
        color="#FF8C00",
        secondary_emotions=("amazed", "confused", "shocked"),
        recommendations=("Process the information", "Ask questions", "Stay curious"),
    ),
    EmotionLabel.FEARFUL: EmotionDescriptor(
        description="Worry, anxiety or a sense of threat",
        icon="😨",
        color="#8A2BE2",
        secondary_emotions=("anxious", "worried", "nervous"),
        recommendations=("Identify the threat", "Practice grounding techniques", "Seek support"),
    ),
    EmotionLabel.DISGUSTED: EmotionDescriptor(
        description="Revulsion or aversion",
        icon="🤢",
        color="#228B22",
        secondary_emotions=("repulsed", "offended", "disappointed"),
        recommendations=("Remove yourself from the situation", "Practice acceptance", "Focus on positive aspects"),
    ),
    EmotionLabel.NEUTRAL: EmotionDescriptor(
        description="Calm, resting expression",
        icon="😐",
        color="#808080",
        secondary_emotions=(),
        recommendations=("Stay mindful",),
    ),
}

# (lower bound exclusive, band name), checked top-down
INTENSITY_BANDS = (
    (0.9, "very high"),
    (0.7, "high"),
    (0.5, "medium"),
    (0.3, "low"),
)


def _check_catalog() -> None:
    missing = [label.value for label in EmotionLabel if label not in EMOTION_CATALOG]
    if missing:
        raise RuntimeError(f"Emotion catalog has no descriptor for: {', '.join(missing)}")


# Fails at import, so an unhandled label stops the application at startup
_check_catalog()


def describe(label) -> EmotionDescriptor:
    """Descriptor for a label given as EmotionLabel or its string value."""
    return EMOTION_CATALOG[EmotionLabel(label)]


def intensity_for(confidence: float) -> str:
    for threshold, band in INTENSITY_BANDS:
        if confidence > threshold:
            return band
    return "very low"
