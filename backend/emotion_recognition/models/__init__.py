# Importing the package registers every mapped class on Base.metadata,
# so string relationship targets resolve no matter which model is used first.
from emotion_recognition.models.users import User  # noqa: F401
from emotion_recognition.models.sessions import DetectionSession  # noqa: F401
from emotion_recognition.models.images import Image  # noqa: F401
from emotion_recognition.models.emotions import Emotion  # noqa: F401
from emotion_recognition.models.emotion_summary import EmotionSummary  # noqa: F401
