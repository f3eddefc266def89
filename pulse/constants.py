from pulse.schemas import ScreenTime

MOOD_LABELS: dict[int, str] = {
    1: "Rough",
    2: "Low",
    3: "Okay",
    4: "Good",
    5: "Great",
}

SCREEN_TIME_OPTIONS: list[dict[str, str]] = [
    {"value": ScreenTime.LOW.value, "label": "Low", "sub": "< 2h"},
    {"value": ScreenTime.MEDIUM.value, "label": "Medium", "sub": "2-4h"},
    {"value": ScreenTime.HIGH.value, "label": "High", "sub": "4h+"},
]

# Exercise presets offered by the check-in form, in minutes
EXERCISE_OPTIONS: list[int] = [0, 30, 60]

SUGGESTIONS: list[dict[str, str]] = [
    {"id": "1", "text": "Try going to bed 30 minutes earlier tonight.", "category": "sleep"},
    {"id": "2", "text": "A 10-minute walk could help reset your mood.", "category": "movement"},
    {"id": "3", "text": "Consider a screen-free 30 minutes before bed.", "category": "sleep"},
    {"id": "4", "text": "Drink a glass of water right now.", "category": "mindfulness"},
    {"id": "5", "text": "Take 3 deep breaths before your next task.", "category": "mindfulness"},
    {"id": "6", "text": "Stretch your legs for 5 minutes.", "category": "movement"},
]

INITIAL_SUGGESTION_ID = "1"


def get_suggestion(suggestion_id: str | None) -> dict[str, str]:
    """Look up a suggestion, falling back to the first one."""
    for suggestion in SUGGESTIONS:
        if suggestion["id"] == suggestion_id:
            return suggestion
    return SUGGESTIONS[0]


def next_suggestion_id(current: str | None) -> str:
    """Id of the suggestion shown after dismissing ``current``; wraps after the last."""
    try:
        nxt = int(current or INITIAL_SUGGESTION_ID) + 1
    except ValueError:
        return INITIAL_SUGGESTION_ID
    if nxt < 1 or nxt > len(SUGGESTIONS):
        return INITIAL_SUGGESTION_ID
    return str(nxt)
