from typing import Dict, Any

POSITIVE_STEMS = ["счастлив", "рад", "любл", "хорош", "отличн", "замечательн", "благодар"]
NEGATIVE_STEMS = ["грустн", "злой", "расстроен", "больн", "плох", "ужасн", "злость", "обид"]

NEUTRAL = "neutral"
POSITIVE = "positive"
NEGATIVE = "negative"

def analyze_emotion(text: str) -> Dict[str, Any]:
    """
    Keyword heuristic over a lowercased copy of the text.

    A negative stem outranks a positive one; intensity is the number of
    stems from either list found in the text.
    """
    lower = (text or "").lower()
    positive_hits = [stem for stem in POSITIVE_STEMS if stem in lower]
    negative_hits = [stem for stem in NEGATIVE_STEMS if stem in lower]

    emotion = NEUTRAL
    if positive_hits:
        emotion = POSITIVE
    if negative_hits:
        emotion = NEGATIVE

    return {"emotion": emotion, "intensity": len(positive_hits) + len(negative_hits)}

def classify(text: str) -> str:
    """Return just the emotion tag for a message"""
    return analyze_emotion(text)["emotion"]

def overall_tone(tag_a: str, tag_b: str) -> str:
    return "aligned" if tag_a == tag_b else "conflicted"

def build_emotion_summary(message_a: str, message_b: str) -> Dict[str, Any]:
    """Emotion analysis stored on a round alongside the recommendation"""
    partner1 = analyze_emotion(message_a)
    partner2 = analyze_emotion(message_b)
    return {
        "partner1": partner1,
        "partner2": partner2,
        "overall_tone": overall_tone(partner1["emotion"], partner2["emotion"]),
    }
