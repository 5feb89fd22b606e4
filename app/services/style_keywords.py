"""
Keyword tables for theme and tone detection.

Matching is a case-insensitive substring count over each caption, so
keywords are lowercase and avoid fragments that occur inside common words
("art" in "party", "fit" in "outfit"). Table order is the tie-break order.
"""

THEME_KEYWORDS: dict[str, tuple[str, ...]] = {
    "Travel": (
        "travel", "trip", "vacation", "wanderlust", "explore", "adventure",
        "journey", "passport", "destination", "holiday", "beach", "roadtrip",
    ),
    "Fashion": (
        "fashion", "outfit", "ootd", "streetwear", "wardrobe", "style inspo",
        "sneakers", "styled", "lookbook", "vintage",
    ),
    "Food": (
        "food", "foodie", "delicious", "recipe", "yummy", "dinner", "lunch",
        "breakfast", "brunch", "restaurant", "coffee", "tasty", "cooking", "dessert",
    ),
    "Fitness": (
        "fitness", "workout", "gym", "training", "yoga", "cardio", "exercise",
        "marathon", "fitfam", "gains", "personal best",
    ),
    "Business": (
        "business", "entrepreneur", "startup", "marketing", "success", "brand",
        "leadership", "hustle", "career", "launch", "clients",
    ),
    "Art": (
        "artist", "artwork", "painting", "drawing", "sketch", "illustration",
        "gallery", "museum", "creative", "canvas",
    ),
    "Tech": (
        "tech", "technology", "coding", "developer", "software", "gadget",
        "programming", "innovation", "robot", "setup",
    ),
    "Nature": (
        "nature", "sunset", "sunrise", "mountain", "forest", "ocean", "hiking",
        "outdoors", "landscape", "flowers", "wildlife", "sky",
    ),
    "Lifestyle": (
        "lifestyle", "daily", "weekend", "home", "family", "friends", "mood",
        "vibes", "everyday", "routine", "cozy",
    ),
    "Beauty": (
        "beauty", "makeup", "skincare", "glow", "haircut", "nails", "cosmetics",
        "selfcare", "lipstick", "mascara",
    ),
}

TONE_KEYWORDS: dict[str, tuple[str, ...]] = {
    "Professional": (
        "professional", "expertise", "industry", "project", "strategy",
        "team", "results", "client", "conference", "excited to share",
    ),
    "Formal": (
        "therefore", "furthermore", "sincerely", "regards", "pleased to",
        "honored", "hereby", "respectfully", "on behalf of",
    ),
    "Casual": (
        "lol", "gonna", "wanna", "chill", "hey guys", "yeah", "omg", "tbh",
        "kinda", "vibes",
    ),
    "Humorous": (
        "haha", "funny", "joke", "hilarious", "lmao", "laugh", "oops",
        "\U0001F602", "\U0001F923", "\U0001F61C",
    ),
    "Inspirational": (
        "inspire", "inspiration", "dream", "believe", "motivation",
        "never give up", "grateful", "keep going", "goals", "blessed",
    ),
    "Educational": (
        "learn", "tips", "how to", "did you know", "guide", "lesson",
        "facts", "tutorial", "step by step", "explained",
    ),
    "Friendly": (
        "thank you", "thanks", "love you", "friends", "hope you", "welcome",
        "hugs", "miss you", "❤", "\U0001F495",
    ),
    "Promotional": (
        "sale", "discount", "shop now", "buy", "link in bio", "offer",
        "limited", "promo", "order now", "giveaway",
    ),
}

DEFAULT_THEMES: tuple[str, ...] = ("Photography", "Daily Life", "Lifestyle")

# No Humorous/Inspirational/Educational, so the default tones never
# trigger caption-style rules on their own.
DEFAULT_TONES: tuple[str, ...] = ("Friendly", "Casual", "Professional")

FALLBACK_CAPTION_STYLES: tuple[str, ...] = ("Conversational", "Personal")
