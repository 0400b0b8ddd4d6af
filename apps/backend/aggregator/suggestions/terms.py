"""Built-in search term tables."""

from __future__ import annotations

from typing import Dict, Iterable, List

TERMS_BY_CATEGORY: Dict[str, List[str]] = {
    "popular": [
        "amateur", "teen", "milf", "mature", "asian", "ebony", "latina", "blonde",
        "brunette", "redhead", "big tits", "big ass", "small tits", "petite", "bbw",
        "chubby", "skinny", "fit", "athletic", "natural tits", "busty", "curvy",
        "thick", "slim", "young", "granny", "step mom", "step sister", "family",
        "taboo", "homemade", "amateur couple", "real couple", "verified amateur",
        "verified couple", "hardcore", "softcore", "erotic", "sensual", "romantic",
        "passionate",
    ],
    "ethnicity": [
        "arab", "indian", "japanese", "chinese", "korean", "thai", "filipina",
        "russian", "ukrainian", "polish", "czech", "german", "french", "italian",
        "spanish", "british", "brazilian", "colombian", "mexican", "argentinian",
        "puerto rican", "african", "persian", "greek", "hungarian", "romanian",
        "australian", "canadian", "american", "jamaican",
    ],
    "body": [
        "muscular", "toned", "tall", "short", "voluptuous", "huge tits", "perky tits",
        "round ass", "bubble butt", "pawg", "thick thighs", "long legs", "hairy",
        "shaved", "tattoo", "tattooed", "pierced", "pregnant", "freckles", "tan",
        "pale",
    ],
    "hair": [
        "blonde hair", "brown hair", "black hair", "red hair", "ginger", "platinum blonde",
        "pink hair", "blue hair", "long hair", "short hair", "ponytail", "pigtails",
        "braids", "curly hair",
    ],
    "age": [
        "18 years old", "20s", "30s", "40s", "50s", "college", "student", "cheerleader",
        "older woman", "older man", "age gap", "cougar", "experienced",
    ],
    "acts": [
        "blowjob", "deepthroat", "oral", "69", "fingering", "handjob", "footjob",
        "titjob", "masturbation", "solo", "solo female", "solo male", "dildo",
        "vibrator", "sex toy", "rough sex", "missionary", "doggy style", "cowgirl",
        "reverse cowgirl", "standing sex", "riding", "anal", "anal sex",
        "double penetration", "gangbang", "orgy", "group sex", "threesome",
        "foursome", "lesbian", "lesbian sex", "girl on girl", "scissoring", "strapon",
        "face sitting", "squirting", "creampie", "facial", "cumshot", "orgasm",
        "multiple orgasms", "edging",
    ],
    "fetish": [
        "bdsm", "bondage", "tied up", "shibari", "femdom", "maledom", "spanking",
        "worship", "foot fetish", "feet", "high heels", "stockings", "pantyhose",
        "lingerie", "latex", "leather", "uniform", "cosplay", "roleplay", "nurse",
        "librarian", "secretary", "maid", "voyeur", "public", "outdoor", "beach",
        "shower", "massage", "oiled",
    ],
    "scenario": [
        "casting", "casting couch", "fake taxi", "pickup", "stranger", "hookup",
        "blind date", "first date", "first time", "seduction", "cheating", "affair",
        "cuckold", "hotwife", "swingers", "party", "sleepover", "vacation", "hotel room",
        "roommate", "neighbors", "boss", "coworker", "job interview", "audition",
        "photoshoot", "babysitter", "tutor", "personal trainer", "caught", "surprise",
        "stuck", "walk in", "best friend", "pizza delivery", "plumber", "car wash",
    ],
    "style": [
        "hd", "1080p", "4k", "uhd", "60fps", "high quality", "professional", "pov",
        "point of view", "gonzo", "reality", "compilation", "best of", "top rated",
        "most viewed", "trending", "classic", "vintage", "retro", "behind the scenes",
        "uncut", "uncensored", "slow motion", "close up", "vr porn", "virtual reality",
        "joi", "asmr", "webcam", "live cam", "onlyfans",
    ],
    "relationships": [
        "couple", "married couple", "husband wife", "boyfriend girlfriend",
        "ex girlfriend", "friends with benefits", "lovers", "newlyweds", "honeymoon",
        "wedding night", "open relationship",
    ],
    "locations": [
        "bedroom", "bathroom", "kitchen", "living room", "hot tub", "sauna",
        "locker room", "dressing room", "backstage", "club", "car", "boat", "tent",
        "cabin", "penthouse", "dorm room", "office", "conference room", "elevator",
        "rooftop", "parking lot", "forest", "woods", "lakeside", "farm", "gym",
        "yoga studio", "classroom", "library",
    ],
    "clothing": [
        "naked", "nude", "topless", "clothed sex", "striptease", "upskirt", "mini skirt",
        "tight dress", "yoga pants", "leggings", "bikini", "see through", "lace",
        "corset", "garter belt", "thigh highs", "boots", "stilettos", "barefoot",
        "glasses", "choker",
    ],
    "niche": [
        "interracial", "bbc", "size difference", "height difference", "muscle worship",
        "quickie", "marathon sex", "slow sex", "sensual sex", "role reversal",
        "crossdressing", "trans", "transgender", "hentai", "anime", "cartoon", "parody",
        "celebrity", "gamer girl", "egirl", "influencer", "strip poker",
        "truth or dare",
    ],
}

POPULAR_SEARCHES: List[str] = [
    "teen", "milf", "lesbian", "anal", "amateur", "big tits",
    "blonde", "asian", "threesome", "creampie", "blowjob", "latina",
    "ebony", "hardcore", "mature", "stepmom", "japanese", "massage",
    "pov", "big ass", "interracial", "hentai", "bbc", "step sister",
    "squirt", "gangbang", "deepthroat", "rough", "pawg", "redhead",
    "solo", "femdom", "indian", "double penetration", "homemade",
]

CATEGORIZED_SUGGESTIONS: List[Dict[str, object]] = [
    {
        "name": "popular",
        "display_name": "Popular",
        "terms": ["teen", "milf", "lesbian", "anal", "amateur", "big tits", "blonde", "asian"],
    },
    {
        "name": "acts",
        "display_name": "Acts",
        "terms": ["blowjob", "anal", "creampie", "threesome", "gangbang", "deepthroat", "squirt", "dp"],
    },
    {
        "name": "body",
        "display_name": "Body Type",
        "terms": ["big tits", "big ass", "petite", "bbw", "busty", "thick", "pawg", "curvy"],
    },
    {
        "name": "ethnicity",
        "display_name": "Ethnicity",
        "terms": ["asian", "latina", "ebony", "japanese", "indian", "russian", "brazilian", "arab"],
    },
    {
        "name": "age",
        "display_name": "Age",
        "terms": ["teen", "milf", "mature", "college", "granny", "young", "barely legal"],
    },
    {
        "name": "scenario",
        "display_name": "Scenario",
        "terms": ["stepmom", "step sister", "massage", "casting", "cheating", "public", "hotel", "office"],
    },
    {
        "name": "style",
        "display_name": "Style",
        "terms": ["amateur", "homemade", "pov", "hd", "4k", "vintage", "professional", "vr"],
    },
    {
        "name": "fetish",
        "display_name": "Fetish",
        "terms": ["bdsm", "feet", "bondage", "femdom", "latex", "cosplay", "stockings", "tattoo"],
    },
]


def unique_terms(*groups: Iterable[str]) -> List[str]:
    """Flatten term groups, dropping blanks and case-insensitive repeats."""
    seen = set()
    unique: List[str] = []
    for group in groups:
        for term in group:
            key = term.strip().lower()
            if key and key not in seen:
                seen.add(key)
                unique.append(term.strip())
    return unique


SEARCH_TERMS: List[str] = unique_terms(*TERMS_BY_CATEGORY.values())
