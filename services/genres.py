"""Genre catalogue shared with the mobile app."""

GENRES = {
    "ACTION": {"value": "action", "label": "🎬 Action", "hindi": "एक्शन"},
    "COMEDY": {"value": "comedy", "label": "😂 Comedy", "hindi": "कॉमेडी"},
    "DRAMA": {"value": "drama", "label": "🎭 Drama", "hindi": "ड्रामा"},
    "THRILLER": {"value": "thriller", "label": "😱 Thriller", "hindi": "थ्रिलर"},
    "ROMANCE": {"value": "romance", "label": "💕 Romance", "hindi": "रोमांस"},
    "CRIME": {"value": "crime", "label": "🔍 Crime", "hindi": "क्राइम"},
    "HORROR": {"value": "horror", "label": "👻 Horror", "hindi": "हॉरर"},
    "SCI_FI": {"value": "sci-fi", "label": "🚀 Sci-Fi", "hindi": "साइ-फाई"},
    "FANTASY": {"value": "fantasy", "label": "🔮 Fantasy", "hindi": "फैंटेसी"},
    "FAMILY": {"value": "family", "label": "👨‍👩‍👧‍👦 Family", "hindi": "पारिवारिक"},
    "MYSTERY": {"value": "mystery", "label": "🔍 Mystery", "hindi": "रहस्य"},
    "BIOGRAPHY": {"value": "biography", "label": "📖 Biography", "hindi": "जीवनी"},
    "DOCUMENTARY": {"value": "documentary", "label": "📹 Documentary", "hindi": "वृत्तचित्र"},
    "HISTORICAL": {"value": "historical", "label": "🏛️ Historical", "hindi": "ऐतिहासिक"},
    "MUSICAL": {"value": "musical", "label": "🎵 Musical", "hindi": "संगीत"},
    "ADVENTURE": {"value": "adventure", "label": "🗺️ Adventure", "hindi": "रोमांच"},
    "PSYCHOLOGICAL": {"value": "psychological", "label": "🧠 Psychological", "hindi": "मनोवैज्ञानिक"},
    "SUPERNATURAL": {"value": "supernatural", "label": "👻 Supernatural", "hindi": "अलौकिक"},
    "POLITICAL": {"value": "political", "label": "🏛️ Political", "hindi": "राजनीतिक"},
    "SPORTS": {"value": "sports", "label": "⚽ Sports", "hindi": "खेल"},
}

_BY_VALUE = {genre["value"]: genre for genre in GENRES.values()}

DEFAULT_GENRE = GENRES["DRAMA"]["value"]

POPULAR_GENRES = [
    GENRES["DRAMA"]["value"],
    GENRES["COMEDY"]["value"],
    GENRES["ACTION"]["value"],
    GENRES["THRILLER"]["value"],
    GENRES["ROMANCE"]["value"],
]


def genre_options():
    return [
        {"value": genre["value"], "label": genre["label"], "hindi": genre["hindi"]}
        for genre in GENRES.values()
    ]


def genre_label(value):
    genre = _BY_VALUE.get(value)
    return genre["label"] if genre else value


def genre_hindi(value):
    genre = _BY_VALUE.get(value)
    return genre["hindi"] if genre else value


def is_valid_genre(value):
    return value in _BY_VALUE
