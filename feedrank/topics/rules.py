"""Declarative topic rules for the keyword classifier.

Each rule lists plain keywords, multi-word phrases and hashtags (without the
leading ``#``) that map a piece of text to one topic. Vocabulary covers
Spanish and English cues.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class TopicRule:
    topic: str
    keywords: tuple[str, ...] = ()
    phrases: tuple[str, ...] = ()
    hashtags: tuple[str, ...] = ()


DEFAULT_TOPIC_RULES: tuple[TopicRule, ...] = (
    TopicRule(
        topic="sports",
        keywords=(
            "futbol", "football", "soccer", "basket", "basketball", "nba", "liga",
            "gol", "goal", "partido", "mundial", "champions", "tenis", "tennis",
            "deporte", "formula1", "premier", "messi", "ronaldo",
        ),
        phrases=("copa del mundo", "champions league", "juegos olimpicos", "world cup"),
        hashtags=("sports", "f1"),
    ),
    TopicRule(
        topic="music",
        keywords=(
            "musica", "music", "cancion", "song", "album", "concierto", "concert",
            "banda", "band", "rock", "reggaeton", "trap", "rap", "playlist", "spotify",
        ),
        phrases=("nuevo album", "nueva cancion", "new album"),
        hashtags=("music",),
    ),
    TopicRule(
        topic="politics",
        keywords=(
            "politica", "politics", "eleccion", "elecciones", "election", "gobierno",
            "government", "presidente", "president", "parlamento", "senado", "senate",
            "diputado", "voto", "vote",
        ),
        phrases=("campana electoral", "debate electoral", "partido politico"),
        hashtags=("politics",),
    ),
    TopicRule(
        topic="war",
        keywords=(
            "guerra", "war", "conflicto", "conflict", "ataque", "bombardeo", "frente",
            "tropas", "troops", "soldados", "soldiers", "invasion",
        ),
        phrases=("alto al fuego", "frente de batalla", "ceasefire agreement"),
        hashtags=("war",),
    ),
    TopicRule(
        topic="weather",
        keywords=(
            "clima", "weather", "tiempo", "lluvia", "rain", "tormenta", "storm",
            "temperatura", "temperature", "frio", "calor", "nieve", "snow", "calima",
        ),
        phrases=("ola de calor", "cambio climatico", "heat wave", "climate change"),
        hashtags=("weather",),
    ),
    TopicRule(
        topic="comedy",
        keywords=(
            "chiste", "joke", "broma", "comedia", "comedy", "humor", "gracioso",
            "funny", "risa", "jajaja", "jaja",
        ),
        phrases=("stand up", "one liner"),
        hashtags=("funny",),
    ),
    TopicRule(
        topic="movies",
        keywords=(
            "pelicula", "movie", "film", "cine", "cinema", "netflix", "hbo", "serie",
            "actor", "actriz", "actress", "estreno", "premiere", "taquilla",
        ),
        phrases=("premios oscar", "carta de casting", "box office"),
        hashtags=("movies", "series"),
    ),
    TopicRule(
        topic="animation",
        keywords=(
            "anime", "animado", "animated", "caricatura", "cartoon", "dibujos",
            "manga", "pixar", "disney", "otaku",
        ),
        phrases=("studio ghibli", "serie animada"),
        hashtags=("anime",),
    ),
    TopicRule(
        topic="memes",
        keywords=("meme", "memes", "shitpost", "trolleada", "troleo", "plantilla", "cringe", "lol"),
        phrases=("plantilla de meme",),
        hashtags=("memes",),
    ),
    TopicRule(
        topic="finance",
        keywords=(
            "banco", "bank", "tarjeta", "credito", "credit", "prestamo", "loan",
            "interes", "cuenta", "transferencia", "cripto", "crypto", "bitcoin",
            "ethereum", "dolar", "dollar", "inversion", "investment", "acciones",
            "stocks", "bolsa", "inflacion", "inflation",
        ),
        phrases=("mercado bursatil", "tasa de interes", "interest rate", "stock market"),
        hashtags=("finance", "stocks", "crypto"),
    ),
)
