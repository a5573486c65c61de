"""Category markers for event names."""
from typing import List, Tuple

DEFAULT_MARKER = "🔹"

# Checked in order; the first bucket with a matching keyword wins.
# Sports sits before outreach so "Evangelismo FIFA" gets the ball.
CATEGORY_KEYWORDS: List[Tuple[str, Tuple[str, ...]]] = [
    ("🙏", ("oración", "oramos", "intercesión", "vigilia")),
    ("❤️", ("enamorados", "matrimonios", "parejas", "boda", "familia")),
    ("⚽", ("fifa", "fútbol", "futbol", "soccer", "deporte", "copa", "torneo", "mundial")),
    ("🤝", ("proyecto", "rehabilitación", "adicciones", "humanitaria", "obra",
           "misiones", "visita", "evangelismo")),
    ("🔥", ("congreso", "jóvenes", "jovenes", "fiesta", "resplandece", "aniversario")),
    ("🎓", ("instituto", "seminario", "curso", "clase", "taller", "examen",
           "escuela", "capacitación")),
    ("🍞", ("cena", "comunión", "pan")),
    ("🎵", ("música", "musica", "recital", "concierto", "alabanza")),
    ("🎈", ("niños", "infantil", "abuelitos", "tercera edad")),
    ("🛑", ("cerrada", "descanso", "suspensión")),
]


def tag_category(event_name: str) -> str:
    """
    Pick the decorative marker for an event.

    Args:
        event_name: Event title

    Returns:
        Emoji of the first matching category, or the generic marker
    """
    lower = (event_name or '').lower()
    for marker, keywords in CATEGORY_KEYWORDS:
        if any(keyword in lower for keyword in keywords):
            return marker
    return DEFAULT_MARKER
