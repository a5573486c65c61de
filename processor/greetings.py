"""Greeting lines used in digest headers."""
from datetime import datetime
from typing import Optional

MONTHLY_GREETINGS = [
    "📅 *¡NUEVO MES, NUEVAS BENDICIONES!*",
    "✨ *¡BIENVENIDO, NUEVO MES EN FAMILIA!*",
    "🚀 *¡ARRANCAMOS EL MES CON TODO!*",
    "🕊️ *¡MES DE VICTORIA Y BENDICIÓN!*",
    "💒 *¡NUESTRA AGENDA MENSUAL ESTÁ LISTA!*",
    "🌟 *¡LO QUE DIOS HARÁ ESTE MES SERÁ GRANDE!*",
]

WEEKLY_GREETINGS = [
    "📅 *AGENDA DE LA SEMANA*",
    "✨ *¡ASÍ SE VE NUESTRA SEMANA!*",
    "🚀 *¡PREPARÉMONOS PARA ESTA SEMANA!*",
    "👋 *¡HOLA, FAMILIA! ESTA ES LA AGENDA SEMANAL:*",
    "🕊️ *¡SEMANA DE BENDICIÓN! AQUÍ LOS DETALLES:*",
    "💒 *¡NOS VEMOS EN CASA ESTA SEMANA!*",
]

STATIC_DAILY_GREETINGS = [
    "✨ ¡Un día lleno de bendición para todos!",
    "🚀 ¡Ánimo! Hoy es un gran día.",
    "🕊️ Preparemos nuestro corazón para lo que viene.",
    "📅 Aquí está la agenda de hoy:",
    "👋 ¡Esperamos verlos a todos!",
]


def get_greeting(kind: str, month_index: int, month_name: Optional[str] = None) -> str:
    """
    Pick the header greeting for a digest.

    The pick depends only on the month, so every message of a month shares
    the same greeting and the next month rotates to another one.

    Args:
        kind: "monthly" or "weekly"
        month_index: Zero-based month
        month_name: Appended inside the bold segment of monthly greetings

    Returns:
        Greeting line in the bot's markup
    """
    phrases = MONTHLY_GREETINGS if kind == 'monthly' else WEEKLY_GREETINGS
    greeting = phrases[month_index % len(phrases)]

    if month_name and kind == 'monthly':
        if greeting.endswith('*'):
            greeting = f"{greeting[:-1]} ({month_name.upper()})*"
        else:
            greeting = f"{greeting} ({month_name.upper()})"

    return greeting


def time_of_day_greeting(moment: datetime) -> str:
    if moment.hour < 12:
        return "BUENOS DÍAS"
    if moment.hour < 19:
        return "BUENAS TARDES"
    return "BUENAS NOCHES"


def static_daily_greeting(seed: int) -> str:
    """Fallback greeting when no generator is available."""
    return STATIC_DAILY_GREETINGS[seed % len(STATIC_DAILY_GREETINGS)]
