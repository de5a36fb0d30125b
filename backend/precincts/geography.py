"""Cantons and parishes of Morona Santiago, in display order."""

from __future__ import annotations

DEFAULT_CANTON = "Morona"

CANTON_PARISHES: dict[str, tuple[str, ...]] = {
    "Morona": ("Macas", "9 de Octubre", "General Proaño", "San Isidro", "Sinaí", "Cuchaentza", "Río Blanco", "Zuñac"),
    "Gualaquiza": (
        "Gualaquiza",
        "Bomboiza",
        "El Ideal",
        "General Proaño",
        "Mercedes del Salado",
        "Nueva Tarqui",
        "San Miguel de Cuyes",
        "Amazanga",
    ),
    "Limón Indanza": (
        "Gral. Leonidas Plaza Gutiérrez",
        "Indanza",
        "San Antonio",
        "Santa Rosa de Limón",
        "Pan de Azúcar",
        "San Miguel de Conchay",
    ),
    "Santiago": (
        "Santiago de Méndez",
        "San Luis de El Upano",
        "Copal",
        "Patuca",
        "Tayuza",
        "Chinimpi",
        "San Ildefonso de Limón",
    ),
    "Sucúa": ("Sucúa", "Huambi", "Asunción", "Santa Marianita de Jesús", "Logroño Grande", "Yaupi"),
    "Palora": ("Palora", "Sangay", "Arapicos", "Cumandá", "Diez de Agosto", "Metentino", "Palmira"),
    "Huamboya": ("Huamboya", "Chiguaza", "Sucúa"),
    "San Juan Bosco": (
        "San Juan Bosco",
        "San Carlos de Limón",
        "Santiago de Panaza",
        "San Jacinto de Wakambeis",
        "Pan de Azúcar",
    ),
    "Taisha": ("Taisha", "Huasaga", "Macuma", "Tuutinentza", "Pumpuentsa"),
    "Logroño": ("Logroño", "Shimpis", "Yaupi", "San Agustín"),
    "Pablo Sexto": ("Pablo Sexto",),
    "Tiwintza": ("Santiago", "San José de Morona", "Winza"),
    "Sevilla Don Bosco": ("Sevilla Don Bosco",),
}


def parishes_for(canton: str) -> tuple[str, ...]:
    return CANTON_PARISHES.get(canton, ())


def default_parish(canton: str) -> str:
    parishes = parishes_for(canton) or CANTON_PARISHES[DEFAULT_CANTON]
    return parishes[0]


def is_valid_location(canton: str, parish: str) -> bool:
    return parish in parishes_for(canton)


def catalogue() -> list[dict]:
    return [{"canton": canton, "parishes": list(parishes)} for canton, parishes in CANTON_PARISHES.items()]
