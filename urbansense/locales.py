"""Supported UI languages: labels, status strings and voice vocabulary."""

from __future__ import annotations

from dataclasses import dataclass

from .constants import DEFAULT_LANGUAGE
from .types import Task


@dataclass(frozen=True)
class StatusStrings:
    initializing: str
    ready: str
    processing: str
    listening: str
    acquiring_location: str
    unrecognized_command: str
    shop_prompt: str


@dataclass(frozen=True)
class Locale:
    """A language configuration.

    ``commands`` keeps the declared rule order (bus, cross, explore, shop);
    :func:`urbansense.commands.resolve_command` relies on it for tie-breaks.
    """

    code: str
    name: str
    task_labels: dict[Task, str]
    commands: tuple[tuple[Task, tuple[str, ...]], ...]
    status: StatusStrings

    def label(self, task: Task) -> str:
        return self.task_labels[task]


EN_US = Locale(
    code="en-US",
    name="English",
    task_labels={
        Task.FIND_BUS: "Find Bus",
        Task.CROSS_ROAD: "Cross Road",
        Task.EXPLORE: "Explore",
        Task.FIND_SHOP: "Find Shop",
    },
    commands=(
        (Task.FIND_BUS, ("bus",)),
        (Task.CROSS_ROAD, ("cross", "road")),
        (Task.EXPLORE, ("explore", "around")),
        (Task.FIND_SHOP, ("shop", "store")),
    ),
    status=StatusStrings(
        initializing="Initializing...",
        ready="Ready. Select a task.",
        processing="Analyzing...",
        listening="Listening...",
        acquiring_location="Acquiring location...",
        unrecognized_command="Sorry, I did not understand that command. Please try again.",
        shop_prompt="What kind of shop are you looking for?",
    ),
)

HI_IN = Locale(
    code="hi-IN",
    name="हिन्दी (Hindi)",
    task_labels={
        Task.FIND_BUS: "बस ढूंढें",
        Task.CROSS_ROAD: "सड़क पार करें",
        Task.EXPLORE: "अन्वेषण करें",
        Task.FIND_SHOP: "दुकान ढूंढें",
    },
    commands=(
        (Task.FIND_BUS, ("बस", "bus")),
        (Task.CROSS_ROAD, ("सड़क", "पार")),
        (Task.EXPLORE, ("अन्वेषण", "आसपास", "आस पास")),
        (Task.FIND_SHOP, ("दुकान", "स्टोर")),
    ),
    status=StatusStrings(
        initializing="शुरू हो रहा है...",
        ready="तैयार। एक कार्य चुनें।",
        processing="विश्लेषण हो रहा है...",
        listening="सुन रहा है...",
        acquiring_location="स्थान प्राप्त हो रहा है...",
        unrecognized_command="माफ़ कीजिए, मैं यह आदेश नहीं समझ पाया। कृपया फिर से कोशिश करें।",
        shop_prompt="आप किस तरह की दुकान ढूंढ रहे हैं?",
    ),
)

ES_ES = Locale(
    code="es-ES",
    name="Español (Spanish)",
    task_labels={
        Task.FIND_BUS: "Buscar Bus",
        Task.CROSS_ROAD: "Cruzar Calle",
        Task.EXPLORE: "Explorar",
        Task.FIND_SHOP: "Buscar Tienda",
    },
    commands=(
        (Task.FIND_BUS, ("autobús", "autobus", "bus")),
        (Task.CROSS_ROAD, ("cruzar", "calle")),
        (Task.EXPLORE, ("explorar", "alrededor")),
        (Task.FIND_SHOP, ("tienda", "comercio")),
    ),
    status=StatusStrings(
        initializing="Inicializando...",
        ready="Listo. Seleccione una tarea.",
        processing="Analizando...",
        listening="Escuchando...",
        acquiring_location="Adquiriendo ubicación...",
        unrecognized_command="Lo siento, no entendí ese comando. Inténtelo de nuevo.",
        shop_prompt="¿Qué tipo de tienda estás buscando?",
    ),
)

LOCALES: dict[str, Locale] = {locale.code: locale for locale in (EN_US, HI_IN, ES_ES)}


def is_supported(code: str | None) -> bool:
    return code in LOCALES


def get_locale(code: str | None) -> Locale:
    """Return the locale for ``code``, falling back to the default language."""

    if code in LOCALES:
        return LOCALES[code]
    return LOCALES[DEFAULT_LANGUAGE]


def available_locales() -> list[tuple[str, str]]:
    return [(locale.code, locale.name) for locale in LOCALES.values()]


__all__ = [
    "Locale",
    "StatusStrings",
    "LOCALES",
    "available_locales",
    "get_locale",
    "is_supported",
]
