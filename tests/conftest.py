import copy
from typing import Any, Dict

import pytest
from hypothesis import settings

from mapctx_core.schema import parse_document
from mapctx_core.state import MapConfigState, build_state

# Prevent Hypothesis from writing a local example database (e.g. `.hypothesis/`) during tests.
settings.register_profile("mapctx-tests", database=None)
settings.load_profile("mapctx-tests")

LOCALES = ["en", "fr"]

SAMPLE_DOCUMENT: Dict[str, Any] = {
    "layers": [
        {
            "id": 1,
            "serverUrls": ["https://wms.example.org/a", "https://wms.example.org/b"],
            "name": "roads",
            "imageFormat": "image/png",
            "legend": {"type": "wms", "style": "default"},
            "styles": {"en": "roads_en", "fr": "roads_fr"},
            "times": ["2020-01-02", "2020-01-01"],
            "statistics": [
                {"type": "url", "labels": {"en": "Traffic"}, "url": "https://stats.example.org/roads"}
            ],
        },
        {
            "id": 2,
            "type": "wms",
            "serverUrls": ["https://wms.example.org/a"],
            "name": "rivers",
            "times": ["2020-01-02", "2020-01-03"],
            "legend": {"type": "url", "url": "https://example.org/rivers.png"},
        },
        {"id": 3, "type": "osm"},
        {"id": 4, "type": "bing-aerial", "visible": False},
        {
            "id": 5,
            "serverUrls": ["https://wms.example.org/a"],
            "name": "population",
            "statistics": [
                {
                    "type": "attributes",
                    "labels": {"en": "Population"},
                    "attributes": [{"labels": {"en": "Total"}, "attribute": "pop_total"}],
                }
            ],
        },
    ],
    "contexts": [
        {
            "id": 10,
            "labels": {"en": "Transport", "fr": "Transports"},
            "active": True,
            "infoFile": "transport.html",
            "layers": [1, 2, 3],
        },
        {"id": 11, "labels": {"en": "Base maps"}, "layers": [3, 4]},
        {
            "id": 12,
            "labels": {"en": "Statistics", "fr": "Statistiques"},
            "downloadUrl": "https://example.org/stats.zip",
            "inlineLegendUrl": "https://example.org/legend.png",
            "layers": [5, 1],
        },
    ],
    "group": {
        "id": 100,
        "labels": {"en": "All", "fr": "Tout"},
        "items": [
            {"context": 10},
            {
                "group": {
                    "id": 101,
                    "labels": {"en": "Backgrounds", "fr": "Fonds"},
                    "exclusive": True,
                    "items": [
                        {"context": 11},
                        {"group": {"id": 102, "labels": {"en": "Nested"}, "items": [{"context": 12}]}},
                    ],
                }
            },
        ],
    },
}


def make_document(**overrides: Any) -> Dict[str, Any]:
    """Deep copy of the sample document with top-level keys replaced."""
    document = copy.deepcopy(SAMPLE_DOCUMENT)
    document.update(copy.deepcopy(overrides))
    return document


def make_state(document: Dict[str, Any] = None, locale: str = "en") -> MapConfigState:
    return build_state(parse_document(document or make_document()), locale, LOCALES)


@pytest.fixture
def document() -> Dict[str, Any]:
    return make_document()


@pytest.fixture
def state() -> MapConfigState:
    return make_state()
