"""Localized label helpers for groups, contexts and layers."""

from typing import Dict, Mapping, Optional, Sequence


def localized_labels(
    labels: Optional[Mapping[str, str]],
    default: str,
    locales: Sequence[str],
) -> Dict[str, str]:
    """
    Build a label bundle covering every configured locale.

    Existing non-empty entries are kept; missing locales get ``default``.

    Args:
        labels: Existing per-locale labels (may be None)
        default: Placeholder text, e.g. "New group"
        locales: Configured locales, fallback first

    Returns:
        New dict mapping each locale (plus any extra existing ones) to a label
    """
    result: Dict[str, str] = dict(labels or {})
    for locale in locales:
        if not result.get(locale):
            result[locale] = default
    return result


def resolve_label(
    labels: Optional[Mapping[str, str]],
    locale: str,
    locales: Sequence[str] = (),
) -> str:
    """Pick the label for ``locale``, falling back to the first configured locale, then any."""
    if not labels:
        return ""
    if labels.get(locale):
        return labels[locale]
    for fallback in locales:
        if labels.get(fallback):
            return labels[fallback]
    for value in labels.values():
        if value:
            return value
    return ""
