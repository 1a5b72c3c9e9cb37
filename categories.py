from typing import Optional


def normalize(label: Optional[str]) -> str:
    """Canonical key for a free-text category label.

    Two labels name the same category iff their keys are equal.
    """
    return (label or "").strip().lower()


def display_form(label: Optional[str]) -> str:
    label = label or ""
    return label[:1].upper() + label[1:]
