"""Reviewer decisions on a detection list.

Each function returns a new list; only the approved flag of the copies
differs from the input.
"""

from dataclasses import replace

from .detectors.base import Category, Detection


def toggle(detections: list[Detection], detection_id: str) -> list[Detection]:
    return [replace(d, approved=not d.approved) if d.id == detection_id else d for d in detections]


def set_approval(detections: list[Detection], detection_id: str, approved: bool) -> list[Detection]:
    return [replace(d, approved=approved) if d.id == detection_id else d for d in detections]


def approve_all(detections: list[Detection]) -> list[Detection]:
    return [replace(d, approved=True) for d in detections]


def reject_all(detections: list[Detection]) -> list[Detection]:
    return [replace(d, approved=False) for d in detections]


def approve_category(detections: list[Detection], category: Category) -> list[Detection]:
    return [replace(d, approved=True) if d.category == category else d for d in detections]


def reject_category(detections: list[Detection], category: Category) -> list[Detection]:
    return [replace(d, approved=False) if d.category == category else d for d in detections]


def approved_only(detections: list[Detection]) -> list[Detection]:
    return [d for d in detections if d.approved]
