"""
Geo Algorithm
Great-circle distance and initial bearing from the viewer to each candidate,
vectorised with numpy, for the AR explorer
"""

from typing import List, Sequence, Tuple

import numpy as np

from ..schemas.ai_schemas import CandidateRecord, NearbyPOI
from ..utils.ai_helpers import format_distance

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat: float, lng: float, lats: np.ndarray, lngs: np.ndarray) -> np.ndarray:
    """
    Distance in km from one point to many

    Args:
        lat, lng: Origin in degrees
        lats, lngs: Destinations in degrees

    Returns:
        np.ndarray of distances in km
    """
    phi1 = np.radians(lat)
    phi2 = np.radians(lats)
    d_phi = phi2 - phi1
    d_lambda = np.radians(lngs - lng)

    a = np.sin(d_phi / 2) ** 2 + np.cos(phi1) * np.cos(phi2) * np.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_KM * np.arcsin(np.sqrt(np.clip(a, 0.0, 1.0)))


def initial_bearing_deg(lat: float, lng: float, lats: np.ndarray, lngs: np.ndarray) -> np.ndarray:
    """
    Initial bearing (0 = north, clockwise) from one point to many

    Returns:
        np.ndarray of bearings in [0, 360)
    """
    phi1 = np.radians(lat)
    phi2 = np.radians(lats)
    d_lambda = np.radians(lngs - lng)

    x = np.sin(d_lambda) * np.cos(phi2)
    y = np.cos(phi1) * np.sin(phi2) - np.sin(phi1) * np.cos(phi2) * np.cos(d_lambda)
    return (np.degrees(np.arctan2(x, y)) + 360.0) % 360.0


def _with_coordinates(candidates: Sequence[CandidateRecord]) -> Tuple[List[CandidateRecord], np.ndarray, np.ndarray]:
    located = [c for c in candidates if c.coordinates is not None]
    lats = np.array([c.coordinates.lat for c in located], dtype=float)
    lngs = np.array([c.coordinates.lng for c in located], dtype=float)
    return located, lats, lngs


def rank_nearby(
    candidates: Sequence[CandidateRecord],
    lat: float,
    lng: float,
    radius_km: float,
    limit: int,
) -> List[NearbyPOI]:
    """
    Position candidates relative to the viewer

    Candidates without coordinates are dropped. Results within radius_km are
    sorted by distance (stable, so equal distances keep retrieval order).

    Returns:
        List[NearbyPOI], at most `limit`
    """
    located, lats, lngs = _with_coordinates(candidates)
    if not located:
        return []

    distances = haversine_km(lat, lng, lats, lngs)
    bearings = initial_bearing_deg(lat, lng, lats, lngs)

    order = np.argsort(distances, kind="stable")
    pois = []
    for i in order:
        distance = float(distances[i])
        if distance > radius_km:
            break
        pois.append(NearbyPOI(
            candidate=located[i],
            distance_km=round(distance, 3),
            bearing_deg=round(float(bearings[i]), 1),
            distance_label=format_distance(distance),
        ))
        if len(pois) >= limit:
            break
    return pois
